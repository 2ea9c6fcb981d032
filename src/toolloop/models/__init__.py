"""Domain models for toolloop."""

from toolloop.models.conversation import Conversation

__all__ = ["Conversation"]
