"""Conversation driver package.

Provides the ConversationDriver state machine, its configuration, and
the per-round and per-run result records.
"""

from toolloop.driver.config import DriverConfig, DriverState
from toolloop.driver.loop import ConversationDriver
from toolloop.driver.models import DriverResult, RoundResult

__all__ = [
    # Core
    "ConversationDriver",
    # Config
    "DriverConfig",
    "DriverState",
    # Models
    "DriverResult",
    "RoundResult",
]
