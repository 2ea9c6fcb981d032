"""Token counting engines."""

from toolloop.engine.tokens import NullTokenCounter, TiktokenCounter

__all__ = ["NullTokenCounter", "TiktokenCounter"]
