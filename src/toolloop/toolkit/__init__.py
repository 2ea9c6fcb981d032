"""Toolkit: tool registration, schemas, and dispatch.

Provides the ToolRegistry that owns tool declarations and handlers, and
the ToolDispatcher that executes model-requested calls against it.
"""

from toolloop.toolkit.dispatcher import ToolDispatcher
from toolloop.toolkit.models import (
    RegisteredTool,
    ToolCallRequest,
    ToolCallResult,
    ToolDeclaration,
)
from toolloop.toolkit.registry import ToolRegistry
from toolloop.toolkit.schema import check_arguments, validate_parameter_schema

__all__ = [
    "ToolRegistry",
    "ToolDispatcher",
    "ToolDeclaration",
    "RegisteredTool",
    "ToolCallRequest",
    "ToolCallResult",
    "check_arguments",
    "validate_parameter_schema",
]
