"""Toolkit data models.

Frozen dataclasses for tool declarations, registered tools, tool-call
requests coming from the model, and the results sent back to it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, eq=False)
class ToolDeclaration:
    """A tool exposed to the model.

    Compared by identity: requests reference the registry's declaration
    objects instead of copying them.

    Attributes:
        name: Tool name, unique within a request.
        description: Human-readable description of when/why to use this tool.
        parameters: JSON Schema dict describing tool parameters.
    """

    name: str
    description: str
    parameters: dict

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format.

        Returns:
            Dict with "type": "function" and nested "function" object.
        """
        function: dict[str, Any] = {"name": self.name, "parameters": self.parameters}
        if self.description:
            function["description"] = self.description
        return {"type": "function", "function": function}


@dataclass(frozen=True)
class RegisteredTool:
    """A declaration paired with the local handler that executes it."""

    declaration: ToolDeclaration
    handler: Callable[..., object]

    @property
    def name(self) -> str:
        return self.declaration.name

    @property
    def schema(self) -> dict:
        return self.declaration.parameters


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool invocation requested by the model.

    ``arguments`` is the raw, untrusted text the provider sent. It is
    parsed by the dispatcher, never at ingestion time.
    """

    id: str
    name: str
    arguments: str = "{}"
    type: str = "function"

    def to_openai(self) -> dict:
        """Serialize to OpenAI wire format."""
        return {
            "id": self.id,
            "type": self.type,
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(frozen=True)
class ToolCallResult:
    """Outcome of one dispatched tool call.

    Attributes:
        tool_call_id: Identifier of the originating ToolCallRequest.
        name: Tool name from the request.
        payload: JSON-serializable result, or a structured error payload.
        is_error: True when ``payload`` describes a failure.
    """

    tool_call_id: str
    name: str
    payload: Any = field(default=None)
    is_error: bool = False

    @property
    def content(self) -> str:
        """Payload rendered as JSON text for the tool message."""
        if isinstance(self.payload, str):
            return self.payload
        return json.dumps(self.payload, ensure_ascii=False)

    @classmethod
    def error(
        cls,
        request: ToolCallRequest,
        error_type: str,
        message: str,
        **details: Any,
    ) -> ToolCallResult:
        """Build a soft-error result the model can read and react to."""
        body: dict[str, Any] = {"type": error_type, "message": message, "tool": request.name}
        body.update(details)
        return cls(
            tool_call_id=request.id,
            name=request.name,
            payload={"error": body},
            is_error=True,
        )
