"""ToolRegistry: maps tool names to declarations and local handlers.

Registration is explicit and centralized. Once populated, a registry is
shared read-only between any number of drivers.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from toolloop.exceptions import DuplicateToolError, UnknownToolError
from toolloop.toolkit.models import RegisteredTool, ToolDeclaration
from toolloop.toolkit.schema import validate_parameter_schema, validate_tool_name

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of callable tools.

    Usage::

        registry = ToolRegistry()
        registry.register(
            "get_current_weather",
            {"type": "object", "properties": {"location": {"type": "string"}}},
            get_current_weather,
            description="Get the current weather in a given location",
        )
        tool = registry.lookup("get_current_weather")
        tool.handler(location="Boston, MA")
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        schema: dict,
        handler: Callable[..., object],
        *,
        description: str = "",
    ) -> ToolDeclaration:
        """Register a tool handler under *name*.

        Args:
            name: Unique tool name exposed to the model.
            schema: JSON Schema for the tool's parameters.
            handler: Callable invoked with the parsed arguments as kwargs.
            description: Human-readable description for the model.

        Returns:
            The ToolDeclaration owned by this registry.

        Raises:
            DuplicateToolError: If *name* is already registered.
            InvalidConfigurationError: If the name or schema is invalid.
        """
        validate_tool_name(name)
        validate_parameter_schema(schema, path=f"{name}.parameters")
        if not callable(handler):
            raise TypeError(f"Handler for {name} is not callable")

        declaration = ToolDeclaration(name=name, description=description, parameters=schema)
        with self._lock:
            if name in self._tools:
                raise DuplicateToolError(name)
            # Copy-on-write so concurrent lookups never see a dict mid-update
            tools = dict(self._tools)
            tools[name] = RegisteredTool(declaration=declaration, handler=handler)
            self._tools = tools
        logger.debug("Registered tool %s", name)
        return declaration

    def lookup(self, name: str) -> RegisteredTool:
        """Return the registered tool for *name*.

        Raises:
            UnknownToolError: If no tool with that name exists.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def declarations(self, names: Iterable[str] | None = None) -> list[ToolDeclaration]:
        """Return declarations in registration order, or for the given names.

        Raises:
            UnknownToolError: If a requested name is not registered.
        """
        tools = self._tools
        if names is None:
            return [t.declaration for t in tools.values()]
        return [self.lookup(n).declaration for n in names]

    def names(self) -> list[str]:
        """Return registered tool names in registration order."""
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
