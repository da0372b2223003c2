"""Tool registry keyed by tool name.

The iteration engine resolves tool-call records against a registry and sends
its declarations to the model backend.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Sequence

from .contract import ToolContract

__all__ = [
    "ToolRegistry",
    "DuplicateToolError",
    "ToolNotFoundError",
]

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class DuplicateToolError(Exception):
    """Raised when attempting to register a tool with a name that already exists."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' is already registered")


class ToolNotFoundError(Exception):
    """Raised when a requested tool is not found in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found")


# -----------------------------------------------------------------------------
# Tool Registry
# -----------------------------------------------------------------------------


class ToolRegistry:
    """Name-unique collection of :class:`ToolContract` objects.

    Registration order is preserved in :meth:`declarations`.

    Example:
        registry = ToolRegistry([lookup_tool])
        registry.get("lookup")        # ToolContract
        registry.get("missing")       # None
        registry.declarations()       # [{"type": "function", ...}]
    """

    def __init__(self, tools: Iterable[ToolContract] = ()) -> None:
        self._tools: dict[str, ToolContract] = {}
        for tool in tools:
            self.register(tool)

    @classmethod
    def coerce(cls, tools: "ToolRegistry | Iterable[ToolContract] | None") -> "ToolRegistry":
        """Return ``tools`` unchanged if it is a registry, else build one from it."""
        if isinstance(tools, ToolRegistry):
            return tools
        return cls(tools or ())

    def register(self, tool: ToolContract, *, allow_override: bool = False) -> ToolContract:
        """Register a tool contract.

        Raises:
            DuplicateToolError: If the name is taken and ``allow_override`` is False.
        """
        name = tool.name
        if name in self._tools and not allow_override:
            raise DuplicateToolError(name)
        self._tools[name] = tool
        LOGGER.debug("Registered tool: %s", name)
        return tool

    def unregister(self, name: str) -> bool:
        """Remove a tool; returns False if it was not registered."""
        if name in self._tools:
            del self._tools[name]
            LOGGER.debug("Unregistered tool: %s", name)
            return True
        return False

    def get(self, name: str) -> ToolContract | None:
        return self._tools.get(name)

    def get_required(self, name: str) -> ToolContract:
        """Get a tool by name.

        Raises:
            ToolNotFoundError: If no tool has that name.
        """
        tool = self.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def list_names(self) -> list[str]:
        return list(self._tools)

    def declarations(self, *, filter_names: Sequence[str] | None = None) -> list[dict[str, Any]]:
        """Tool declarations in OpenAI format, in registration order."""
        return [
            tool.definition
            for name, tool in self._tools.items()
            if filter_names is None or name in filter_names
        ]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolContract]:
        return iter(list(self._tools.values()))
