"""
Tool registry for irys-mcp.

Tools are looked up by the name agents call them with (for example
"retrieveDataFromIrys"). Both the MCP server and the CLI resolve tools
through a registry, so they expose exactly the same set.

Usage:
    from irys_mcp.tools.registry import default_registry

    tool = default_registry.get("uploadDataOnIrys")
    schema = default_registry.describe()
"""

import logging
from typing import Any, Iterator

from irys_mcp.errors import ToolNotFoundError
from irys_mcp.tools.base import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Mapping from tool names to tool instances."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """
        Register a tool, replacing any tool with the same name.

        Raises:
            ValueError: If tool is None or has an empty name
        """
        if tool is None:
            msg = "Cannot register None as a tool"
            raise ValueError(msg)
        if not tool.name:
            msg = "Tool must have a non-empty name"
            raise ValueError(msg)

        if tool.name in self._tools:
            logger.debug("Replacing registered tool %s", tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        """
        Look up a tool by name.

        Raises:
            ToolNotFoundError: If no tool with that name is registered
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(tool=name)
        return tool

    def list_tools(self) -> list[str]:
        """Registered tool names in sorted order."""
        return sorted(self._tools)

    def describe(self) -> list[dict[str, Any]]:
        """Name, description and JSON schema of every tool, sorted by name."""
        described = []
        for name in self.list_tools():
            tool = self._tools[name]
            schema = tool.request_model.model_json_schema(by_alias=True) if tool.request_model else {}
            described.append({"name": name, "description": tool.description, "input_schema": schema})
        return described

    def clear(self) -> None:
        self._tools.clear()

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        return f"<ToolRegistry: [{', '.join(self.list_tools())}]>"


# Registry used by IrysService unless one is passed in
default_registry = ToolRegistry()
