"""Tools registry for the agent's invocable capabilities."""

import asyncio
from collections.abc import Callable
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any

from langchain_core.tools import BaseTool

from askagent.errors import ToolTimeoutError, UnknownToolError
from askagent.tools.base import ContentParts, to_content_parts
from askagent.tools.files import (
    create_create_directory_tool,
    create_list_files_tool,
    create_read_file_tool,
    create_remove_files_tool,
    create_write_file_tool,
)
from askagent.tools.images import create_save_image_tool
from askagent.tools.mcp import load_server_tools
from askagent.tools.paths import ToolContext
from askagent.utils.logging import get_logger

logger = get_logger(__name__)


class ToolsRegistry:
    """Name-keyed collection of tools bound to one conversation.

    Each tool validates its own arguments against its declared schema and
    enforces its own side-effect policy; the registry only routes calls.
    """

    def __init__(self, tools: list[BaseTool] | None = None, context: ToolContext | None = None):
        self.context = context
        self._tools: dict[str, BaseTool] = {}
        for tool in tools or []:
            self.register_tool(tool)

    @classmethod
    def with_default_tools(
        cls, context: ToolContext | None = None, extra_tools: list[BaseTool] | None = None
    ) -> "ToolsRegistry":
        """Create a registry holding the built-in file tools plus ``extra_tools``."""
        context = context or ToolContext()
        registry = cls(create_default_tools(context), context=context)
        for tool in extra_tools or []:
            registry.register_tool(tool)
        return registry

    @classmethod
    async def from_mcp_config(
        cls,
        path: str | Path,
        stack: AsyncExitStack,
        context: ToolContext | None = None,
        extra_tools: list[BaseTool] | None = None,
        client_factory: Callable[[dict[str, dict[str, Any]]], Any] | None = None,
    ) -> "ToolsRegistry":
        """Create a registry from the MCP servers declared in ``path``.

        MCP tools replace the built-in file tools. When the config is absent
        or fails to load, the built-in tools are used instead. Server sessions
        are closed with ``stack``.
        """
        if not Path(path).is_file():
            return cls.with_default_tools(context, extra_tools)

        try:
            mcp_tools = await load_server_tools(path, stack, client_factory)
        except Exception as e:
            logger.error(f"Error loading MCP tools from {path}, using built-in tools: {e}")
            return cls.with_default_tools(context, extra_tools)

        return cls([*mcp_tools, *(extra_tools or [])], context=context)

    def register_tool(self, tool: BaseTool) -> None:
        """Register a tool, replacing any tool with the same name."""
        if tool.name in self._tools:
            logger.warning(f"Replacing already registered tool: {tool.name}")
        self._tools[tool.name] = tool

    def get_tools(self) -> list[BaseTool]:
        """Get the tools to bind to the model, in registration order."""
        return list(self._tools.values())

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    async def invoke(self, name: str, arguments: dict[str, Any], timeout: float | None = None) -> ContentParts:
        """Invoke a tool by name and return its result as content parts.

        Raises:
            UnknownToolError: If no tool with that name is registered
            ToolTimeoutError: If the tool does not finish within ``timeout`` seconds
            Exception: Whatever the tool itself raises, including argument validation errors
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)

        try:
            result = await asyncio.wait_for(tool.ainvoke(arguments), timeout=timeout)
        except TimeoutError as e:
            raise ToolTimeoutError(name, timeout or 0) from e

        return to_content_parts(result)


def create_default_tools(context: ToolContext) -> list[BaseTool]:
    """Create the built-in tool set sharing one conversation context."""
    return [
        create_read_file_tool(context),
        create_write_file_tool(context),
        create_list_files_tool(context),
        create_create_directory_tool(context),
        create_remove_files_tool(context),
        create_save_image_tool(context),
    ]
