"""Tools served by MCP servers declared in an ``mcp.json`` file."""

import json
from collections.abc import Callable
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any

from langchain_core.tools import BaseTool
from langchain_mcp_adapters.client import MultiServerMCPClient
from langchain_mcp_adapters.tools import load_mcp_tools

from askagent.errors import ConfigurationError
from askagent.utils.logging import get_logger

logger = get_logger(__name__)

MCP_CONFIG_FILE = "mcp.json"

TRANSPORT_ALIASES = {"http": "streamable_http", "streamable-http": "streamable_http"}


def read_connections(path: str | Path) -> dict[str, dict[str, Any]]:
    """Read server connections from an MCP config file.

    Both a bare mapping of server name to connection and the common
    ``{"mcpServers": {...}}`` layout are accepted. Connections without a
    ``transport`` use stdio when they name a command and streamable HTTP
    otherwise.

    Raises:
        ConfigurationError: If the file declares no servers or a server is not an object
        OSError, ValueError: If the file cannot be read or is not valid JSON
    """
    config = json.loads(Path(path).read_text(encoding="utf-8"))
    servers = config.get("mcpServers", config) if isinstance(config, dict) else None
    if not isinstance(servers, dict) or not servers:
        raise ConfigurationError(f"{path} does not declare any MCP servers")

    connections: dict[str, dict[str, Any]] = {}
    for name, connection in servers.items():
        if not isinstance(connection, dict):
            raise ConfigurationError(f"MCP server '{name}' in {path} must be an object")

        connection = dict(connection)
        transport = connection.get("transport") or ("stdio" if "command" in connection else "streamable_http")
        connection["transport"] = TRANSPORT_ALIASES.get(transport, transport)
        connections[name] = connection

    return connections


async def load_server_tools(
    path: str | Path,
    stack: AsyncExitStack,
    client_factory: Callable[[dict[str, dict[str, Any]]], Any] | None = None,
) -> list[BaseTool]:
    """Open one session per configured server and load its tools.

    Sessions stay open until ``stack`` is closed, so the caller decides how
    long the tools remain usable.
    """
    connections = read_connections(path)
    client = (client_factory or MultiServerMCPClient)(connections)

    tools: list[BaseTool] = []
    for name in connections:
        session = await stack.enter_async_context(client.session(name))
        server_tools = await load_mcp_tools(session)
        logger.info(f"Loaded {len(server_tools)} tools from MCP server {name}")
        tools.extend(server_tools)

    return tools
