"""Tools available to the agent."""

from askagent.tools.paths import CreatedPaths, ToolContext
from askagent.tools.registry import ToolsRegistry, create_default_tools

__all__ = ["CreatedPaths", "ToolContext", "ToolsRegistry", "create_default_tools"]
