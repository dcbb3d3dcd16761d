"""Edge logic and routing for the execution graph."""

from typing import Literal

from askagent.graphs.state import ExecutionState
from askagent.models.llm import ToolCallBatch
from askagent.utils.logging import get_logger

logger = get_logger(__name__)


def route_agent_output(state: ExecutionState) -> Literal["tools", "finish"]:
    """Route from the agent node.

    A tool call batch sends the loop to the tools node; any other response
    finishes the conversation.
    """
    logger.debug(f"Routing from agent node. Next step: {state.next_step}")

    if state.next_step:
        return state.next_step

    if isinstance(state.response, ToolCallBatch) and state.response.tool_calls:
        return "tools"

    return "finish"
