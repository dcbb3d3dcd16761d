"""Node implementations for the execution graph."""

from typing import Any

from langchain_core.runnables import RunnableConfig

from askagent.errors import IterationLimitError
from askagent.graphs.state import ExecutionRuntime, ExecutionState
from askagent.models.llm import FinalResponse, ToolCallBatch
from askagent.models.messages import AssistantMessage, AssistantToolCallsMessage, TextPart, ToolResultMessage
from askagent.tools.base import count_images
from askagent.utils.logging import get_logger

logger = get_logger(__name__)


def get_runtime(config: RunnableConfig) -> ExecutionRuntime:
    return config["configurable"]["runtime"]


async def agent_node(state: ExecutionState, config: RunnableConfig) -> dict[str, Any]:
    """Invoke the model once with the full conversation snapshot."""
    runtime = get_runtime(config)

    iterations = state.iterations + 1
    if iterations > runtime.config.max_iterations:
        raise IterationLimitError(runtime.config.max_iterations)
    runtime.iterations = iterations

    logger.info(f"Model invocation {iterations}/{runtime.config.max_iterations} with {len(runtime.store)} messages")
    response = await runtime.gateway.invoke(runtime.store.all(), runtime.output_schema)

    if isinstance(response, ToolCallBatch):
        logger.info(f"Model requested {len(response.tool_calls)} tool calls")
        return {"response": response, "iterations": iterations, "next_step": "tools"}

    return {"response": response, "iterations": iterations, "next_step": "finish"}


async def tools_node(state: ExecutionState, config: RunnableConfig) -> dict[str, Any]:
    """Execute a tool call batch sequentially, in the order the model returned it.

    Tool failures become error results so the model can react to them.
    """
    runtime = get_runtime(config)
    batch = state.response
    if not isinstance(batch, ToolCallBatch):
        raise TypeError(f"Tools node expected a tool call batch, got {type(batch).__name__}")

    runtime.store.append(AssistantToolCallsMessage(tool_calls=batch.tool_calls))

    for call in batch.tool_calls:
        logger.debug(f"Executing tool: {call.name} with input: {call.arguments}")
        try:
            result = await runtime.tools.invoke(call.name, call.arguments, timeout=runtime.config.tool_timeout)
            is_error = False
        except Exception as e:
            logger.error(f"Tool {call.name} failed: {e}", exc_info=True)
            result = [TextPart(text=f"Error: {e}")]
            is_error = True

        images = count_images(result)
        if images:
            logger.debug(f"Tool {call.name} returned {images} inline images")
        else:
            logger.debug(f"Tool {call.name} result: {str(result)[:100]}...")

        runtime.store.append(
            ToolResultMessage(tool_call_id=call.id, tool_name=call.name, result=result, is_error=is_error)
        )

    return {"response": None, "next_step": None}


async def finish_node(state: ExecutionState, config: RunnableConfig) -> dict[str, Any]:
    """Record the final answer and persist the history."""
    runtime = get_runtime(config)
    response = state.response
    if not isinstance(response, FinalResponse):
        raise TypeError(f"Finish node expected a final response, got {type(response).__name__}")

    answer = response.render()
    structured = response.content if isinstance(response.content, dict) else None
    runtime.store.append(AssistantMessage(content=[TextPart(text=answer)], structured=structured))
    runtime.history.persist(runtime.store)

    logger.info(f"Conversation finished after {state.iterations} model invocations")
    return {"answer": answer}
