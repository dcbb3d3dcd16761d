"""Execution loop: the graph that drives model invocations and tool calls."""

from collections.abc import Callable
from typing import Any

from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph

from askagent.errors import IterationLimitError
from askagent.graphs.edges import route_agent_output
from askagent.graphs.nodes import agent_node, finish_node, tools_node
from askagent.graphs.state import ExecutionRuntime, ExecutionState
from askagent.models.llm import EngineConfig, ExecutionResult, OutputSchema
from askagent.services.history import HistoryPersistence
from askagent.services.llm import ModelGateway
from askagent.services.message_store import MessageStore
from askagent.tools.registry import ToolsRegistry
from askagent.utils.logging import get_logger

logger = get_logger(__name__)


def create_execution_graph():
    """Create the execution graph.

    agent -> (tools -> agent)* -> finish. Each pass through the agent node is
    one model invocation; the tools node runs a whole batch before looping
    back.

    Returns:
        Compiled LangGraph workflow
    """
    workflow = StateGraph(ExecutionState)

    workflow.add_node("agent", agent_node)
    workflow.add_node("tools", tools_node)
    workflow.add_node("finish", finish_node)

    workflow.set_entry_point("agent")

    workflow.add_conditional_edges(
        "agent",
        route_agent_output,
        {
            "tools": "tools",
            "finish": "finish",
        },
    )
    workflow.add_edge("tools", "agent")
    workflow.add_edge("finish", END)

    return workflow.compile()


_execution_graph = None


def get_execution_graph():
    """Get or create the compiled execution graph."""
    global _execution_graph
    if _execution_graph is None:
        _execution_graph = create_execution_graph()
    return _execution_graph


class ExecutionLoop:
    """Runs one conversation to completion over a MessageStore."""

    def __init__(
        self,
        store: MessageStore,
        gateway: ModelGateway,
        tools: ToolsRegistry,
        history: HistoryPersistence | None = None,
        config: EngineConfig | None = None,
        output_schema: OutputSchema | None = None,
    ):
        self.runtime = ExecutionRuntime(
            store=store,
            gateway=gateway,
            tools=tools,
            history=history or HistoryPersistence(None),
            config=config or EngineConfig(),
            output_schema=output_schema,
        )
        self.graph = get_execution_graph()

    async def run(self, on_message: Callable[[str], Any] | None = None) -> ExecutionResult:
        """Drive the conversation until the model answers without tool calls.

        Failures of the model or the loop itself do not propagate: the history
        is flushed with the turns recorded so far and the error message
        becomes the answer.

        Args:
            on_message: Called exactly once with the rendered answer
        """
        runtime = self.runtime
        max_iterations = runtime.config.max_iterations
        run_config = {
            "configurable": {"runtime": runtime},
            # Two supersteps per iteration plus the finish step.
            "recursion_limit": max_iterations * 2 + 2,
        }

        logger.info(
            f"Starting execution loop with {len(runtime.store)} messages, tools: {runtime.tools.get_tool_names()}"
        )
        try:
            state = await self.graph.ainvoke(ExecutionState().model_dump(), run_config)
            result = ExecutionResult(
                answer=state["answer"],
                iterations=state["iterations"],
                structured=runtime.store.all()[-1].structured,
            )
        except (IterationLimitError, GraphRecursionError):
            error = IterationLimitError(max_iterations)
            logger.warning(str(error))
            result = self._fail(error)
        except Exception as e:
            logger.error(f"Execution loop failed: {e}", exc_info=True)
            result = self._fail(e)

        if on_message:
            on_message(result.answer)
        return result

    def _fail(self, error: Exception) -> ExecutionResult:
        self.runtime.history.persist(self.runtime.store)
        return ExecutionResult(
            answer=str(error) or type(error).__name__,
            iterations=self.runtime.iterations,
            error=type(error).__name__,
        )
