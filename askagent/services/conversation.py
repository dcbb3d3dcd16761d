"""Conversation service: composes the engine for a single ask."""

from collections.abc import Callable
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any

from langchain_core.tools import BaseTool

from askagent.errors import InputError
from askagent.graphs.execution import ExecutionLoop
from askagent.models.conversation import ConversationRequest
from askagent.models.llm import EngineConfig, ExecutionResult
from askagent.models.messages import ImagePart, TextPart, UserMessage, text_message
from askagent.services.history import HistoryPersistence
from askagent.services.llm import ModelGateway
from askagent.services.message_store import MessageStore
from askagent.services.variables import VariableResolver
from askagent.tools.mcp import MCP_CONFIG_FILE
from askagent.tools.paths import ToolContext
from askagent.tools.registry import ToolsRegistry
from askagent.utils.logging import get_logger

logger = get_logger(__name__)

GatewayFactory = Callable[[ConversationRequest, EngineConfig], ModelGateway]


def default_gateway_factory(request: ConversationRequest, config: EngineConfig) -> ModelGateway:
    return ModelGateway.from_config(request.model, timeout=config.model_timeout)


class ConversationService:
    """Runs a conversation from instructions, history and a user message to an answer."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        gateway_factory: GatewayFactory | None = None,
        extra_tools: list[BaseTool] | None = None,
        mcp_config: str | Path = MCP_CONFIG_FILE,
        mcp_client_factory: Callable[[dict[str, dict[str, Any]]], Any] | None = None,
    ):
        """Initialize conversation service.

        Args:
            config: Engine bounds (defaults from the environment)
            gateway_factory: Builds the model gateway for a request
            extra_tools: Tools registered next to the built-in or MCP tools
            mcp_config: MCP server config; relative paths are looked up in the working directory at ask time
            mcp_client_factory: Builds the MCP client from the server connections
        """
        self.config = config or EngineConfig.from_env()
        self.gateway_factory = gateway_factory or default_gateway_factory
        self.extra_tools = extra_tools or []
        self.mcp_config = Path(mcp_config)
        self.mcp_client_factory = mcp_client_factory

    async def ask(
        self,
        request: ConversationRequest,
        on_message: Callable[[str], Any] | None = None,
        tools: ToolsRegistry | None = None,
    ) -> ExecutionResult:
        """Append the user turn and run the conversation to its final answer.

        Raises:
            InputError: If an image cannot be attached; nothing is persisted in that case
        """
        logger.info(f"Processing ask with role {request.role}, {len(request.images)} images")

        resolver = VariableResolver(self._params(request))
        store = MessageStore()
        history = HistoryPersistence(request.history_path)

        if request.instructions:
            store.append(text_message("system", await resolver.resolve(request.instructions)))

        history.load(store)

        message_text = await resolver.resolve(request.build_message())
        store.append(self._build_message(request, message_text))

        gateway = self.gateway_factory(request, self.config)

        async with AsyncExitStack() as stack:
            registry = tools or await ToolsRegistry.from_mcp_config(
                self.mcp_config,
                stack,
                context=ToolContext(),
                extra_tools=self.extra_tools,
                client_factory=self.mcp_client_factory,
            )
            gateway.bind_tools(registry.get_tools())

            loop = ExecutionLoop(
                store=store,
                gateway=gateway,
                tools=registry,
                history=history,
                config=self.config,
                output_schema=request.output_schema,
            )
            return await loop.run(on_message)

    def _params(self, request: ConversationRequest) -> dict[str, Any]:
        params: dict[str, Any] = {
            "question": request.question,
            "role": request.role,
            "instructions": request.instructions,
            "history": request.history_path,
        }
        params.update(request.params)
        return params

    def _build_message(self, request: ConversationRequest, text: str):
        if not request.images:
            return text_message(request.role, text)

        if request.role != "user":
            raise InputError("INVALID_ROLE", f"Images can only be attached to user messages, not '{request.role}'")

        images = [ImagePart.from_file(path) for path in request.images]
        return UserMessage(content=[TextPart(text=text), *images])
