"""Model gateway: the single point where a chat model is consulted."""

import asyncio
import uuid
from typing import Any

from langchain_core import messages as lc
from langchain_core.exceptions import OutputParserException
from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import JsonOutputParser
from langchain_core.runnables import Runnable
from langchain_core.tools import BaseTool

from askagent.clients.providers import create_chat_model
from askagent.errors import ModelTimeoutError, OutputSchemaError
from askagent.models.llm import (
    FinalResponse,
    GatewayResponse,
    ModelConfig,
    OutputSchema,
    ToolCallBatch,
)
from askagent.models.messages import (
    AssistantMessage,
    AssistantToolCallsMessage,
    ImagePart,
    Message,
    SystemMessage,
    TextPart,
    ToolCallRequest,
    ToolResultMessage,
)
from askagent.utils.logging import get_logger

logger = get_logger(__name__)


def _content_blocks(parts: list[TextPart | ImagePart]) -> str | list[dict[str, Any]]:
    if all(isinstance(part, TextPart) for part in parts):
        return "".join(part.text for part in parts)

    blocks: list[dict[str, Any]] = []
    for part in parts:
        if isinstance(part, TextPart):
            blocks.append({"type": "text", "text": part.text})
        else:
            blocks.append({"type": "image_url", "image_url": {"url": part.to_data_url()}})
    return blocks


def to_langchain_message(message: Message) -> lc.BaseMessage:
    """Convert one conversation message to its LangChain equivalent."""
    if isinstance(message, SystemMessage):
        return lc.SystemMessage(content=_content_blocks(message.content))

    if isinstance(message, AssistantMessage):
        return lc.AIMessage(content=_content_blocks(message.content))

    if isinstance(message, AssistantToolCallsMessage):
        return lc.AIMessage(
            content="",
            tool_calls=[
                {"id": call.id, "name": call.name, "args": call.arguments, "type": "tool_call"}
                for call in message.tool_calls
            ],
        )

    if isinstance(message, ToolResultMessage):
        return lc.ToolMessage(
            content=_content_blocks(message.result),
            tool_call_id=message.tool_call_id,
            name=message.tool_name,
            status="error" if message.is_error else "success",
        )

    return lc.HumanMessage(content=_content_blocks(message.content))


def to_langchain_messages(messages: list[Message]) -> list[lc.BaseMessage]:
    """Convert a conversation snapshot, placing system messages first."""
    system = [m for m in messages if isinstance(m, SystemMessage)]
    others = [m for m in messages if not isinstance(m, SystemMessage)]
    return [to_langchain_message(m) for m in [*system, *others]]


def format_instructions(schema: OutputSchema) -> str:
    """Describe the expected JSON answer for an output schema."""
    fields = "\n".join(f'\t"{name}": string  // {description}' for name, description in schema.items())
    return (
        'The output should be a markdown code snippet formatted in the following schema, including the leading and '
        'trailing "```json" and "```":\n\n'
        f"```json\n{{\n{fields}\n}}\n```"
    )


def with_format_instructions(prompt: list[lc.BaseMessage], schema: OutputSchema) -> list[lc.BaseMessage]:
    """Attach output schema instructions to the leading system message for this invocation only."""
    instructions = format_instructions(schema)

    if prompt and isinstance(prompt[0], lc.SystemMessage):
        existing = prompt[0].content
        if isinstance(existing, str):
            merged: str | list[Any] = f"{existing}\n\n{instructions}"
        else:
            merged = [*existing, {"type": "text", "text": instructions}]
        return [lc.SystemMessage(content=merged), *prompt[1:]]

    return [lc.SystemMessage(content=instructions), *prompt]


def response_text(response: lc.BaseMessage) -> str:
    """Extract the text of a model response, ignoring non-text blocks."""
    content = response.content
    if isinstance(content, str):
        return content

    texts: list[str] = []
    for block in content:
        if isinstance(block, str):
            texts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            texts.append(str(block.get("text", "")))
    return "".join(texts)


def parse_structured(text: str, schema: OutputSchema) -> dict[str, Any]:
    """Parse a final answer against an output schema.

    Raises:
        OutputSchemaError: If the text is not a JSON object holding every schema field
    """
    try:
        parsed = JsonOutputParser().parse(text)
    except OutputParserException as e:
        raise OutputSchemaError(f"invalid JSON ({e})", e) from e

    if not isinstance(parsed, dict):
        raise OutputSchemaError(f"expected a JSON object, got {type(parsed).__name__}")

    missing = [name for name in schema if name not in parsed]
    if missing:
        raise OutputSchemaError(f"missing fields {', '.join(missing)}")

    return parsed


class ModelGateway:
    """Provider-agnostic access to a chat model with bound tools."""

    def __init__(self, model: BaseChatModel, timeout: float | None = None):
        """Initialize the gateway.

        Args:
            model: LangChain chat model to consult
            timeout: Seconds to wait for a single invocation (None waits forever)
        """
        self.model = model
        self.timeout = timeout
        self.bound_model: Runnable = model
        self.tool_names: list[str] = []

    @classmethod
    def from_config(cls, config: ModelConfig, timeout: float | None = None) -> "ModelGateway":
        return cls(create_chat_model(config), timeout=timeout)

    def bind_tools(self, tools: list[BaseTool]) -> None:
        """Bind tool schemas so the model can answer with tool calls."""
        self.tool_names = [tool.name for tool in tools]
        self.bound_model = self.model.bind_tools(tools) if tools else self.model
        logger.debug(f"Bound {len(tools)} tools to model: {self.tool_names}")

    async def invoke(self, messages: list[Message], output_schema: OutputSchema | None = None) -> GatewayResponse:
        """Send the full conversation to the model.

        Returns:
            A ToolCallBatch when the model asks for tools, otherwise a FinalResponse
            (structured when an output schema is given)

        Raises:
            ModelTimeoutError: If the invocation exceeds the configured timeout
            OutputSchemaError: If a structured answer was expected but could not be parsed
        """
        prompt = to_langchain_messages(messages)
        if output_schema:
            prompt = with_format_instructions(prompt, output_schema)

        logger.debug(f"Invoking model with {len(prompt)} messages and {len(self.tool_names)} tools")
        try:
            response = await asyncio.wait_for(self.bound_model.ainvoke(prompt), timeout=self.timeout)
        except TimeoutError as e:
            raise ModelTimeoutError(self.timeout or 0) from e

        tool_calls = getattr(response, "tool_calls", None) or []
        invalid_calls = getattr(response, "invalid_tool_calls", None) or []
        if invalid_calls:
            logger.warning(f"Model returned {len(invalid_calls)} malformed tool calls, ignoring them")

        if tool_calls:
            return ToolCallBatch(
                tool_calls=[
                    ToolCallRequest(
                        id=call.get("id") or f"call_{uuid.uuid4().hex[:12]}",
                        name=call["name"],
                        arguments=call.get("args") or {},
                    )
                    for call in tool_calls
                ]
            )

        text = response_text(response)
        if output_schema:
            return FinalResponse(content=parse_structured(text, output_schema))

        return FinalResponse(content=text)
