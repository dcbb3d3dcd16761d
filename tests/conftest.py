"""Shared fixtures and fakes."""

import logging
from typing import Any

import pytest
from langchain_core.tools import BaseTool, tool

from askagent.models.llm import FinalResponse, GatewayResponse, OutputSchema, ToolCallBatch
from askagent.models.messages import Message, ToolCallRequest
from askagent.tools.registry import ToolsRegistry


class FakeGateway:
    """Model gateway returning scripted responses and recording every snapshot it receives."""

    def __init__(self, responses: list[GatewayResponse | Exception]):
        self.responses = list(responses)
        self.snapshots: list[list[Message]] = []
        self.output_schemas: list[OutputSchema | None] = []
        self.bound_tools: list[str] = []

    def bind_tools(self, tools: list[BaseTool]) -> None:
        self.bound_tools = [t.name for t in tools]

    async def invoke(self, messages: list[Message], output_schema: OutputSchema | None = None) -> GatewayResponse:
        self.snapshots.append(list(messages))
        self.output_schemas.append(output_schema)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def final(content: Any) -> FinalResponse:
    return FinalResponse(content=content)


def batch(*calls: tuple[str, str, dict[str, Any]]) -> ToolCallBatch:
    return ToolCallBatch(
        tool_calls=[ToolCallRequest(id=call_id, name=name, arguments=args) for call_id, name, args in calls]
    )


@tool("readFile")
async def fake_read_file(file: str) -> str:
    """Read a file."""
    return "hello"


@tool("failingTool")
async def failing_tool(reason: str) -> str:
    """Always fails."""
    raise RuntimeError(f"boom: {reason}")


@pytest.fixture
def fake_tools() -> ToolsRegistry:
    """Registry with a canned readFile tool and a tool that always raises."""
    return ToolsRegistry([fake_read_file, failing_tool])


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo setup_logging calls made by a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
