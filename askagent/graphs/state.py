"""State definitions for the execution graph."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel

from askagent.models.llm import EngineConfig, FinalResponse, OutputSchema, ToolCallBatch
from askagent.services.history import HistoryPersistence
from askagent.services.llm import ModelGateway
from askagent.services.message_store import MessageStore
from askagent.tools.registry import ToolsRegistry


class ExecutionState(BaseModel):
    """Control state passed between graph nodes.

    Conversation turns live in the MessageStore, not here, so that every turn
    appended before a failure is still available for persistence.
    """

    iterations: int = 0
    response: FinalResponse | ToolCallBatch | None = None
    next_step: Literal["tools", "finish"] | None = None
    answer: str | None = None


@dataclass
class ExecutionRuntime:
    """Collaborators of one conversation, handed to nodes through the run config."""

    store: MessageStore
    gateway: ModelGateway
    tools: ToolsRegistry
    history: HistoryPersistence
    config: EngineConfig
    output_schema: OutputSchema | None = None
    iterations: int = 0
