"""Conversation request model."""

from typing import Any

from pydantic import BaseModel, Field

from askagent.models.llm import ModelConfig, OutputSchema


class ConversationRequest(BaseModel):
    """Everything needed to run one conversation turn."""

    question: str
    instructions: str | None = None
    role: str = "user"
    history_path: str | None = None
    output_schema: OutputSchema | None = None
    images: list[str] = Field(default_factory=list)
    context: str | None = None
    model: ModelConfig = Field(default_factory=ModelConfig)
    params: dict[str, Any] = Field(default_factory=dict)

    def build_message(self) -> str:
        """Compose the user message text, prefixing piped-in context when present."""
        if self.context:
            return f"---\n{self.context}\n---\n{self.question}"
        return self.question


def split_image_paths(value: str | None) -> list[str]:
    """Split a comma-separated list of image paths, dropping empty entries."""
    if not value:
        return []
    return [path.strip() for path in value.split(",") if path.strip()]
