"""Conversation message models.

Every turn in the conversation log is one of five variants, discriminated by
``role``. The same models are used in memory and in the persisted history
file, so a history written by one run loads unchanged in the next.
"""

import base64
import mimetypes
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from askagent.errors import ImageNotFoundError, UnsupportedImageTypeError


class TextPart(BaseModel):
    """Text content part."""

    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """Inline image content part (base64 payload)."""

    type: Literal["image"] = "image"
    mime_type: str
    data: str

    @classmethod
    def from_file(cls, path: str | Path) -> "ImagePart":
        """Load an image from disk.

        Raises:
            ImageNotFoundError: If the file does not exist
            UnsupportedImageTypeError: If no image MIME type can be resolved for it
        """
        image_path = Path(path).expanduser().resolve()
        if not image_path.is_file():
            raise ImageNotFoundError(str(image_path))

        mime_type, _ = mimetypes.guess_type(image_path.name)
        if not mime_type or not mime_type.startswith("image/"):
            raise UnsupportedImageTypeError(str(image_path))

        return cls(mime_type=mime_type, data=base64.b64encode(image_path.read_bytes()).decode("ascii"))

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


ContentPart = Annotated[TextPart | ImagePart, Field(discriminator="type")]


def render_text(parts: list[TextPart | ImagePart]) -> str:
    """Concatenate the text parts of a content sequence."""
    return "".join(part.text for part in parts if isinstance(part, TextPart))


class ToolCallRequest(BaseModel):
    """A tool call requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class _ContentMessage(BaseModel):
    content: list[ContentPart] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return render_text(self.content)


class SystemMessage(_ContentMessage):
    """Instructions for the model. Never persisted."""

    role: Literal["system"] = "system"


class UserMessage(_ContentMessage):
    """A user turn, the only kind that may carry images."""

    role: Literal["user"] = "user"


class AssistantMessage(_ContentMessage):
    """Final assistant answer.

    ``structured`` holds the parsed value when an output schema was in force;
    ``content`` then carries its canonical JSON rendering.
    """

    role: Literal["assistant"] = "assistant"
    structured: dict[str, Any] | None = None


class AssistantToolCallsMessage(BaseModel):
    """Assistant turn that requests one or more tool calls."""

    role: Literal["assistant_with_tool_calls"] = "assistant_with_tool_calls"
    tool_calls: list[ToolCallRequest]


class ToolResultMessage(BaseModel):
    """Result of one tool call, correlated to its request by ``tool_call_id``."""

    role: Literal["tool"] = "tool"
    tool_call_id: str
    tool_name: str
    result: list[ContentPart] = Field(default_factory=list)
    is_error: bool = False

    @property
    def text(self) -> str:
        return render_text(self.result)


Message = Annotated[
    SystemMessage | UserMessage | AssistantMessage | AssistantToolCallsMessage | ToolResultMessage,
    Field(discriminator="role"),
]

MessageList = TypeAdapter(list[Message])


def text_message(role: str, text: str) -> SystemMessage | UserMessage | AssistantMessage:
    """Build a plain text message for one of the content-bearing roles."""
    content = [TextPart(text=text)]
    if role == "system":
        return SystemMessage(content=content)
    if role == "assistant":
        return AssistantMessage(content=content)
    return UserMessage(content=content)
