"""Tests for data models, engine configuration and the chat model catalog."""

import base64

import pytest
from langchain_anthropic import ChatAnthropic
from pydantic import ValidationError

from askagent.clients.providers import available_providers, create_chat_model, get_chat_model_class
from askagent.errors import ConfigurationError, ImageNotFoundError, UnsupportedImageTypeError
from askagent.models.conversation import ConversationRequest, split_image_paths
from askagent.models.llm import EngineConfig, FinalResponse, ModelConfig
from askagent.models.messages import (
    AssistantMessage,
    ImagePart,
    MessageList,
    SystemMessage,
    ToolResultMessage,
    UserMessage,
    text_message,
)


class TestMessages:
    """Tests for message models."""

    def test_validate_each_role(self):
        """Test that the role selects the message variant."""
        messages = MessageList.validate_python(
            [
                {"role": "system", "content": [{"type": "text", "text": "s"}]},
                {"role": "user", "content": [{"type": "text", "text": "u"}]},
                {"role": "assistant_with_tool_calls", "tool_calls": [{"id": "1", "name": "readFile"}]},
                {"role": "tool", "tool_call_id": "1", "tool_name": "readFile", "result": []},
                {"role": "assistant", "content": [], "structured": {"a": 1}},
            ]
        )

        assert [type(m).__name__ for m in messages] == [
            "SystemMessage",
            "UserMessage",
            "AssistantToolCallsMessage",
            "ToolResultMessage",
            "AssistantMessage",
        ]
        assert messages[2].tool_calls[0].arguments == {}
        assert messages[4].structured == {"a": 1}

    def test_unknown_role_rejected(self):
        """Test that an unknown role fails validation."""
        with pytest.raises(ValidationError):
            MessageList.validate_python([{"role": "robot", "content": []}])

    def test_text_message(self):
        """Test building text messages by role."""
        assert isinstance(text_message("system", "a"), SystemMessage)
        assert isinstance(text_message("assistant", "a"), AssistantMessage)
        assert isinstance(text_message("user", "a"), UserMessage)
        assert isinstance(text_message("other", "a"), UserMessage)
        assert text_message("user", "hello").text == "hello"

    def test_tool_result_text(self):
        """Test that tool result text ignores image parts."""
        message = ToolResultMessage(
            tool_call_id="1",
            tool_name="t",
            result=[{"type": "text", "text": "a"}, {"type": "image", "mime_type": "image/png", "data": "x"}],
        )
        assert message.text == "a"


class TestImagePart:
    """Tests for loading images from disk."""

    def test_from_file(self, tmp_path):
        """Test loading a JPEG file."""
        image = tmp_path / "photo.jpg"
        image.write_bytes(b"\xff\xd8\xff")

        part = ImagePart.from_file(image)

        assert part.mime_type == "image/jpeg"
        assert base64.b64decode(part.data) == b"\xff\xd8\xff"
        assert part.to_data_url().startswith("data:image/jpeg;base64,")

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises ImageNotFoundError."""
        with pytest.raises(ImageNotFoundError) as exc_info:
            ImagePart.from_file(tmp_path / "nope.png")
        assert exc_info.value.code == "IMAGE_NOT_FOUND"

    def test_non_image_file(self, tmp_path):
        """Test that a text file is not accepted as an image."""
        text_file = tmp_path / "notes.txt"
        text_file.write_text("hello")

        with pytest.raises(UnsupportedImageTypeError):
            ImagePart.from_file(text_file)


class TestConversationRequest:
    """Tests for the conversation request."""

    def test_build_message_without_context(self):
        """Test that the question is used as is."""
        assert ConversationRequest(question="hi").build_message() == "hi"

    def test_build_message_with_context(self):
        """Test the context wrapper."""
        request = ConversationRequest(question="Summarize", context="text")
        assert request.build_message() == "---\ntext\n---\nSummarize"

    def test_split_image_paths(self):
        """Test splitting comma-separated image paths."""
        assert split_image_paths("a.png, b.png,,") == ["a.png", "b.png"]
        assert split_image_paths(None) == []


class TestEngineConfig:
    """Tests for engine configuration."""

    def test_defaults(self, monkeypatch):
        """Test the default bounds."""
        for name in ("ASKAGENT_MAX_ITERATIONS", "ASKAGENT_MODEL_TIMEOUT", "ASKAGENT_TOOL_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)

        config = EngineConfig.from_env()

        assert config == EngineConfig(max_iterations=25, model_timeout=300.0, tool_timeout=120.0)

    def test_environment_overrides(self, monkeypatch):
        """Test overriding bounds, with zero disabling a timeout."""
        monkeypatch.setenv("ASKAGENT_MAX_ITERATIONS", "5")
        monkeypatch.setenv("ASKAGENT_MODEL_TIMEOUT", "30")
        monkeypatch.setenv("ASKAGENT_TOOL_TIMEOUT", "0")

        config = EngineConfig.from_env()

        assert config.max_iterations == 5
        assert config.model_timeout == 30.0
        assert config.tool_timeout is None

    @pytest.mark.parametrize(
        "name,value,message",
        [
            ("ASKAGENT_MAX_ITERATIONS", "ten", "must be a number"),
            ("ASKAGENT_MAX_ITERATIONS", "2.5", "must be a number"),
            ("ASKAGENT_MAX_ITERATIONS", "0", "must be at least 1"),
            ("ASKAGENT_MAX_ITERATIONS", "-1", "must be at least 1"),
            ("ASKAGENT_MODEL_TIMEOUT", "soon", "must be a number"),
            ("ASKAGENT_TOOL_TIMEOUT", "-5", "must be at least 0"),
        ],
    )
    def test_invalid_overrides_rejected(self, monkeypatch, name, value, message):
        """Test that malformed or out-of-range overrides are configuration errors."""
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigurationError, match=message) as exc_info:
            EngineConfig.from_env()

        assert name in str(exc_info.value)

    def test_blank_override_keeps_default(self, monkeypatch):
        """Test that an empty variable means no override."""
        monkeypatch.setenv("ASKAGENT_MAX_ITERATIONS", " ")
        monkeypatch.setenv("ASKAGENT_MODEL_TIMEOUT", "")

        config = EngineConfig.from_env()

        assert config.max_iterations == 25
        assert config.model_timeout == 300.0


class TestFinalResponse:
    """Tests for rendering final answers."""

    def test_render_text(self):
        """Test that text is returned verbatim."""
        assert FinalResponse(content=" 4 ").render() == " 4 "

    def test_render_structured(self):
        """Test that structured content renders as sorted JSON."""
        assert FinalResponse(content={"b": "é", "a": 1}).render() == '{"a": 1, "b": "é"}'


class TestProviders:
    """Tests for the chat model catalog."""

    def test_anthropic_class(self):
        """Test that anthropic resolves to ChatAnthropic."""
        assert get_chat_model_class("anthropic") is ChatAnthropic
        assert "anthropic" in available_providers()

    def test_unknown_type(self):
        """Test that an unknown provider type is a configuration error."""
        with pytest.raises(ConfigurationError, match="Unknown model type: nope"):
            get_chat_model_class("nope")

    def test_anthropic_requires_api_key(self, monkeypatch):
        """Test that a missing Anthropic key is reported before any request."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            create_chat_model(ModelConfig())

    def test_create_anthropic_model(self, monkeypatch):
        """Test creating ChatAnthropic with defaults merged into the config."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")

        model = create_chat_model(ModelConfig(config={"model": "claude-3-5-haiku-20241022"}))

        assert isinstance(model, ChatAnthropic)
        assert model.model == "claude-3-5-haiku-20241022"
        assert model.temperature == 0
