"""Tests for the command-line interface."""

import io
import json

import pytest
from rich.console import Console

from askagent.cli import (
    build_parser,
    build_request,
    load_output_schema,
    main,
    parse_model_config,
    parse_params,
    render_history,
    run_ask,
)
from askagent.errors import ConfigurationError
from askagent.models.llm import EngineConfig
from askagent.services.conversation import ConversationService
from tests.conftest import FakeGateway, final


def make_console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


class TestArguments:
    """Tests for argument parsing helpers."""

    def test_parse_params(self):
        """Test NAME=VALUE parsing, keeping later '=' in the value."""
        assert parse_params(["x=2+2", "expr=a=b"]) == {"x": "2+2", "expr": "a=b"}

    def test_parse_params_rejects_missing_separator(self):
        """Test that a parameter without '=' is rejected."""
        with pytest.raises(ConfigurationError, match="expected NAME=VALUE"):
            parse_params(["novalue"])

    def test_parse_model_config(self):
        """Test parsing the model config JSON."""
        config = parse_model_config('{"type": "openai", "config": {"model": "gpt-4o"}}')
        assert config.type == "openai"
        assert config.config == {"model": "gpt-4o"}
        assert parse_model_config("{}").type == "anthropic"

    def test_parse_model_config_invalid(self):
        """Test that malformed model JSON is a configuration error."""
        with pytest.raises(ConfigurationError, match="Invalid model config"):
            parse_model_config("{bad")

    def test_load_output_schema(self, tmp_path):
        """Test loading a schema file and tolerating a missing one."""
        schema_file = tmp_path / "schema.json"
        schema_file.write_text(json.dumps({"title": "The title"}))

        assert load_output_schema(str(schema_file)) == {"title": "The title"}
        assert load_output_schema(str(tmp_path / "missing.json")) is None
        assert load_output_schema(None) is None

    def test_load_output_schema_rejects_non_object(self, tmp_path):
        """Test that a schema must be a JSON object."""
        schema_file = tmp_path / "schema.json"
        schema_file.write_text("[1, 2]")

        with pytest.raises(ConfigurationError):
            load_output_schema(str(schema_file))

    def test_build_request(self, tmp_path):
        """Test building a conversation request from ask arguments."""
        instructions = tmp_path / "instructions.txt"
        instructions.write_text("Be {tone}")
        args = build_parser().parse_args(
            [
                "ask",
                "Describe these",
                "--instructions",
                str(instructions),
                "--image",
                "a.png, b.jpg",
                "--param",
                "tone=brief",
                "--history",
                "history.json",
            ]
        )

        request = build_request(args, stdin_text="piped")

        assert request.question == "Describe these"
        assert request.instructions == "Be {tone}"
        assert request.images == ["a.png", "b.jpg"]
        assert request.history_path == "history.json"
        assert request.context == "piped"
        assert request.role == "user"
        assert request.params["tone"] == "brief"
        assert request.params["question"] == "Describe these"
        assert "instructions" in request.params
        assert "output_schema" not in request.params
        assert request.params["context"] == "piped"

    def test_context_flag_is_not_a_prompt_variable(self):
        """Test that {context} stays unresolved when nothing was piped in."""
        args = build_parser().parse_args(["ask", "hi"])

        request = build_request(args)

        assert "context" not in request.params
        assert request.context is None


class TestRunAsk:
    """Tests for the ask command."""

    def test_prints_answer(self, capsys):
        """Test that the trimmed answer is printed to stdout."""
        gateway = FakeGateway([final("  4\n")])
        service = ConversationService(config=EngineConfig(), gateway_factory=lambda request, config: gateway)
        args = build_parser().parse_args(["ask", "What is {x}?", "--param", "x=2+2"])

        assert run_ask(args, service) == 0

        assert capsys.readouterr().out == "4\n"
        assert gateway.snapshots[0][-1].text == "What is 2+2?"

    def test_main_reports_configuration_errors(self, capsys):
        """Test that configuration problems exit with status 1."""
        assert main(["ask", "hi", "--model", "{bad"]) == 1
        assert "Invalid model config" in capsys.readouterr().err

    def test_main_reports_invalid_environment_bounds(self, capsys, monkeypatch):
        """Test that a malformed engine bound exits with status 1 instead of a traceback."""
        monkeypatch.setenv("ASKAGENT_MAX_ITERATIONS", "ten")

        assert main(["ask", "hi"]) == 1
        assert "ASKAGENT_MAX_ITERATIONS must be a number" in capsys.readouterr().err


class TestRenderHistory:
    """Tests for the history viewer."""

    def test_renders_every_message(self, tmp_path):
        """Test the labels and content printed for each message kind."""
        history_file = tmp_path / "history.json"
        history_file.write_text(
            json.dumps(
                [
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": "Read a.txt [please]"},
                            {"type": "image", "mime_type": "image/png", "data": "QUJD"},
                        ],
                    },
                    {
                        "role": "assistant_with_tool_calls",
                        "tool_calls": [{"id": "call_1", "name": "readFile", "arguments": {"file": "a.txt"}}],
                    },
                    {
                        "role": "tool",
                        "tool_call_id": "call_1",
                        "tool_name": "readFile",
                        "result": [{"type": "text", "text": "hello"}],
                    },
                    {"role": "assistant", "content": [{"type": "text", "text": "It says hello"}]},
                ]
            )
        )
        console, buffer = make_console()

        assert render_history(str(history_file), console) == 0

        output = buffer.getvalue()
        assert "History from file" in output
        assert "[#1]" in output and "[#4]" in output
        assert "USER:" in output
        assert "Read a.txt [please]" in output
        assert "[image: image/png]" in output
        assert "INVOKE TOOL" in output
        assert "readFile(file: a.txt)" in output
        assert "TOOL RESPONSE:" in output
        assert "It says hello" in output

    def test_missing_file(self, tmp_path):
        """Test that a missing history file is an error."""
        console, buffer = make_console()

        assert render_history(str(tmp_path / "missing.json"), console) == 1
        assert "not found" in buffer.getvalue()

    def test_invalid_json(self, tmp_path):
        """Test that invalid JSON is an error."""
        history_file = tmp_path / "history.json"
        history_file.write_text("{not json")
        console, buffer = make_console()

        assert render_history(str(history_file), console) == 1
        assert "Invalid JSON" in buffer.getvalue()

    def test_not_an_array(self, tmp_path):
        """Test that a non-array history is an error."""
        history_file = tmp_path / "history.json"
        history_file.write_text('{"role": "user"}')
        console, buffer = make_console()

        assert render_history(str(history_file), console) == 1
        assert "expected an array" in buffer.getvalue()

    def test_invalid_message(self, tmp_path):
        """Test that an unknown role is an error."""
        history_file = tmp_path / "history.json"
        history_file.write_text('[{"role": "robot", "content": []}]')
        console, buffer = make_console()

        assert render_history(str(history_file), console) == 1
        assert "Error reading history file" in buffer.getvalue()

    def test_file_that_is_not_utf8(self, tmp_path):
        """Test that undecodable bytes are reported instead of raising."""
        history_file = tmp_path / "history.json"
        history_file.write_bytes(b"\xff\xfe[not utf8 \x80\x81]")
        console, buffer = make_console()

        assert render_history(str(history_file), console) == 1
        assert "Invalid JSON" in buffer.getvalue()
