"""Command-line interface: ``askagent ask`` and ``askagent history``."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from askagent import __version__
from askagent.errors import AskAgentError, ConfigurationError
from askagent.models.conversation import ConversationRequest, split_image_paths
from askagent.models.llm import ModelConfig
from askagent.models.messages import (
    AssistantToolCallsMessage,
    ImagePart,
    MessageList,
    TextPart,
    ToolResultMessage,
)
from askagent.services.conversation import ConversationService
from askagent.utils.files import read_json, read_text
from askagent.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

ROLE_LABELS = {
    "user": "[bold blue]👤 USER:[/bold blue]",
    "assistant": "[bold blue]🤖 ASSISTANT:[/bold blue]",
    "assistant_with_tool_calls": "[bold blue]🤖 ASSISTANT WITH TOOL CALLS:[/bold blue]",
    "tool": "[bold magenta]🔧 TOOL RESPONSE:[/bold magenta]",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="askagent", description="Ask an LLM agent with tools and history.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ask = subparsers.add_parser("ask", help="Ask a question")
    ask.add_argument("question", help="The question or message to send")
    ask.add_argument("--instructions", help="File with system instructions")
    ask.add_argument("--role", default="user", help="Role of the message (default: user)")
    ask.add_argument("--history", help="History file to resume and update")
    ask.add_argument("--output-schema", help="JSON file mapping output field names to descriptions")
    ask.add_argument("--image", help="Comma-separated image files to attach")
    ask.add_argument("--context", action="store_true", help="Read additional context from stdin")
    ask.add_argument("--model", default="{}", help='Model config JSON, e.g. {"type": "anthropic", "config": {}}')
    ask.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Prompt variable available as {NAME} (repeatable)",
    )

    history = subparsers.add_parser("history", help="Show a conversation history file")
    history.add_argument("history_file", help="History file to display")

    return parser


def parse_params(values: list[str]) -> dict[str, str]:
    """Parse NAME=VALUE pairs."""
    params: dict[str, str] = {}
    for value in values:
        name, separator, param_value = value.partition("=")
        if not separator or not name:
            raise ConfigurationError(f"Invalid --param '{value}', expected NAME=VALUE")
        params[name] = param_value
    return params


def parse_model_config(raw: str) -> ModelConfig:
    try:
        return ModelConfig.model_validate(json.loads(raw or "{}"))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid model config: {e}", e) from e


def load_output_schema(path: str | None) -> dict[str, str] | None:
    """Load an output schema file. Absent or unreadable files mean no schema."""
    schema = read_json(path)
    if schema is None:
        if path:
            logger.warning(f"Output schema {path} is missing or not valid JSON, ignoring it")
        return None

    if not isinstance(schema, dict):
        raise ConfigurationError(f"Output schema {path} must be a JSON object of field descriptions")

    return {str(name): str(description) for name, description in schema.items()}


def build_request(args: argparse.Namespace, stdin_text: str | None = None) -> ConversationRequest:
    """Build a conversation request from parsed ``ask`` arguments."""
    params: dict[str, Any] = {
        key: value
        for key, value in vars(args).items()
        if key not in {"param", "command", "context"} and value is not None
    }
    if stdin_text is not None:
        params["context"] = stdin_text
    params.update(parse_params(args.param))

    return ConversationRequest(
        question=args.question,
        instructions=read_text(args.instructions),
        role=args.role,
        history_path=args.history,
        output_schema=load_output_schema(args.output_schema),
        images=split_image_paths(args.image),
        context=stdin_text,
        model=parse_model_config(args.model),
        params=params,
    )


def run_ask(args: argparse.Namespace, service: ConversationService | None = None) -> int:
    stdin_text = sys.stdin.read() if args.context else None
    request = build_request(args, stdin_text)
    service = service or ConversationService()

    asyncio.run(service.ask(request, on_message=lambda answer: print(answer.strip())))
    return 0


def render_history(history_file: str, console: Console) -> int:
    """Print a history file. Unlike the engine loader, any problem is an error."""
    path = Path(history_file)
    if not path.is_file():
        console.print(f"[red]Error: History file '{escape(history_file)}' not found[/red]")
        return 1

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        console.print(f"[red]Error: Invalid JSON in history file '{escape(history_file)}'[/red]")
        return 1

    if not isinstance(raw, list):
        console.print("[red]Error: Invalid history file format - expected an array[/red]")
        return 1

    try:
        messages = MessageList.validate_python(raw)
    except ValidationError as e:
        console.print(f"[red]Error reading history file: {escape(str(e))}[/red]")
        return 1

    console.print(f"[bold]📜 History from file: {escape(history_file)}[/bold]")

    for index, message in enumerate(messages, start=1):
        console.print(f"\n[grey50]\\[#{index}][/grey50]")
        label = ROLE_LABELS.get(message.role, f"[bold yellow]📋 {message.role.upper()}:[/bold yellow]")
        console.print(label)

        if isinstance(message, AssistantToolCallsMessage):
            for call in message.tool_calls:
                arguments = ", ".join(
                    f"[grey50]{escape(key)}[/grey50]: [yellow]{escape(str(value))}[/yellow]"
                    for key, value in call.arguments.items()
                )
                console.print("[bold magenta]🔧 INVOKE TOOL:[/bold magenta]")
                console.print(f"[cyan]{escape(call.name)}[/cyan]({arguments})")
            continue

        parts = message.result if isinstance(message, ToolResultMessage) else message.content
        for part in parts:
            if isinstance(part, TextPart):
                console.print(escape(part.text.strip()))
            elif isinstance(part, ImagePart):
                console.print(f"[cyan]\\[image: {escape(part.mime_type)}][/cyan]")

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    setup_logging()
    args = build_parser().parse_args(argv)
    error_console = Console(stderr=True)

    if args.command == "history":
        return render_history(args.history_file, Console())

    try:
        return run_ask(args)
    except AskAgentError as e:
        error_console.print(f"[red]{escape(str(e))}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
