"""Model gateway data models and engine configuration (provider-agnostic)."""

import json
import os
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field

from askagent.errors import ConfigurationError
from askagent.models.messages import ToolCallRequest

OutputSchema = dict[str, str]


class ModelConfig(BaseModel):
    """Opaque provider selection passed through to the model catalog."""

    type: str = "anthropic"
    config: dict[str, Any] = Field(default_factory=dict)


class FinalResponse(BaseModel):
    """Model response that ends the conversation turn."""

    kind: Literal["final"] = "final"
    content: str | dict[str, Any]

    def render(self) -> str:
        """Render the answer as text handed to the caller."""
        if isinstance(self.content, str):
            return self.content
        return canonical_json(self.content)


class ToolCallBatch(BaseModel):
    """Model response requesting tool calls before it can answer."""

    kind: Literal["tool_calls"] = "tool_calls"
    tool_calls: list[ToolCallRequest]


GatewayResponse = FinalResponse | ToolCallBatch


def canonical_json(value: Any) -> str:
    """Serialize a structured answer to its canonical text form."""
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def _env_number(name: str, default: Any, cast: type = float, minimum: float = 0) -> Any:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default

    try:
        value = cast(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'", e) from e

    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value}")
    return value


def _env_timeout(name: str, default: float | None) -> float | None:
    value = _env_number(name, default)
    # 0 disables the timeout
    return None if value == 0 else value


@dataclass
class EngineConfig:
    """Bounds applied by the execution loop."""

    max_iterations: int = 25
    model_timeout: float | None = 300.0
    tool_timeout: float | None = 120.0

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config, overriding defaults from ASKAGENT_* environment variables.

        Raises:
            ConfigurationError: If an override is not a number or is out of range
        """
        defaults = cls()
        return cls(
            max_iterations=_env_number("ASKAGENT_MAX_ITERATIONS", defaults.max_iterations, int, minimum=1),
            model_timeout=_env_timeout("ASKAGENT_MODEL_TIMEOUT", defaults.model_timeout),
            tool_timeout=_env_timeout("ASKAGENT_TOOL_TIMEOUT", defaults.tool_timeout),
        )


@dataclass
class ExecutionResult:
    """Result from running the execution loop."""

    answer: str
    iterations: int
    structured: dict[str, Any] | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
