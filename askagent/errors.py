"""Error hierarchy for the agent engine."""

from __future__ import annotations


class AskAgentError(Exception):
    """Base error carrying a short machine-readable code."""

    def __init__(self, code: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.cause = cause


class InputError(AskAgentError, ValueError):
    """Invalid user input. Fatal for the turn being built."""


class ImageNotFoundError(InputError):
    def __init__(self, path: str) -> None:
        super().__init__("IMAGE_NOT_FOUND", f"Image file not found: {path}")
        self.path = path


class UnsupportedImageTypeError(InputError):
    def __init__(self, path: str) -> None:
        super().__init__("UNSUPPORTED_IMAGE_TYPE", f"Unsupported image type: {path}")
        self.path = path


class ConfigurationError(AskAgentError):
    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__("CONFIGURATION_ERROR", message, cause)


class UnknownToolError(AskAgentError):
    def __init__(self, tool_name: str) -> None:
        super().__init__("UNKNOWN_TOOL", f"Unknown tool {tool_name}")
        self.tool_name = tool_name


class ToolTimeoutError(AskAgentError):
    def __init__(self, tool_name: str, timeout: float) -> None:
        super().__init__("TOOL_TIMEOUT", f'Tool "{tool_name}" timed out after {timeout}s')
        self.tool_name = tool_name
        self.timeout = timeout


class ModelTimeoutError(AskAgentError):
    def __init__(self, timeout: float) -> None:
        super().__init__("MODEL_TIMEOUT", f"Model invocation timed out after {timeout}s")
        self.timeout = timeout


class OutputSchemaError(AskAgentError):
    def __init__(self, detail: str, cause: Exception | None = None) -> None:
        super().__init__("OUTPUT_SCHEMA_MISMATCH", f"output did not match schema: {detail}", cause)
        self.detail = detail


class IterationLimitError(AskAgentError):
    def __init__(self, max_iterations: int) -> None:
        super().__init__(
            "ITERATION_LIMIT",
            f"Conversation stopped after reaching the maximum of {max_iterations} model invocations",
        )
        self.max_iterations = max_iterations
