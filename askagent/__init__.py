"""Command-line LLM agent with tool calling and persistent conversation history."""

__version__ = "0.1.0"
