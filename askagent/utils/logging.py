"""Logging configuration.

Diagnostics go to stderr; stdout is reserved for the answer so that
``askagent ask`` can be piped into other commands.
"""

import logging
import os
import sys

from pydantic import BaseModel

# Libraries that log request-level chatter at INFO/DEBUG
QUIET_LOGGERS = ("anthropic", "httpx", "httpcore", "langchain", "langgraph", "mcp", "langchain_mcp_adapters")


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"


def setup_logging(config: LogConfig | None = None) -> None:
    """Configure the root logger for a CLI run.

    Args:
        config: Explicit configuration; by default the level comes from LOG_LEVEL
    """
    if config is None:
        config = LogConfig(level=os.getenv("LOG_LEVEL", "WARNING"))

    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=config.format,
        datefmt=config.date_format,
        stream=sys.stderr,
        force=True,
    )

    # Raising LOG_LEVEL to DEBUG should show askagent's own decisions, not HTTP traffic
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a module logger honouring LOG_LEVEL.

    Args:
        name: Module name (typically __name__)
        level: Explicit level, overriding the LOG_LEVEL environment variable
    """
    logger = logging.getLogger(name)

    log_level = level if level else os.getenv("LOG_LEVEL", "WARNING")
    logger.setLevel(log_level.upper())

    return logger
