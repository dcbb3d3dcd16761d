"""Chat model catalog.

Maps the ``type`` of a model config to a LangChain chat model class. The
Anthropic integration is a hard dependency; the others are optional extras
imported on first use.
"""

import importlib
import os
from typing import Any

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel

from askagent.errors import ConfigurationError
from askagent.models.llm import ModelConfig
from askagent.utils.logging import get_logger

logger = get_logger(__name__)

# type -> (module, class name, distribution to install)
OPTIONAL_PROVIDERS: dict[str, tuple[str, str, str]] = {
    "bedrock": ("langchain_aws", "ChatBedrockConverse", "langchain-aws"),
    "cohere": ("langchain_cohere", "ChatCohere", "langchain-cohere"),
    "gemini": ("langchain_google_genai", "ChatGoogleGenerativeAI", "langchain-google-genai"),
    "groq": ("langchain_groq", "ChatGroq", "langchain-groq"),
    "mistral": ("langchain_mistralai", "ChatMistralAI", "langchain-mistralai"),
    "ollama": ("langchain_ollama", "ChatOllama", "langchain-ollama"),
    "openai": ("langchain_openai", "ChatOpenAI", "langchain-openai"),
    "vertex": ("langchain_google_vertexai", "ChatVertexAI", "langchain-google-vertexai"),
    "xai": ("langchain_xai", "ChatXAI", "langchain-xai"),
}

ANTHROPIC_DEFAULTS: dict[str, Any] = {
    "model": "claude-3-5-sonnet-20241022",
    "temperature": 0,
    "max_tokens": 4096,
}


def available_providers() -> list[str]:
    return sorted(["anthropic", *OPTIONAL_PROVIDERS])


def get_chat_model_class(model_type: str) -> type[BaseChatModel]:
    """Resolve the chat model class for a provider type.

    Raises:
        ConfigurationError: If the type is unknown or its integration is not installed
    """
    if model_type == "anthropic":
        return ChatAnthropic

    if model_type not in OPTIONAL_PROVIDERS:
        raise ConfigurationError(
            f"Unknown model type: {model_type}. Available types: {', '.join(available_providers())}"
        )

    module_name, class_name, distribution = OPTIONAL_PROVIDERS[model_type]
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        raise ConfigurationError(
            f"Model type '{model_type}' requires the '{distribution}' package (pip install {distribution})", e
        ) from e

    return getattr(module, class_name)


def create_chat_model(config: ModelConfig) -> BaseChatModel:
    """Instantiate the chat model selected by ``config``."""
    model_class = get_chat_model_class(config.type)
    options = dict(config.config)

    if config.type == "anthropic":
        options = {**ANTHROPIC_DEFAULTS, **options}
        if not (options.get("api_key") or options.get("anthropic_api_key") or os.getenv("ANTHROPIC_API_KEY")):
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is required")

    logger.debug(f"Creating {model_class.__name__} with options: {sorted(options)}")
    try:
        return model_class(**options)
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration for model type '{config.type}': {e}", e) from e
