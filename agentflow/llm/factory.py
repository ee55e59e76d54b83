"""
Chat Model Factory

Creates LangChain chat models from a model identifier.
The provider is chosen by prefix:

- "azure/<deployment>": Azure OpenAI (AZURE_OPENAI_API_KEY, AZURE_OPENAI_ENDPOINT)
- "ollama/<model>": local Ollama, no key
- "gemini/<model>": Google Gemini (GOOGLE_API_KEY)
- "claude...": Anthropic (ANTHROPIC_API_KEY)
- anything else: OpenAI (OPENAI_API_KEY)

Provider packages are imported lazily so only the one in use must be installed.
"""

import logging
import os
from typing import Any, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class LLMConfig(BaseModel):
    """Configuration for chat model creation."""

    model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier (e.g., 'gpt-4o-mini', 'azure/gpt-4o', 'ollama/llama3.2')",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: Optional[int] = Field(
        default=None,
        description="Maximum tokens to generate (None = model limit from registry)",
    )
    timeout: Optional[float] = Field(
        default=30.0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=2,
        description="Client-level retries on transport errors",
    )


def _require_env(name: str, provider: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"{provider} requires {name} environment variable")
    return value


def _create_azure(model: str, config: LLMConfig, **kwargs: Any) -> Any:
    from langchain_openai import AzureChatOpenAI

    deployment = model.removeprefix("azure/")
    endpoint = _require_env("AZURE_OPENAI_ENDPOINT", "Azure OpenAI")
    logger.info(f"Creating Azure OpenAI chat model: deployment={deployment}, endpoint={endpoint}")
    return AzureChatOpenAI(
        azure_deployment=deployment,
        azure_endpoint=endpoint,
        api_key=_require_env("AZURE_OPENAI_API_KEY", "Azure OpenAI"),
        api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-15-preview"),
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
        max_retries=config.max_retries,
        **kwargs,
    )


def _create_ollama(model: str, config: LLMConfig, **kwargs: Any) -> Any:
    from langchain_ollama import ChatOllama

    name = model.removeprefix("ollama/")
    logger.info(f"Creating Ollama chat model: {name}")
    return ChatOllama(
        model=name,
        temperature=config.temperature,
        num_predict=config.max_tokens,
        **kwargs,
    )


def _create_gemini(model: str, config: LLMConfig, **kwargs: Any) -> Any:
    from langchain_google_genai import ChatGoogleGenerativeAI

    name = model.removeprefix("gemini/")
    logger.info(f"Creating Gemini chat model: {name}")
    return ChatGoogleGenerativeAI(
        model=name,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
        max_retries=config.max_retries,
        google_api_key=_require_env("GOOGLE_API_KEY", "Google Gemini"),
        **kwargs,
    )


def _create_anthropic(model: str, config: LLMConfig, **kwargs: Any) -> Any:
    from langchain_anthropic import ChatAnthropic

    logger.info(f"Creating Anthropic chat model: {model}")
    return ChatAnthropic(
        model=model,
        temperature=config.temperature,
        max_tokens=config.max_tokens or 4096,
        timeout=config.timeout,
        max_retries=config.max_retries,
        anthropic_api_key=_require_env("ANTHROPIC_API_KEY", "Anthropic"),
        **kwargs,
    )


def _create_openai(model: str, config: LLMConfig, **kwargs: Any) -> Any:
    from langchain_openai import ChatOpenAI

    logger.info(f"Creating OpenAI chat model: {model}")
    return ChatOpenAI(
        model=model.removeprefix("openai/"),
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
        max_retries=config.max_retries,
        openai_api_key=_require_env("OPENAI_API_KEY", "OpenAI"),
        **kwargs,
    )


def create_llm(config: LLMConfig | None = None, **kwargs: Any) -> Any:
    """
    Create a LangChain chat model.

    Args:
        config: Model configuration (defaults to LLMConfig())
        **kwargs: Provider-specific parameters passed through

    Returns:
        A BaseChatModel (ChatOpenAI, AzureChatOpenAI, ChatAnthropic, ...)

    Raises:
        ImportError: If the provider package is not installed
        ValueError: If required environment variables are missing
    """
    config = config or LLMConfig()
    model = config.model
    if model.startswith("azure/"):
        factory = _create_azure
    elif model.startswith("ollama/"):
        factory = _create_ollama
    elif model.startswith("gemini/"):
        factory = _create_gemini
    elif model.startswith("claude") or model.startswith("anthropic/"):
        model = model.removeprefix("anthropic/")
        factory = _create_anthropic
    else:
        factory = _create_openai

    try:
        return factory(model, config, **kwargs)
    except ImportError as e:
        message = (
            f"Failed to import LangChain provider package for '{config.model}': {e}\n"
            f"Install one of: langchain-openai, langchain-anthropic, "
            f"langchain-google-genai, langchain-ollama"
        )
        logger.error(message)
        raise ImportError(message) from e
