"""Generation backend factory: SDK clients and adapters built from settings."""
import logging
from typing import Any, Dict, Optional

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from backend.settings import Settings, get_settings
from models.generation import BackendName
from services.llm.backends import (
    AnthropicBackend,
    GenerationBackend,
    OpenAICompatibleBackend,
    PerplexityBackend,
)


logger = logging.getLogger(__name__)

# Default client timeout
DEFAULT_TIMEOUT = 60.0

# DeepSeek's OpenAI-compatible endpoint has no strict JSON mode
_BACKENDS_WITHOUT_JSON_MODE = {BackendName.DEEPSEEK}


class AIClientFactory:
    """Factory for creating SDK clients for the configured backends."""

    @staticmethod
    def create_openai_client(
        api_key: Optional[str],
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> AsyncOpenAI:
        """
        Create an async OpenAI client, optionally pointed at a compatible endpoint.

        Args:
            api_key: API key for the endpoint
            base_url: OpenAI-compatible base URL (Gemini, DeepSeek, proxies)
            timeout: Client timeout in seconds

        Returns:
            AsyncOpenAI client instance

        Raises:
            ValueError: If the API key is not configured
        """
        if not api_key:
            raise ValueError("API key not configured for OpenAI-compatible client.")

        client_kwargs: Dict[str, Any] = {
            "api_key": api_key,
            "timeout": timeout,
            # The orchestrator falls back to the next backend instead
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        logger.debug(f"Creating OpenAI client (base_url={base_url or 'default'})")
        return AsyncOpenAI(**client_kwargs)

    @staticmethod
    def create_anthropic_client(
        api_key: Optional[str],
        timeout: float = DEFAULT_TIMEOUT,
    ) -> AsyncAnthropic:
        """
        Create an async Anthropic client.

        Raises:
            ValueError: If the API key is not configured
        """
        if not api_key:
            raise ValueError("Anthropic API key not configured. Set ANTHROPIC_API_KEY environment variable.")

        logger.debug("Creating Anthropic client (direct)")
        return AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)


def build_backends(settings: Optional[Settings] = None) -> Dict[BackendName, GenerationBackend]:
    """
    Build an adapter for every backend that has an API key configured.

    Args:
        settings: Optional Settings instance; defaults to get_settings()

    Returns:
        Mapping of backend name to adapter, possibly empty
    """
    if settings is None:
        settings = get_settings()

    timeout = settings.provider_timeout_seconds
    backends: Dict[BackendName, GenerationBackend] = {}

    openai_compatible = (
        (BackendName.GEMINI, settings.gemini_api_key, settings.gemini_base_url, settings.gemini_model),
        (BackendName.DEEPSEEK, settings.deepseek_api_key, settings.deepseek_base_url, settings.deepseek_model),
        (BackendName.OPENAI, settings.openai_api_key, settings.openai_base_url, settings.openai_model),
    )
    for name, api_key, base_url, model in openai_compatible:
        if not api_key:
            continue
        backends[name] = OpenAICompatibleBackend(
            name,
            AIClientFactory.create_openai_client(api_key, base_url=base_url, timeout=timeout),
            model=model,
            supports_json_mode=name not in _BACKENDS_WITHOUT_JSON_MODE,
        )

    if settings.perplexity_api_key:
        backends[BackendName.PERPLEXITY] = PerplexityBackend(
            settings.perplexity_api_key,
            model=settings.perplexity_model,
            timeout=timeout,
        )

    if settings.anthropic_api_key:
        backends[BackendName.ANTHROPIC] = AnthropicBackend(
            AIClientFactory.create_anthropic_client(settings.anthropic_api_key, timeout=timeout),
            model=settings.anthropic_model,
        )

    if backends:
        logger.info(f"Configured generation backends: {', '.join(b.value for b in backends)}")
    else:
        logger.warning("No generation backends configured; set at least one *_API_KEY")
    return backends
