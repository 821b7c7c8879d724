"""Configuration-driven construction of embedding providers."""

from __future__ import annotations

from typing import Callable

import requests

from nlweb_search.config import DEFAULT_MODELS, ProviderConfig
from nlweb_search.embeddings import anthropic_client, gemini_client, ollama_client, openai_client
from nlweb_search.embeddings.base import EmbeddingClient
from nlweb_search.embeddings.cache import EmbeddingCache, InMemoryEmbeddingCache
from nlweb_search.embeddings.provider import EmbeddingProvider
from nlweb_search.embeddings.retry import RetryExecutor
from nlweb_search.errors import ConfigError

PROVIDER_LABELS: dict[str, str] = {
    "openai": "OpenAI",
    "anthropic": "Anthropic",
    "gemini": "Google Gemini",
    "ollama": "Ollama (Local)",
}

_MODEL_TABLES: dict[str, dict[str, str]] = {
    "openai": openai_client.MODELS,
    "anthropic": anthropic_client.MODELS,
    "gemini": gemini_client.MODELS,
    "ollama": ollama_client.MODELS,
}


def _openai(config: ProviderConfig, session: requests.Session | None) -> EmbeddingClient:
    return openai_client.OpenAIEmbeddingClient(
        config.api_key,
        config.resolved_model,
        endpoint=config.endpoint,
        timeout=config.request_timeout,
        session=session,
    )


def _anthropic(config: ProviderConfig, session: requests.Session | None) -> EmbeddingClient:
    return anthropic_client.AnthropicEmbeddingClient(
        config.api_key,
        config.resolved_model,
        endpoint=config.endpoint,
        timeout=config.request_timeout,
        session=session,
    )


def _gemini(config: ProviderConfig, session: requests.Session | None) -> EmbeddingClient:
    return gemini_client.GeminiEmbeddingClient(
        config.api_key,
        config.resolved_model,
        endpoint=config.endpoint,
        timeout=config.request_timeout,
        session=session,
    )


def _ollama(config: ProviderConfig, session: requests.Session | None) -> EmbeddingClient:
    return ollama_client.OllamaEmbeddingClient(
        config.resolved_model,
        server_url=config.server_url,
        session=session,
    )


CLIENTS: dict[str, Callable[[ProviderConfig, requests.Session | None], EmbeddingClient]] = {
    "openai": _openai,
    "anthropic": _anthropic,
    "gemini": _gemini,
    "ollama": _ollama,
}


def available_providers() -> dict[str, str]:
    return dict(PROVIDER_LABELS)


def available_models(provider: str) -> dict[str, str]:
    return dict(_MODEL_TABLES.get(provider, {}))


def default_model(provider: str) -> str:
    return DEFAULT_MODELS.get(provider, DEFAULT_MODELS["openai"])


def create_embedding_client(
    config: ProviderConfig, *, session: requests.Session | None = None
) -> EmbeddingClient:
    try:
        build = CLIENTS[config.provider]
    except KeyError:
        raise ConfigError(
            f"Unknown embedding provider: {config.provider!r}. "
            f"Supported: {', '.join(sorted(CLIENTS))}"
        ) from None
    return build(config, session)


def create_embedding_provider(
    config: ProviderConfig,
    *,
    cache: EmbeddingCache | None = None,
    session: requests.Session | None = None,
) -> EmbeddingProvider:
    """Build a ready-to-use :class:`EmbeddingProvider` from *config*.

    An in-memory cache is created when caching is enabled and none is
    supplied.
    """
    if cache is None and config.cache_enabled:
        cache = InMemoryEmbeddingCache()
    return EmbeddingProvider(
        create_embedding_client(config, session=session),
        cache=cache,
        retry=RetryExecutor(config.retry_attempts, config.retry_base_delay_ms),
        cache_enabled=config.cache_enabled,
        cache_ttl_seconds=config.cache_ttl_seconds,
    )
