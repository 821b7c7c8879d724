"""Cached, retried embedding generation on top of any :class:`EmbeddingClient`."""

from __future__ import annotations

import logging

from nlweb_search.embeddings.base import EmbeddingClient, EmbeddingVector
from nlweb_search.embeddings.cache import EmbeddingCache, make_cache_key
from nlweb_search.embeddings.retry import RetryExecutor

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 8000


class EmbeddingProvider:
    """Text → :class:`EmbeddingVector`, with truncation, caching and retry.

    Parameters
    ----------
    client:
        The provider variant making the actual API call.
    cache:
        Optional cache.  When *None*, or when *cache_enabled* is false,
        every call reaches the API.
    retry:
        Retry policy wrapped around :meth:`EmbeddingClient.generate_embedding`.
    cache_ttl_seconds:
        Lifetime of stored vectors.
    """

    def __init__(
        self,
        client: EmbeddingClient,
        *,
        cache: EmbeddingCache | None = None,
        retry: RetryExecutor | None = None,
        cache_enabled: bool = True,
        cache_ttl_seconds: int = 86400,
    ) -> None:
        self.client = client
        self.cache = cache
        self.retry = retry or RetryExecutor()
        self.cache_enabled = cache_enabled and cache is not None
        self.cache_ttl_seconds = cache_ttl_seconds

    @property
    def name(self) -> str:
        return self.client.name

    @property
    def model(self) -> str:
        return self.client.model

    def get_dimension(self) -> int:
        return self.client.get_dimension_for_model(self.client.model)

    def get_embedding(self, text: str) -> EmbeddingVector:
        """Embed *text*, serving repeated inputs from the cache."""
        text = text[:MAX_INPUT_CHARS]

        if not self.cache_enabled:
            return self._tag(self.retry.run(self.client.generate_embedding, text))

        key = make_cache_key(text, self.client.model, self.client.name)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Embedding cache hit %s", key)
            return self._tag(cached)

        values = self.retry.run(self.client.generate_embedding, text)
        self.cache.set(key, values, self.cache_ttl_seconds)
        return self._tag(values)

    def _tag(self, values: list[float]) -> EmbeddingVector:
        return EmbeddingVector(values=values, provider=self.client.name, model=self.client.model)
