"""
Embeddings: text → vector with caching, retry and provider selection.

Public surface
--------------
- :class:`EmbeddingProvider`: cached, retried embedding generation.
- :class:`EmbeddingClient`: protocol each API variant satisfies.
- :class:`EmbeddingVector`: vector tagged with provider and model.
- :class:`RetryExecutor`, :class:`InMemoryEmbeddingCache`: building blocks.
- :func:`create_embedding_provider`: factory driven by :class:`ProviderConfig`.
"""

from nlweb_search.embeddings.base import EmbeddingClient, EmbeddingVector
from nlweb_search.embeddings.cache import EmbeddingCache, InMemoryEmbeddingCache, make_cache_key
from nlweb_search.embeddings.factory import (
    available_models,
    available_providers,
    create_embedding_client,
    create_embedding_provider,
    default_model,
)
from nlweb_search.embeddings.provider import EmbeddingProvider
from nlweb_search.embeddings.retry import RetryExecutor, is_retryable

__all__ = [
    "EmbeddingCache",
    "EmbeddingClient",
    "EmbeddingProvider",
    "EmbeddingVector",
    "InMemoryEmbeddingCache",
    "RetryExecutor",
    "available_models",
    "available_providers",
    "create_embedding_client",
    "create_embedding_provider",
    "default_model",
    "is_retryable",
    "make_cache_key",
]
