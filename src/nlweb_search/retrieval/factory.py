"""Configuration-driven construction of vector backends.

Adapters are imported on demand so that only the SDK of the selected
backend has to be importable.
"""

from __future__ import annotations

import importlib
from typing import Any

from nlweb_search.config import VectorStoreConfig
from nlweb_search.errors import ConfigError
from nlweb_search.retrieval.base import VectorBackend

BACKENDS: dict[str, str] = {
    "milvus": "nlweb_search.retrieval.milvus_store:MilvusVectorStore",
    "chroma": "nlweb_search.retrieval.chroma_store:ChromaVectorStore",
    "qdrant": "nlweb_search.retrieval.qdrant_store:QdrantVectorStore",
    "pinecone": "nlweb_search.retrieval.pinecone_store:PineconeVectorStore",
    "weaviate": "nlweb_search.retrieval.weaviate_store:WeaviateVectorStore",
}

BACKEND_LABELS: dict[str, str] = {
    "milvus": "Milvus",
    "chroma": "ChromaDB",
    "qdrant": "Qdrant",
    "pinecone": "Pinecone",
    "weaviate": "Weaviate",
}


def available_backends() -> dict[str, str]:
    return dict(BACKEND_LABELS)


def create_backend(config: VectorStoreConfig, *, client: Any = None) -> VectorBackend:
    """Instantiate the adapter named by ``config.backend``.

    Parameters
    ----------
    config:
        Backend settings.
    client:
        Pre-built SDK client, passed through to the adapter (used by tests).

    Raises
    ------
    ConfigError
        If the backend name is not registered.
    """
    try:
        target = BACKENDS[config.backend]
    except KeyError:
        raise ConfigError(
            f"Unknown vector backend: {config.backend!r}. "
            f"Supported: {', '.join(sorted(BACKENDS))}"
        ) from None

    module_name, _, class_name = target.partition(":")
    backend_cls = getattr(importlib.import_module(module_name), class_name)
    return backend_cls(config, client=client)
