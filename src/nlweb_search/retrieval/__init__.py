"""
Retrieval: vector backends, collection lifecycle and semantic search.

Public surface
--------------
- :class:`VectorStore`: lifecycle, ingest, search and clear over any backend.
- :class:`QueryPipeline`: embedding → backend hits → :class:`SearchResult`.
- :class:`VectorBackend`: the interface each engine adapter implements.
- :func:`create_backend` / :func:`available_backends`: backend registry.
- :class:`MilvusVectorStore`, :class:`ChromaVectorStore`,
  :class:`QdrantVectorStore`, :class:`PineconeVectorStore`,
  :class:`WeaviateVectorStore`: engine adapters.
- :class:`SearchQuery`, :class:`SearchResult`, :class:`MetadataFilter`,
  :class:`IngestResult`, :class:`ClearResult`: data models.
"""

from nlweb_search.retrieval.base import VectorBackend
from nlweb_search.retrieval.factory import available_backends, create_backend
from nlweb_search.retrieval.models import (
    ClearResult,
    IngestResult,
    MetadataFilter,
    SearchQuery,
    SearchResult,
    VectorHit,
    VectorRecord,
)
from nlweb_search.retrieval.snippet import SnippetGenerator, generate_snippet

__all__ = [
    "ChromaVectorStore",
    "ClearResult",
    "IngestResult",
    "MetadataFilter",
    "MilvusVectorStore",
    "PineconeVectorStore",
    "QdrantVectorStore",
    "QueryPipeline",
    "SearchQuery",
    "SearchResult",
    "SnippetGenerator",
    "VectorBackend",
    "VectorHit",
    "VectorRecord",
    "VectorStore",
    "WeaviateVectorStore",
    "available_backends",
    "create_backend",
    "generate_snippet",
]

_LAZY = {
    "MilvusVectorStore": "nlweb_search.retrieval.milvus_store",
    "ChromaVectorStore": "nlweb_search.retrieval.chroma_store",
    "QdrantVectorStore": "nlweb_search.retrieval.qdrant_store",
    "PineconeVectorStore": "nlweb_search.retrieval.pinecone_store",
    "WeaviateVectorStore": "nlweb_search.retrieval.weaviate_store",
    "QueryPipeline": "nlweb_search.retrieval.retriever",
    "VectorStore": "nlweb_search.retrieval.vector_store",
}


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import adapters so an SDK is only needed when its backend is used."""
    if name in _LAZY:
        import importlib

        return getattr(importlib.import_module(_LAZY[name]), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
