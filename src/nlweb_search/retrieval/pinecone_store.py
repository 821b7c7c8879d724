"""Pinecone (serverless) implementation of the vector-backend interface."""

from __future__ import annotations

import logging
from typing import Any

from pinecone import Pinecone, ServerlessSpec

from nlweb_search.config import VectorStoreConfig
from nlweb_search.retrieval.models import MetadataFilter, VectorHit, VectorRecord
from nlweb_search.retrieval.scoring import passthrough_similarity

logger = logging.getLogger(__name__)

# Pinecone caps metadata at 40 KB per vector.
MAX_CONTENT_CHARS = 30000


def vector_id(external_id: int) -> str:
    """Pinecone ids are strings."""
    return f"doc-{external_id}"


def _build_pinecone_filter(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    if not filters:
        return None
    clauses = [{f.field: {"$eq": f.value}} for f in filters]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read *name* from an SDK model or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PineconeVectorStore:
    """Pinecone-backed vector store using a cosine serverless index."""

    name = "pinecone"

    def __init__(self, config: VectorStoreConfig, *, client: Any = None) -> None:
        self.collection_name = config.collection.replace("_", "-").lower()
        self._cloud = config.pinecone_cloud
        self._region = config.pinecone_region
        self._client = client or Pinecone(api_key=config.api_key)

    def _index(self) -> Any:
        return self._client.Index(self.collection_name)

    def collection_exists(self) -> bool:
        return self.collection_name in self._client.list_indexes().names()

    def collection_dimension(self) -> int | None:
        return _field(self._client.describe_index(self.collection_name), "dimension")

    def create_collection(self, dimension: int) -> None:
        self._client.create_index(
            name=self.collection_name,
            dimension=dimension,
            metric="cosine",
            spec=ServerlessSpec(cloud=self._cloud, region=self._region),
        )
        logger.info("Pinecone index %r created (dim=%d)", self.collection_name, dimension)

    def drop_collection(self) -> None:
        self._client.delete_index(self.collection_name)

    def count(self) -> int:
        if not self.collection_exists():
            return 0
        stats = self._index().describe_index_stats()
        return int(_field(stats, "total_vector_count", 0) or 0)

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        vectors = []
        for r in records:
            metadata = {k: v for k, v in r.payload().items() if v is not None}
            metadata["content"] = metadata.get("content", "")[:MAX_CONTENT_CHARS]
            vectors.append({"id": vector_id(r.external_id), "values": r.vector, "metadata": metadata})

        self._index().upsert(vectors=vectors)
        return len(vectors)

    def search(
        self,
        vector: list[float],
        *,
        limit: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorHit]:
        response = self._index().query(
            vector=vector,
            top_k=limit,
            include_metadata=True,
            filter=_build_pinecone_filter(filters or []),
        )
        return [
            VectorHit.from_payload(
                _field(match, "id"),
                passthrough_similarity(_field(match, "score", 0.0)),
                _field(match, "metadata") or {},
            )
            for match in _field(response, "matches", []) or []
        ]
