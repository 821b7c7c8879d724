"""Qdrant implementation of the vector-backend interface."""

from __future__ import annotations

import logging
from typing import Any

from qdrant_client import QdrantClient, models

from nlweb_search.config import VectorStoreConfig
from nlweb_search.retrieval.models import MetadataFilter, VectorHit, VectorRecord
from nlweb_search.retrieval.scoring import passthrough_similarity

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6333

# Payload fields with a keyword index for server-side filtering.
FILTERABLE_FIELDS = ("content_type", "site")


def _build_qdrant_filter(filters: list[MetadataFilter]) -> models.Filter | None:
    if not filters:
        return None
    return models.Filter(
        must=[
            models.FieldCondition(key=f.field, match=models.MatchValue(value=f.value))
            for f in filters
        ]
    )


class QdrantVectorStore:
    """Qdrant-backed vector store.

    Points use the integer document id directly.  The collection is created
    with cosine distance, so ``score`` is already a similarity.
    """

    name = "qdrant"

    def __init__(self, config: VectorStoreConfig, *, client: Any = None) -> None:
        self.collection_name = config.collection
        if client is None:
            if config.url:
                client = QdrantClient(url=config.url, api_key=config.api_key or None)
            else:
                client = QdrantClient(
                    host=config.host,
                    port=config.port or DEFAULT_PORT,
                    api_key=config.api_key or None,
                )
        self._client = client

    def collection_exists(self) -> bool:
        return self._client.collection_exists(self.collection_name)

    def collection_dimension(self) -> int | None:
        info = self._client.get_collection(self.collection_name)
        return info.config.params.vectors.size

    def create_collection(self, dimension: int) -> None:
        self._client.create_collection(
            collection_name=self.collection_name,
            vectors_config=models.VectorParams(size=dimension, distance=models.Distance.COSINE),
            optimizers_config=models.OptimizersConfigDiff(indexing_threshold=10000),
        )
        for field in FILTERABLE_FIELDS:
            self._client.create_payload_index(
                collection_name=self.collection_name,
                field_name=field,
                field_schema=models.PayloadSchemaType.KEYWORD,
            )
        logger.info("Qdrant collection %r created (dim=%d)", self.collection_name, dimension)

    def drop_collection(self) -> None:
        self._client.delete_collection(collection_name=self.collection_name)

    def count(self) -> int:
        if not self.collection_exists():
            return 0
        return self._client.count(collection_name=self.collection_name, exact=True).count

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0
        self._client.upsert(
            collection_name=self.collection_name,
            points=[
                models.PointStruct(id=r.external_id, vector=r.vector, payload=r.payload())
                for r in records
            ],
        )
        return len(records)

    def search(
        self,
        vector: list[float],
        *,
        limit: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorHit]:
        response = self._client.query_points(
            collection_name=self.collection_name,
            query=vector,
            limit=limit,
            query_filter=_build_qdrant_filter(filters or []),
            with_payload=True,
        )
        return [
            VectorHit.from_payload(point.id, passthrough_similarity(point.score), point.payload or {})
            for point in response.points
        ]
