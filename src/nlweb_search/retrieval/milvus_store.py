"""Milvus implementation of the vector-backend interface."""

from __future__ import annotations

import json
import logging
from typing import Any

from pymilvus import DataType, MilvusClient

from nlweb_search.config import VectorStoreConfig
from nlweb_search.retrieval.models import MetadataFilter, VectorHit, VectorRecord
from nlweb_search.retrieval.scoring import l2_distance_to_similarity

logger = logging.getLogger(__name__)

DEFAULT_PORT = 19530
VECTOR_FIELD = "embedding"
OUTPUT_FIELDS = ["doc_id", "content_type", "title", "content", "url", "site", "schema_type"]

# VARCHAR limits are in bytes.
MAX_LENGTHS = {
    "content_type": 50,
    "title": 500,
    "content": 65535,
    "url": 500,
    "site": 200,
    "schema_type": 50,
}

INDEX_PARAMS = {"M": 8, "efConstruction": 64}
SEARCH_PARAMS = {"metric_type": "L2", "params": {"ef": 32}}


def _truncate_utf8(text: str, max_bytes: int) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def _build_milvus_expr(filters: list[MetadataFilter]) -> str:
    """Join equality filters into a Milvus boolean expression."""
    return " and ".join(f"{f.field} == {json.dumps(f.value)}" for f in filters)


class MilvusVectorStore:
    """Milvus-backed vector store.

    Uses an explicit schema keyed by the integer document id and an HNSW
    index with L2 distance; raw distances go through
    :func:`l2_distance_to_similarity`.
    """

    name = "milvus"

    def __init__(self, config: VectorStoreConfig, *, client: Any = None) -> None:
        self.collection_name = config.collection
        if client is None:
            uri = config.url or f"http://{config.host}:{config.port or DEFAULT_PORT}"
            client = MilvusClient(uri=uri, token=config.api_key)
        self._client = client

    def collection_exists(self) -> bool:
        return self._client.has_collection(collection_name=self.collection_name)

    def collection_dimension(self) -> int | None:
        description = self._client.describe_collection(collection_name=self.collection_name)
        for field in description.get("fields", []):
            if field.get("name") == VECTOR_FIELD:
                dim = field.get("params", {}).get("dim")
                return int(dim) if dim is not None else None
        return None

    def create_collection(self, dimension: int) -> None:
        schema = self._client.create_schema(
            auto_id=False, description="WordPress content collection"
        )
        schema.add_field(field_name="id", datatype=DataType.INT64, is_primary=True)
        schema.add_field(field_name="doc_id", datatype=DataType.INT64)
        for field, max_length in MAX_LENGTHS.items():
            schema.add_field(field_name=field, datatype=DataType.VARCHAR, max_length=max_length)
        schema.add_field(field_name=VECTOR_FIELD, datatype=DataType.FLOAT_VECTOR, dim=dimension)

        index_params = self._client.prepare_index_params()
        index_params.add_index(
            field_name=VECTOR_FIELD,
            index_type="HNSW",
            metric_type="L2",
            params=INDEX_PARAMS,
        )
        self._client.create_collection(
            collection_name=self.collection_name,
            schema=schema,
            index_params=index_params,
        )
        logger.info("Milvus collection %r created (dim=%d)", self.collection_name, dimension)

    def drop_collection(self) -> None:
        self._client.drop_collection(collection_name=self.collection_name)

    def count(self) -> int:
        if not self.collection_exists():
            return 0
        stats = self._client.get_collection_stats(collection_name=self.collection_name)
        return int(stats.get("row_count", 0))

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        rows = []
        for r in records:
            row: dict[str, Any] = {"id": r.external_id, VECTOR_FIELD: r.vector}
            for key, value in r.payload().items():
                if key in MAX_LENGTHS:
                    value = _truncate_utf8(str(value), MAX_LENGTHS[key])
                row[key] = value
            rows.append(row)

        self._client.upsert(collection_name=self.collection_name, data=rows)
        return len(rows)

    def search(
        self,
        vector: list[float],
        *,
        limit: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorHit]:
        results = self._client.search(
            collection_name=self.collection_name,
            data=[vector],
            anns_field=VECTOR_FIELD,
            limit=limit,
            filter=_build_milvus_expr(filters or []),
            search_params=SEARCH_PARAMS,
            output_fields=OUTPUT_FIELDS,
        )

        hits: list[VectorHit] = []
        for hit in results[0] if results else []:
            hits.append(
                VectorHit.from_payload(
                    hit["id"], l2_distance_to_similarity(hit["distance"]), hit.get("entity", {})
                )
            )
        return hits
