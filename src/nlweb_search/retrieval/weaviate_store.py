"""Weaviate (v4 client) implementation of the vector-backend interface."""

from __future__ import annotations

import logging
import uuid
from typing import Any

import weaviate
from weaviate.classes.config import Configure, DataType, Property, VectorDistances
from weaviate.classes.data import DataObject
from weaviate.classes.init import Auth
from weaviate.classes.query import Filter, MetadataQuery

from nlweb_search.config import VectorStoreConfig
from nlweb_search.retrieval.models import MetadataFilter, VectorHit, VectorRecord
from nlweb_search.retrieval.scoring import passthrough_similarity

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080

PROPERTIES = [
    Property(name="doc_id", data_type=DataType.INT),
    Property(name="content_type", data_type=DataType.TEXT),
    Property(name="title", data_type=DataType.TEXT),
    Property(name="content", data_type=DataType.TEXT),
    Property(name="url", data_type=DataType.TEXT),
    Property(name="site", data_type=DataType.TEXT),
    Property(name="schema_type", data_type=DataType.TEXT),
]


def class_name_for(collection: str) -> str:
    """``wordpress_content`` -> ``WordpressContent``."""
    words = collection.replace("_", " ").replace("-", " ").split()
    return "".join(w[:1].upper() + w[1:] for w in words)


def object_uuid(external_id: int) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"doc-{external_id}"))


def _build_weaviate_filter(filters: list[MetadataFilter]) -> Any:
    combined = None
    for f in filters:
        clause = Filter.by_property(f.field).equal(f.value)
        combined = clause if combined is None else combined & clause
    return combined


class WeaviateVectorStore:
    """Weaviate-backed vector store.

    Vectors are supplied by us (no server-side vectorizer) and compared with
    cosine distance; the returned ``certainty`` is already in ``[0, 1]``.
    """

    name = "weaviate"

    def __init__(self, config: VectorStoreConfig, *, client: Any = None) -> None:
        self.collection_name = class_name_for(config.collection)
        if client is None:
            client = weaviate.connect_to_local(
                host=config.host,
                port=config.port or DEFAULT_PORT,
                grpc_port=config.weaviate_grpc_port,
                auth_credentials=Auth.api_key(config.api_key) if config.api_key else None,
            )
        self._client = client

    def _collection(self) -> Any:
        return self._client.collections.get(self.collection_name)

    def collection_exists(self) -> bool:
        return self._client.collections.exists(self.collection_name)

    def collection_dimension(self) -> int | None:
        # Weaviate keeps no declared size; infer it from a stored object.
        response = self._collection().query.fetch_objects(limit=1, include_vector=True)
        if not response.objects:
            return None
        vector = response.objects[0].vector
        if isinstance(vector, dict):
            vector = vector.get("default") or next(iter(vector.values()), None)
        return len(vector) if vector else None

    def create_collection(self, dimension: int) -> None:
        self._client.collections.create(
            self.collection_name,
            vectorizer_config=Configure.Vectorizer.none(),
            vector_index_config=Configure.VectorIndex.hnsw(
                distance_metric=VectorDistances.COSINE
            ),
            properties=PROPERTIES,
        )
        logger.info("Weaviate class %r created (dim=%d)", self.collection_name, dimension)

    def drop_collection(self) -> None:
        self._client.collections.delete(self.collection_name)

    def count(self) -> int:
        if not self.collection_exists():
            return 0
        return self._collection().aggregate.over_all(total_count=True).total_count or 0

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        objects = [
            DataObject(properties=r.payload(), uuid=object_uuid(r.external_id), vector=r.vector)
            for r in records
        ]
        result = self._collection().data.insert_many(objects)
        errors = getattr(result, "errors", None) or {}
        for index, error in errors.items():
            logger.warning("Weaviate rejected object %d: %s", index, error)
        return len(objects) - len(errors)

    def search(
        self,
        vector: list[float],
        *,
        limit: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorHit]:
        response = self._collection().query.near_vector(
            near_vector=vector,
            limit=limit,
            filters=_build_weaviate_filter(filters or []),
            return_metadata=MetadataQuery(certainty=True),
        )
        return [
            VectorHit.from_payload(
                obj.uuid,
                passthrough_similarity(obj.metadata.certainty or 0.0),
                obj.properties or {},
            )
            for obj in response.objects
        ]
