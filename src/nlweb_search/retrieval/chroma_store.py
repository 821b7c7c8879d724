"""Chroma implementation of the vector-backend interface."""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from nlweb_search.config import VectorStoreConfig
from nlweb_search.retrieval.models import MetadataFilter, VectorHit, VectorRecord
from nlweb_search.retrieval.scoring import cosine_distance_to_similarity

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8000


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    clauses: list[dict[str, Any]] = [{f.field: {"$eq": f.value}} for f in filters]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class ChromaVectorStore:
    """Chroma-backed vector store.

    Chroma stores no declared vector size, so the dimension chosen at
    creation is kept in the collection metadata and read back from there.
    Distances are cosine distances in ``[0, 2]``.
    """

    name = "chroma"

    def __init__(self, config: VectorStoreConfig, *, client: Any = None) -> None:
        self.collection_name = config.collection
        self._client = client or chromadb.HttpClient(
            host=config.host, port=config.port or DEFAULT_PORT
        )

    def _collection(self) -> Any:
        return self._client.get_collection(name=self.collection_name)

    # -- VectorBackend --------------------------------------------------------

    def collection_exists(self) -> bool:
        # chromadb < 0.6 returns Collection objects, later versions plain names
        names = [c if isinstance(c, str) else c.name for c in self._client.list_collections()]
        return self.collection_name in names

    def collection_dimension(self) -> int | None:
        metadata = self._collection().metadata or {}
        dimension = metadata.get("dimension")
        return int(dimension) if dimension is not None else None

    def create_collection(self, dimension: int) -> None:
        self._client.create_collection(
            name=self.collection_name,
            metadata={
                "hnsw:space": "cosine",
                "dimension": dimension,
                "description": "WordPress content collection",
            },
        )
        logger.info("Chroma collection %r created (dim=%d)", self.collection_name, dimension)

    def drop_collection(self) -> None:
        self._client.delete_collection(name=self.collection_name)

    def count(self) -> int:
        if not self.collection_exists():
            return 0
        return self._collection().count()

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        metadatas = []
        for r in records:
            # Chroma metadata values must be flat str/int/float/bool
            meta = r.payload()
            meta.pop("content")
            metadatas.append(meta)

        self._collection().upsert(
            ids=[str(r.external_id) for r in records],
            embeddings=[r.vector for r in records],
            documents=[r.content for r in records],
            metadatas=metadatas,
        )
        return len(records)

    def search(
        self,
        vector: list[float],
        *,
        limit: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorHit]:
        results = self._collection().query(
            query_embeddings=[vector],
            n_results=limit,
            where=_build_chroma_where(filters or []),
            include=["documents", "metadatas", "distances"],
        )

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits: list[VectorHit] = []
        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            payload = {**(meta or {}), "content": content or ""}
            hits.append(VectorHit.from_payload(doc_id, cosine_distance_to_similarity(dist), payload))
        return hits
