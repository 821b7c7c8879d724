"""Interface every vector-engine adapter implements.

Adding a backend only requires a class with the methods below; the
collection lifecycle policy, batching and result assembly in
:class:`~nlweb_search.retrieval.vector_store.VectorStore` are shared.
Adapters are responsible for converting their native score into a
``[0, 1]`` similarity before returning hits.
"""

from __future__ import annotations

from typing import Protocol

from nlweb_search.retrieval.models import MetadataFilter, VectorHit, VectorRecord


class VectorBackend(Protocol):
    """Backend-agnostic vector-engine operations.

    Attributes
    ----------
    name:
        Registry name (``"milvus"``, ``"chroma"`` …).
    collection_name:
        Logical name of the collection / index / class.
    """

    name: str
    collection_name: str

    def collection_exists(self) -> bool:
        """Return ``True`` when the collection is present."""
        ...

    def collection_dimension(self) -> int | None:
        """Vector size of the existing collection, ``None`` when unknown."""
        ...

    def create_collection(self, dimension: int) -> None:
        """Create the collection with the backend's distance metric."""
        ...

    def drop_collection(self) -> None:
        """Delete the collection and everything in it."""
        ...

    def count(self) -> int:
        """Number of stored vectors (0 when the collection is absent)."""
        ...

    def upsert(self, records: list[VectorRecord]) -> int:
        """Insert or overwrite *records*; return how many were written."""
        ...

    def search(
        self,
        vector: list[float],
        *,
        limit: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorHit]:
        """Return up to *limit* hits, most similar first, scores normalised."""
        ...
