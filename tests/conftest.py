"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from nlweb_search.embeddings.cache import InMemoryEmbeddingCache
from nlweb_search.embeddings.provider import EmbeddingProvider
from nlweb_search.embeddings.retry import RetryExecutor
from nlweb_search.errors import PermanentProviderError
from nlweb_search.ingestion.loader import InMemoryContentRepository
from nlweb_search.ingestion.models import Document
from nlweb_search.retrieval.models import MetadataFilter, VectorHit, VectorRecord


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ──────────────────────────────────────────────────────────────


class FakeEmbeddingClient:
    """Deterministic embedding client; texts containing a ``fail_on`` marker fail."""

    name = "fake"

    def __init__(
        self, dimension: int = 4, model: str = "fake-model", fail_on: tuple[str, ...] = ()
    ) -> None:
        self.dimension = dimension
        self.model = model
        self.fail_on = fail_on
        self.calls: list[str] = []

    def get_dimension_for_model(self, model: str) -> int:
        return self.dimension

    def generate_embedding(self, text: str) -> list[float]:
        self.calls.append(text)
        for marker in self.fail_on:
            if marker in text:
                raise PermanentProviderError(f"Fake API error: HTTP 400: rejected {marker!r}")
        return [float((len(text) + i) % 10) / 10 for i in range(self.dimension)]


class FakeBackend:
    """In-memory vector backend recording every call."""

    name = "fake"

    def __init__(self, dimension: int | None = None, hits: list[VectorHit] | None = None) -> None:
        self.collection_name = "wordpress_content"
        self.exists = dimension is not None
        self.dimension = dimension
        self.records: dict[int, VectorRecord] = {}
        self.hits = hits or []
        self.upsert_calls: list[list[VectorRecord]] = []
        self.search_calls: list[dict] = []
        self.created: list[int] = []
        self.dropped = 0

    def collection_exists(self) -> bool:
        return self.exists

    def collection_dimension(self) -> int | None:
        return self.dimension

    def create_collection(self, dimension: int) -> None:
        self.exists = True
        self.dimension = dimension
        self.created.append(dimension)

    def drop_collection(self) -> None:
        self.exists = False
        self.dimension = None
        self.records.clear()
        self.dropped += 1

    def count(self) -> int:
        return len(self.records)

    def upsert(self, records: list[VectorRecord]) -> int:
        self.upsert_calls.append(list(records))
        for r in records:
            self.records[r.external_id] = r
        return len(records)

    def search(
        self,
        vector: list[float],
        *,
        limit: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorHit]:
        self.search_calls.append({"vector": vector, "limit": limit, "filters": filters or []})
        return self.hits[:limit]


# ── Fixtures ───────────────────────────────────────────────────────────


def make_document(external_id: int, **overrides) -> Document:
    fields = {
        "external_id": external_id,
        "content_type": "post",
        "title": f"Post {external_id}",
        "body": f"Body of post number {external_id} about sourdough baking.",
        "url": f"https://example.com/?p={external_id}",
        "published_at": f"2024-01-{external_id:02d}T10:00:00",
        "modified_at": f"2024-02-{external_id:02d}T10:00:00",
        "author_name": "Sam Baker",
    }
    fields.update(overrides)
    return Document(**fields)


@pytest.fixture()
def documents() -> list[Document]:
    return [make_document(i) for i in (1, 2, 3)]


@pytest.fixture()
def repository(documents: list[Document]) -> InMemoryContentRepository:
    return InMemoryContentRepository(documents)


@pytest.fixture()
def fake_client() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()


@pytest.fixture()
def provider(fake_client: FakeEmbeddingClient) -> EmbeddingProvider:
    return EmbeddingProvider(
        fake_client, cache=InMemoryEmbeddingCache(), retry=RetryExecutor(3, 0)
    )


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()
