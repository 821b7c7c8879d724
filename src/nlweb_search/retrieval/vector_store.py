"""Caller-facing vector store: lifecycle, ingest, search and clear over any backend."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from nlweb_search.config import ProviderConfig, Settings, VectorStoreConfig
from nlweb_search.embeddings.factory import create_embedding_provider
from nlweb_search.embeddings.provider import EmbeddingProvider
from nlweb_search.ingestion.loader import ContentRepository
from nlweb_search.ingestion.pipeline import DEFAULT_BATCH_SIZE, IngestPipeline
from nlweb_search.ingestion.schema import SchemaMapper
from nlweb_search.retrieval.base import VectorBackend
from nlweb_search.retrieval.factory import create_backend
from nlweb_search.retrieval.lifecycle import ensure_collection
from nlweb_search.retrieval.models import ClearResult, IngestResult, SearchQuery, SearchResult
from nlweb_search.retrieval.retriever import QueryPipeline

logger = logging.getLogger(__name__)


class VectorStore:
    """One backend, one embedding provider, one content repository.

    The backend only knows raw vectors; everything shared between the five
    engines (collection lifecycle, batching, result assembly) lives here
    and in the two pipelines it delegates to.
    """

    def __init__(
        self,
        backend: VectorBackend,
        provider: EmbeddingProvider,
        repository: ContentRepository,
        schema_mapper: SchemaMapper | None = None,
        *,
        site_name: str = "",
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_workers: int = 1,
    ) -> None:
        self.backend = backend
        self.provider = provider
        self.repository = repository
        self.schema_mapper = schema_mapper or SchemaMapper()
        self.site_name = site_name
        self.ingest_pipeline = IngestPipeline(
            backend,
            provider,
            repository,
            self.schema_mapper,
            site_name=site_name,
            batch_size=batch_size,
            max_workers=max_workers,
        )
        self.query_pipeline = QueryPipeline(
            backend, provider, repository, self.schema_mapper, site_name=site_name
        )

    @classmethod
    def from_config(
        cls,
        provider_config: ProviderConfig,
        store_config: VectorStoreConfig,
        repository: ContentRepository,
        *,
        site_name: str = "",
        client: Any = None,
    ) -> VectorStore:
        """Build provider and backend from their configs."""
        provider = create_embedding_provider(provider_config)
        backend = create_backend(store_config, client=client)
        return cls(
            backend,
            provider,
            repository,
            site_name=site_name,
            batch_size=store_config.batch_size,
            max_workers=provider_config.max_workers,
        )

    @classmethod
    def from_settings(cls, settings: Settings, repository: ContentRepository) -> VectorStore:
        provider_config = settings.provider_config()
        provider = create_embedding_provider(provider_config)
        store_config = settings.vector_store_config(provider.get_dimension())
        return cls(
            create_backend(store_config),
            provider,
            repository,
            site_name=settings.site_name,
            batch_size=store_config.batch_size,
            max_workers=provider_config.max_workers,
        )

    @property
    def dimension(self) -> int:
        return self.provider.get_dimension()

    def initialize_collections(self) -> bool:
        """Create the collection, or recreate it when the dimension changed.

        Returns ``False`` when the backend could not be reached or refused
        the operation.
        """
        try:
            ensure_collection(self.backend, self.dimension)
        except Exception:
            logger.exception(
                "Initialising %s collection %r failed",
                self.backend.name,
                self.backend.collection_name,
            )
            return False
        return True

    def ingest_content(self, content_type: str, limit: int = 100, offset: int = 0) -> IngestResult:
        return self.ingest_pipeline.ingest(content_type, limit, offset)

    def search(
        self, query_text: str, params: SearchQuery | Mapping[str, Any] | None = None
    ) -> list[SearchResult]:
        return self.query_pipeline.search(query_text, params)

    def clear_database(self) -> ClearResult:
        """Drop every stored vector and start again with an empty collection."""
        removed = self.backend.count()
        if self.backend.collection_exists():
            self.backend.drop_collection()
        logger.warning(
            "Cleared %s collection %r (%d vector(s) removed)",
            self.backend.name,
            self.backend.collection_name,
            removed,
        )
        if not self.initialize_collections():
            return ClearResult(
                status="error",
                message="Collection dropped but could not be recreated",
                removed_count=removed,
            )
        return ClearResult(
            status="success",
            message=f"Removed {removed} item(s) from {self.backend.collection_name}",
            removed_count=removed,
        )
