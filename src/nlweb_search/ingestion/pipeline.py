"""Repository -> embeddings -> vector backend.

Ingestion is partial-failure tolerant: a document whose embedding fails is
logged and skipped, and a failed upsert batch does not stop the batches
after it.  Only configuration errors and collection-lifecycle errors abort
the whole call.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from nlweb_search.embeddings.provider import EmbeddingProvider
from nlweb_search.errors import ConfigError, IngestItemError, RepositoryError
from nlweb_search.ingestion.loader import ContentRepository
from nlweb_search.ingestion.models import Document
from nlweb_search.ingestion.schema import SchemaMapper
from nlweb_search.ingestion.text import strip_markup
from nlweb_search.retrieval.base import VectorBackend
from nlweb_search.retrieval.lifecycle import ensure_collection
from nlweb_search.retrieval.models import IngestResult, VectorRecord

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


def embedding_text(title: str, body: str) -> str:
    """Title first, then the body, separated by a blank line."""
    return f"{title}\n\n{body}"


class IngestPipeline:
    """Index one page of repository content into a vector backend.

    Parameters
    ----------
    backend:
        Target vector backend.
    provider:
        Embedding provider; its dimension defines the collection's.
    repository:
        Source of documents.
    schema_mapper:
        Maps content types to schema.org types.
    site_name:
        Stored with every vector and usable as a search filter.
    batch_size:
        Vectors per upsert call.
    max_workers:
        When greater than 1, documents are embedded by a thread pool of
        this size.  Upsert order still follows repository order.
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
        self.batch_size = max(1, batch_size)
        self.max_workers = max(1, max_workers)

    def ingest(self, content_type: str, limit: int = 100, offset: int = 0) -> IngestResult:
        dimension = self.provider.get_dimension()
        ensure_collection(self.backend, dimension)

        try:
            documents, _ = self.repository.list_documents(
                content_type, status="publish", limit=limit, offset=offset
            )
        except RepositoryError as exc:
            logger.error("Listing %s content failed: %s", content_type, exc)
            return IngestResult(status="error", message=str(exc))

        if not documents:
            return IngestResult(status="error", message="No posts found", total=0, processed=0)

        logger.info(
            "Ingesting %d %s document(s) into %s/%s",
            len(documents),
            content_type,
            self.backend.name,
            self.backend.collection_name,
        )
        records = self._embed_all(documents, dimension)
        written, lines = self._upsert_batches(records)

        return IngestResult(
            status="success" if written else "error",
            message=f"Processed {written} of {len(documents)} {content_type} item(s)",
            total=len(documents),
            processed=written,
            output="\n".join(lines),
        )

    # -- internals ------------------------------------------------------------

    def build_record(self, document: Document, dimension: int) -> VectorRecord:
        """Embed *document*; raise :class:`IngestItemError` on any per-item failure."""
        body = strip_markup(document.body)
        try:
            embedding = self.provider.get_embedding(embedding_text(document.title, body))
        except ConfigError:
            raise
        except Exception as exc:
            raise IngestItemError(document.external_id, str(exc)) from exc

        if embedding.dimension != dimension:
            raise IngestItemError(
                document.external_id,
                f"embedding has dimension {embedding.dimension}, collection expects {dimension}",
            )

        return VectorRecord(
            external_id=document.external_id,
            content_type=document.content_type,
            title=document.title,
            content=body,
            url=document.url,
            site=self.site_name,
            schema_type=self.schema_mapper.get_schema_type(document.content_type),
            vector=embedding.values,
        )

    def _try_record(self, document: Document, dimension: int) -> VectorRecord | None:
        try:
            return self.build_record(document, dimension)
        except IngestItemError as exc:
            logger.error("Skipping document: %s", exc)
            return None

    def _embed_all(self, documents: list[Document], dimension: int) -> list[VectorRecord]:
        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(lambda d: self._try_record(d, dimension), documents))
        else:
            results = [self._try_record(d, dimension) for d in documents]
        return [r for r in results if r is not None]

    def _upsert_batches(self, records: list[VectorRecord]) -> tuple[int, list[str]]:
        written = 0
        lines: list[str] = []
        for start in range(0, len(records), self.batch_size):
            batch = records[start : start + self.batch_size]
            number = start // self.batch_size + 1
            try:
                count = self.backend.upsert(batch)
            except Exception as exc:  # noqa: BLE001
                logger.error("Upsert batch %d (%d vectors) failed: %s", number, len(batch), exc)
                lines.append(f"Batch {number}: failed ({exc})")
                continue
            written += count
            lines.append(f"Batch {number}: upserted {count} vector(s)")
        return written, lines
