"""Query pipeline: text -> embedding -> backend hits -> canonical results.

Search is fail-soft.  Invalid parameters, an embedding failure or a backend
failure is logged and turns
into an empty result list, so a single bad query never breaks the caller.

Usage::

    from nlweb_search.retrieval.retriever import QueryPipeline

    pipeline = QueryPipeline(backend, provider, repository, site_name="My Blog")
    for r in pipeline.search("gluten free bread", {"limit": 5}):
        print(r.score, r.name, r.snippet)
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from nlweb_search.embeddings.provider import EmbeddingProvider
from nlweb_search.errors import SearchError
from nlweb_search.ingestion.loader import ContentRepository
from nlweb_search.ingestion.schema import SchemaMapper
from nlweb_search.retrieval.base import VectorBackend
from nlweb_search.retrieval.models import SearchQuery, SearchResult, VectorHit
from nlweb_search.retrieval.snippet import SnippetGenerator

logger = logging.getLogger(__name__)


def build_query(query_text: str, params: SearchQuery | Mapping[str, Any] | None) -> SearchQuery:
    """Normalise caller parameters into a :class:`SearchQuery`.

    ``post_type`` is accepted as an alias of ``content_type``.
    """
    if isinstance(params, SearchQuery):
        return params.model_copy(update={"text": query_text})
    params = dict(params or {})
    if "post_type" in params and not params.get("content_type"):
        params["content_type"] = params.pop("post_type")
    params.pop("post_type", None)
    return SearchQuery(text=query_text, **params)


class QueryPipeline:
    """Semantic search over one vector backend.

    Parameters
    ----------
    backend:
        Vector backend holding the indexed content.
    provider:
        Must be the same provider/model the content was indexed with.
    repository:
        Used to resolve hits back to live documents; hits whose document
        is gone are dropped.
    schema_mapper:
        Builds the ``schema_object`` of each result.
    site_name:
        Site label for results when the query names no site.
    """

    def __init__(
        self,
        backend: VectorBackend,
        provider: EmbeddingProvider,
        repository: ContentRepository,
        schema_mapper: SchemaMapper | None = None,
        *,
        site_name: str = "",
        snippets: SnippetGenerator | None = None,
    ) -> None:
        self.backend = backend
        self.provider = provider
        self.repository = repository
        self.schema_mapper = schema_mapper or SchemaMapper()
        self.site_name = site_name
        self.snippets = snippets or SnippetGenerator()

    def search(
        self, query_text: str, params: SearchQuery | Mapping[str, Any] | None = None
    ) -> list[SearchResult]:
        """Return results in backend order, best match first."""
        try:
            query = build_query(query_text, params)
        except (ValidationError, TypeError) as exc:
            logger.error("Invalid search parameters for %r: %s", query_text, exc)
            return []
        try:
            hits = self._hits(query)
        except SearchError as exc:
            logger.error("Search failed for %r: %s", query.text, exc)
            return []
        return [r for r in (self._to_result(query, h) for h in hits) if r is not None]

    # -- internals ------------------------------------------------------------

    def _hits(self, query: SearchQuery) -> list[VectorHit]:
        try:
            embedding = self.provider.get_embedding(query.text)
        except Exception as exc:
            raise SearchError(f"query embedding failed: {exc}") from exc

        try:
            return self.backend.search(
                embedding.values, limit=query.limit, filters=query.filters()
            )
        except Exception as exc:
            raise SearchError(f"{self.backend.name} search failed: {exc}") from exc

    def _to_result(self, query: SearchQuery, hit: VectorHit) -> SearchResult | None:
        try:
            document = self.repository.get_document(hit.external_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not resolve document %d: %s", hit.external_id, exc)
            return None
        if document is None:
            logger.debug("Dropping hit %s: document %d no longer exists", hit.id, hit.external_id)
            return None

        site = query.site if query.site and query.site != "all" else self.site_name
        return SearchResult(
            url=document.url or hit.url,
            name=document.title or hit.title,
            site=site,
            score=hit.score,
            snippet=self.snippets.snippet(hit.content or document.body, query.text),
            schema_object=self.schema_mapper.build_record(document),
        )
