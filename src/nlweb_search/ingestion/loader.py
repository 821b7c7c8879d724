"""Content repositories: where documents are listed from and looked up by id."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

import requests

from nlweb_search.errors import RepositoryError
from nlweb_search.ingestion.models import Document
from nlweb_search.ingestion.text import strip_markup

logger = logging.getLogger(__name__)


class ContentRepository(Protocol):
    """Read access to published site content."""

    def list_documents(
        self,
        content_type: str,
        *,
        status: str = "publish",
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Document], int]:
        """Return one page of documents, newest first, and the total count."""
        ...

    def get_document(self, external_id: int) -> Document | None:
        """Return the document with *external_id*, or ``None`` if it is gone."""
        ...


class InMemoryContentRepository:
    """Repository over a fixed list of documents (tests, notebooks, imports)."""

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._documents: dict[int, Document] = {d.external_id: d for d in documents}

    def add(self, document: Document) -> None:
        self._documents[document.external_id] = document

    def remove(self, external_id: int) -> None:
        self._documents.pop(external_id, None)

    def list_documents(
        self,
        content_type: str,
        *,
        status: str = "publish",
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Document], int]:
        matching = [d for d in self._documents.values() if d.content_type == content_type]
        # stable sort keeps insertion order for equal dates
        matching.sort(key=lambda d: d.published_at, reverse=True)
        return matching[offset : offset + limit], len(matching)

    def get_document(self, external_id: int) -> Document | None:
        return self._documents.get(external_id)


# -- WordPress REST API -------------------------------------------------------

REST_BASES: dict[str, str] = {"post": "posts", "page": "pages"}


def _rendered(field: Any) -> str:
    if isinstance(field, dict):
        return field.get("rendered", "") or ""
    return field or ""


def document_from_wp(item: dict[str, Any]) -> Document:
    """Convert one ``/wp/v2`` item (fetched with ``_embed``) to a :class:`Document`."""
    embedded = item.get("_embedded") or {}
    authors = embedded.get("author") or [{}]
    media = embedded.get("wp:featuredmedia") or [{}]
    return Document(
        external_id=int(item["id"]),
        content_type=item.get("type", "post"),
        title=strip_markup(_rendered(item.get("title"))),
        body=strip_markup(_rendered(item.get("content"))),
        url=item.get("link", ""),
        published_at=item.get("date", "") or "",
        modified_at=item.get("modified", "") or "",
        author_name=authors[0].get("name", "") or "",
        thumbnail_url=media[0].get("source_url") or None,
        excerpt=strip_markup(_rendered(item.get("excerpt"))),
    )


class WordPressRestRepository:
    """Reads published content from a WordPress site's REST API.

    Parameters
    ----------
    base_url:
        Site root, e.g. ``https://example.com``.
    content_types:
        Types searched by :meth:`get_document`, which only knows an id.
    session:
        Optional pre-configured :class:`requests.Session` (auth, retries).
    """

    def __init__(
        self,
        base_url: str,
        *,
        content_types: Iterable[str] = ("post", "page"),
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_root = f"{base_url.rstrip('/')}/wp-json/wp/v2"
        self.content_types = list(content_types)
        self.timeout = timeout
        self._session = session or requests.Session()

    @staticmethod
    def rest_base(content_type: str) -> str:
        return REST_BASES.get(content_type, content_type)

    def _get(self, path: str, params: dict[str, Any]) -> requests.Response:
        url = f"{self.api_root}/{path}"
        try:
            return self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RepositoryError(f"WordPress request failed for {url}: {exc}") from exc

    def list_documents(
        self,
        content_type: str,
        *,
        status: str = "publish",
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Document], int]:
        resp = self._get(
            self.rest_base(content_type),
            {
                "status": status,
                "per_page": limit,
                "offset": offset,
                "orderby": "date",
                "order": "desc",
                "_embed": 1,
            },
        )
        # WordPress answers 400 when the offset is past the last page
        if resp.status_code == 400:
            return [], 0
        if resp.status_code != 200:
            raise RepositoryError(
                f"WordPress returned HTTP {resp.status_code} listing {content_type!r}"
            )

        documents = [document_from_wp(item) for item in resp.json()]
        total = int(resp.headers.get("X-WP-Total", len(documents)))
        logger.info("Fetched %d %s item(s) (total %d)", len(documents), content_type, total)
        return documents, total

    def get_document(self, external_id: int) -> Document | None:
        for content_type in self.content_types:
            resp = self._get(f"{self.rest_base(content_type)}/{external_id}", {"_embed": 1})
            if resp.status_code == 200:
                return document_from_wp(resp.json())
            if resp.status_code not in (401, 403, 404):
                raise RepositoryError(
                    f"WordPress returned HTTP {resp.status_code} for document {external_id}"
                )
        return None
