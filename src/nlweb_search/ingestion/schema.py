"""Schema.org records for indexed content."""

from __future__ import annotations

from typing import Any

from nlweb_search.ingestion.models import Document

SCHEMA_TYPES: dict[str, str] = {
    "post": "Article",
    "page": "WebPage",
    "product": "Product",
    "event": "Event",
    "recipe": "Recipe",
    "course": "Course",
    "book": "Book",
    "movie": "Movie",
    "restaurant": "Restaurant",
    "service": "Service",
}
DEFAULT_SCHEMA_TYPE = "Article"

EXCERPT_WORDS = 55


def make_excerpt(text: str, words: int = EXCERPT_WORDS) -> str:
    """First *words* words of *text*, with an ellipsis when cut."""
    parts = text.split()
    if len(parts) <= words:
        return " ".join(parts)
    return " ".join(parts[:words]) + "…"


class SchemaMapper:
    """Builds the structured metadata record attached to every result."""

    def __init__(self, type_map: dict[str, str] | None = None) -> None:
        self.type_map = dict(SCHEMA_TYPES if type_map is None else type_map)

    def get_schema_type(self, content_type: str) -> str:
        return self.type_map.get(content_type, DEFAULT_SCHEMA_TYPE)

    def build_record(self, document: Document) -> dict[str, Any]:
        """Return the schema.org JSON-LD object for *document*."""
        record: dict[str, Any] = {
            "@context": "https://schema.org",
            "@type": self.get_schema_type(document.content_type),
            "mainEntityOfPage": {"@type": "WebPage", "@id": document.url},
            "headline": document.title,
            "url": document.url,
            "datePublished": document.published_at,
            "dateModified": document.modified_at,
            "author": {"@type": "Person", "name": document.author_name},
            "description": document.excerpt or make_excerpt(document.body),
        }
        if document.thumbnail_url:
            record["image"] = document.thumbnail_url
        return record
