"""
Ingestion: content repositories, markup stripping, schema.org mapping and
the pipeline that embeds documents into the vector store.

Public surface
--------------
- :class:`IngestPipeline`: one page of repository content → vectors.
- :class:`ContentRepository`: read access to published content.
- :class:`InMemoryContentRepository`, :class:`WordPressRestRepository`.
- :class:`SchemaMapper`: content type → schema.org record.
- :class:`Document`: immutable content snapshot.
"""

from nlweb_search.ingestion.loader import (
    ContentRepository,
    InMemoryContentRepository,
    WordPressRestRepository,
)
from nlweb_search.ingestion.models import Document
from nlweb_search.ingestion.schema import SchemaMapper
from nlweb_search.ingestion.text import strip_markup

__all__ = [
    "ContentRepository",
    "Document",
    "InMemoryContentRepository",
    "IngestPipeline",
    "SchemaMapper",
    "WordPressRestRepository",
    "strip_markup",
]


def __getattr__(name: str):  # noqa: ANN001
    """IngestPipeline pulls in the retrieval package; import it on first use."""
    if name == "IngestPipeline":
        from nlweb_search.ingestion.pipeline import IngestPipeline

        return IngestPipeline
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
