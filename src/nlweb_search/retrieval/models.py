"""Domain models for vector records, raw hits and canonical search results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MetadataFilter(BaseModel):
    """Equality filter on one indexed metadata field.

    Every backend translates a list of filters into its own native syntax
    (Chroma ``where``, Qdrant ``Filter``, Milvus boolean expression,
    Pinecone ``$eq`` document, Weaviate ``Filter.by_property``) and joins
    them with AND.
    """

    field: str
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, value=value)


class VectorRecord(BaseModel):
    """One document ready to be upserted: vector plus flat payload."""

    external_id: int
    content_type: str
    title: str = ""
    content: str = ""
    url: str = ""
    site: str = ""
    schema_type: str = "Article"
    vector: list[float] = Field(default_factory=list)

    def payload(self) -> dict[str, Any]:
        """Flat metadata stored next to the vector (everything but the vector)."""
        return {
            "doc_id": self.external_id,
            "content_type": self.content_type,
            "title": self.title,
            "content": self.content,
            "url": self.url,
            "site": self.site,
            "schema_type": self.schema_type,
        }


class VectorHit(BaseModel):
    """A backend match after score normalisation.

    ``score`` is always a similarity in ``[0, 1]``, higher is better,
    whatever the backend's native metric.
    """

    id: str
    external_id: int
    score: float
    content_type: str = ""
    title: str = ""
    content: str = ""
    url: str = ""

    @classmethod
    def from_payload(cls, hit_id: Any, score: float, payload: dict[str, Any]) -> VectorHit:
        return cls(
            id=str(hit_id),
            external_id=int(payload.get("doc_id", 0)),
            score=score,
            content_type=payload.get("content_type") or "",
            title=payload.get("title") or "",
            content=payload.get("content") or "",
            url=payload.get("url") or "",
        )


class SearchQuery(BaseModel):
    text: str
    site: str | None = None
    content_type: str | None = None
    limit: int = Field(default=10, ge=1)

    def filters(self) -> list[MetadataFilter]:
        filters: list[MetadataFilter] = []
        if self.content_type:
            filters.append(MetadataFilter.equals("content_type", self.content_type))
        if self.site and self.site != "all":
            filters.append(MetadataFilter.equals("site", self.site))
        return filters


class SearchResult(BaseModel):
    """Canonical result handed to the caller.

    Serialised with ``by_alias=True`` the snippet appears as
    ``description``, the field name consumers of the ``/ask`` endpoint
    expect.
    """

    url: str
    name: str
    site: str
    score: float
    snippet: str = Field(default="", serialization_alias="description")
    schema_object: dict[str, Any] = Field(default_factory=dict)


class IngestResult(BaseModel):
    status: str
    message: str = ""
    total: int = 0
    processed: int = 0
    output: str = ""


class ClearResult(BaseModel):
    status: str
    message: str = ""
    removed_count: int = 0
