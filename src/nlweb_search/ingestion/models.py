"""Content snapshot taken from the repository at ingest time."""

from __future__ import annotations

from pydantic import BaseModel


class Document(BaseModel):
    """One published piece of site content.

    ``body`` is plain text; markup is stripped before the document is
    embedded.  Dates are kept as the repository reports them (ISO-8601).
    """

    model_config = {"frozen": True}

    external_id: int
    content_type: str = "post"
    title: str = ""
    body: str = ""
    url: str = ""
    published_at: str = ""
    modified_at: str = ""
    author_name: str = ""
    thumbnail_url: str | None = None
    excerpt: str = ""
