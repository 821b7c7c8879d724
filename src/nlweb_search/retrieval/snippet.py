"""Query-aware excerpts for search results."""

from __future__ import annotations

import re

ELLIPSIS = "..."
MIN_TERM_LENGTH = 3
FALLBACK_LENGTH = 160
CONTEXT_BEFORE = 60
CONTEXT_AFTER = 100

SHORTCODE_RE = re.compile(r"\[/?[a-zA-Z0-9_\-]+( [^\]]+)?\]")


def _first_match(lowered: str, terms: list[str]) -> int | None:
    """Lowest offset in *lowered* at which any of *terms* occurs."""
    offsets = [pos for pos in (lowered.find(t) for t in terms) if pos >= 0]
    return min(offsets) if offsets else None


def generate_snippet(content: str, query: str) -> str:
    """Return an excerpt of *content* around the earliest query term.

    Terms shorter than three characters are ignored.  The window reaches
    60 characters before and 100 after the match and is widened to the
    surrounding spaces so no word is cut.  Ellipses mark truncation on
    either side.  Without a match the first 160 characters are returned.
    Leftover shortcodes are removed from the excerpt.
    """
    terms = [t for t in query.lower().split() if len(t) >= MIN_TERM_LENGTH]
    offset = _first_match(content.lower(), terms) if terms else None

    if offset is None:
        return SHORTCODE_RE.sub("", content)[:FALLBACK_LENGTH] + ELLIPSIS

    start = max(0, offset - CONTEXT_BEFORE)
    end = min(len(content), offset + CONTEXT_AFTER)

    while start > 0 and content[start] != " ":
        start -= 1
    while end < len(content) and content[end] != " ":
        end += 1

    snippet = SHORTCODE_RE.sub("", content[start:end]).strip()
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(content):
        snippet = snippet + ELLIPSIS
    return snippet


class SnippetGenerator:
    """Callable wrapper around :func:`generate_snippet`."""

    def snippet(self, content: str, query: str) -> str:
        return generate_snippet(content, query)

    __call__ = snippet
