"""HTML and shortcode removal for post bodies."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

SHORTCODE_RE = re.compile(r"\[/?[a-zA-Z0-9_\-]+( [^\]]+)?\]")
_WS_RE = re.compile(r"\s+")


def strip_shortcodes(text: str) -> str:
    """Remove ``[shortcode attr="x"]`` and ``[/shortcode]`` tags."""
    return SHORTCODE_RE.sub("", text)


def strip_markup(html: str) -> str:
    """Convert a rendered post body to plain text."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(separator=" ")
    return _WS_RE.sub(" ", strip_shortcodes(text)).strip()
