"""Provider-agnostic embedding types and the shared HTTP call helper.

A provider variant is any object satisfying :class:`EmbeddingClient`: it
knows how to make one uncached API call and how many dimensions each of
its models produces.  Caching, truncation and retry live in
:class:`~nlweb_search.embeddings.provider.EmbeddingProvider`, which wraps
a client by composition.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests
from pydantic import BaseModel, Field

from nlweb_search.errors import PermanentProviderError, TransientProviderError

logger = logging.getLogger(__name__)


class EmbeddingClient(Protocol):
    """One embedding API variant (OpenAI, Anthropic-style, Gemini, Ollama)."""

    name: str
    model: str

    def generate_embedding(self, text: str) -> list[float]:
        """Make one uncached API call for *text*."""
        ...

    def get_dimension_for_model(self, model: str) -> int:
        """Static dimension lookup for *model*."""
        ...


class EmbeddingVector(BaseModel):
    """A vector tagged with the provider and model that produced it."""

    model_config = {"frozen": True}

    values: list[float] = Field(default_factory=list)
    provider: str
    model: str

    @property
    def dimension(self) -> int:
        return len(self.values)


def post_json(
    session: requests.Session,
    url: str,
    payload: dict[str, Any],
    *,
    label: str,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
) -> dict[str, Any]:
    """POST *payload* and return the decoded JSON body.

    Transport failures, 429 and 5xx become :class:`TransientProviderError`;
    any other non-200 status or an undecodable body becomes
    :class:`PermanentProviderError`.  *label* prefixes every message
    (``"OpenAI API error: ..."``).
    """
    try:
        resp = session.post(url, json=payload, headers=headers or {}, timeout=timeout)
    except requests.Timeout as exc:
        raise TransientProviderError(f"{label} timeout: {exc}") from exc
    except requests.ConnectionError as exc:
        raise TransientProviderError(f"{label} connection error: {exc}") from exc
    except requests.RequestException as exc:
        raise TransientProviderError(f"{label} request failed (temporary): {exc}") from exc

    if resp.status_code != 200:
        message = _error_message(resp)
        text = f"{label} error: HTTP {resp.status_code}: {message}"
        if resp.status_code == 429 or resp.status_code >= 500:
            raise TransientProviderError(text)
        raise PermanentProviderError(text)

    try:
        return resp.json()
    except ValueError as exc:
        raise PermanentProviderError(f"Invalid response from {label}: body is not JSON") from exc


def _error_message(resp: requests.Response) -> str:
    """Best-effort extraction of the provider's error message."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:500]
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if error:
            return str(error)
        if data.get("detail"):
            return str(data["detail"])
    return resp.text[:500]
