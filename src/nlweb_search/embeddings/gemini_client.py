"""Google Gemini ``embedContent`` API."""

from __future__ import annotations

import requests

from nlweb_search.embeddings.base import post_json
from nlweb_search.errors import ConfigError, PermanentProviderError

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1/models"

DIMENSIONS: dict[str, int] = {
    "embedding-001": 768,
    "text-embedding-004": 768,
}
DEFAULT_DIMENSION = 768

MODELS: dict[str, str] = {
    "embedding-001": "embedding-001 (768)",
    "text-embedding-004": "text-embedding-004 (768)",
}


class GeminiEmbeddingClient:
    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "embedding-001",
        *,
        endpoint: str = "",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model or "embedding-001"
        self.endpoint = endpoint or GEMINI_BASE_URL
        self.timeout = timeout
        self._session = session or requests.Session()

    def get_dimension_for_model(self, model: str) -> int:
        return DIMENSIONS.get(model, DEFAULT_DIMENSION)

    def generate_embedding(self, text: str) -> list[float]:
        if not self.api_key:
            raise ConfigError("Google API key is required")

        url = f"{self.endpoint.rstrip('/')}/{self.model}:embedContent?key={self.api_key}"
        data = post_json(
            self._session,
            url,
            {"content": {"parts": [{"text": text}]}},
            label="Google Gemini API",
            timeout=self.timeout,
        )
        try:
            return data["embedding"]["values"]
        except (KeyError, TypeError) as exc:
            raise PermanentProviderError("Invalid response from Google Gemini API") from exc
