"""OpenAI embeddings API."""

from __future__ import annotations

import requests

from nlweb_search.embeddings.base import post_json
from nlweb_search.errors import ConfigError, PermanentProviderError

OPENAI_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"

DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}
DEFAULT_DIMENSION = 1536

MODELS: dict[str, str] = {
    "text-embedding-3-small": "text-embedding-3-small (1536)",
    "text-embedding-3-large": "text-embedding-3-large (3072)",
    "text-embedding-ada-002": "text-embedding-ada-002 (1536, legacy)",
}


class OpenAIEmbeddingClient:
    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        *,
        endpoint: str = "",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint or OPENAI_EMBEDDINGS_URL
        self.timeout = timeout
        self._session = session or requests.Session()

    def get_dimension_for_model(self, model: str) -> int:
        return DIMENSIONS.get(model, DEFAULT_DIMENSION)

    def generate_embedding(self, text: str) -> list[float]:
        if not self.api_key:
            raise ConfigError("OpenAI API key is required")

        data = post_json(
            self._session,
            self.endpoint,
            {"model": self.model, "input": text},
            label="OpenAI API",
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
        try:
            return data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as exc:
            raise PermanentProviderError("Invalid response from OpenAI API") from exc
