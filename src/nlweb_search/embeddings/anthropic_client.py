"""Anthropic-style embeddings (Voyage model family).

Anthropic does not serve embeddings itself and points users at Voyage AI,
so the default endpoint is Voyage's.  Both the OpenAI-like ``data[0]``
response shape and a bare ``embedding`` field are accepted.
"""

from __future__ import annotations

import requests

from nlweb_search.embeddings.base import post_json
from nlweb_search.errors import ConfigError, PermanentProviderError

VOYAGE_EMBEDDINGS_URL = "https://api.voyageai.com/v1/embeddings"

DIMENSIONS: dict[str, int] = {
    "voyage-3-large": 1024,
    "voyage-3": 1024,
    "voyage-3-lite": 512,
    "voyage-code-3": 1024,
    "voyage-finance-2": 1024,
    "voyage-law-2": 1024,
}
DEFAULT_DIMENSION = 1536

# Models that accept an output dimension, written "<model>:<dim>".
FLEXIBLE_MODELS = frozenset({"voyage-3-large", "voyage-code-3"})
FLEXIBLE_DIMENSIONS = frozenset({"256", "512", "1024", "2048"})

MODELS: dict[str, str] = {
    "voyage-3-large": "voyage-3-large (1024)",
    "voyage-3": "voyage-3 (1024)",
    "voyage-3-lite": "voyage-3-lite (512)",
    "voyage-code-3": "voyage-code-3 (1024)",
    "voyage-finance-2": "voyage-finance-2 (1024)",
    "voyage-law-2": "voyage-law-2 (1024)",
}


class AnthropicEmbeddingClient:
    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "voyage-3",
        *,
        endpoint: str = "",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint or VOYAGE_EMBEDDINGS_URL
        self.timeout = timeout
        self._session = session or requests.Session()

    def get_dimension_for_model(self, model: str) -> int:
        if ":" in model:
            base, dim = model.split(":", 1)
            if base in FLEXIBLE_MODELS and dim in FLEXIBLE_DIMENSIONS:
                return int(dim)
        return DIMENSIONS.get(model, DEFAULT_DIMENSION)

    def generate_embedding(self, text: str) -> list[float]:
        if not self.api_key:
            raise ConfigError("Anthropic API key is required")

        payload: dict = {"model": self.model, "input": text}
        if ":" in self.model:
            base, dim = self.model.split(":", 1)
            payload = {"model": base, "input": text, "output_dimension": int(dim)}

        data = post_json(
            self._session,
            self.endpoint,
            payload,
            label="Anthropic API",
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
        if isinstance(data.get("embedding"), list):
            return data["embedding"]
        try:
            return data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as exc:
            raise PermanentProviderError("Invalid response from Anthropic API") from exc
