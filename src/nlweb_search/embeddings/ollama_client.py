"""Ollama (local server) embeddings, with on-demand model pulls."""

from __future__ import annotations

import logging
import threading
import time

import requests

from nlweb_search.embeddings.base import post_json
from nlweb_search.errors import (
    ConfigError,
    ModelPullingError,
    PermanentProviderError,
    TransientProviderError,
)

logger = logging.getLogger(__name__)

DIMENSIONS: dict[str, int] = {
    "nomic-embed-text": 768,
    "snowflake-arctic-embed2": 1024,
    "granite-embedding": 1536,
}
DEFAULT_DIMENSION = 2048

MODELS: dict[str, str] = {
    "nomic-embed-text": "nomic-embed-text (768)",
    "snowflake-arctic-embed2": "snowflake-arctic-embed2 (1024)",
    "granite-embedding": "granite-embedding (1536)",
    "gemma:2b": "Gemma 2B (2048)",
    "gemma:7b": "Gemma 7B (2048)",
    "llama3": "Llama 3 8B (4096)",
    "mistral": "Mistral (4096)",
    "phi3": "Phi-3 Mini (2048)",
    "qwen2": "Qwen 2 7B (4096)",
}

EMBED_TIMEOUT = 60.0
PULL_TIMEOUT = 180.0


class OllamaEmbeddingClient:
    """Embeddings from a local Ollama server.

    Before each request the configured model is looked up on the server.  A
    missing model is pulled; while that pull is still running every call
    fails with :class:`ModelPullingError` so callers can say "try again
    shortly" instead of reporting a hard failure.
    """

    name = "ollama"

    def __init__(
        self,
        model: str = "nomic-embed-text",
        *,
        server_url: str = "http://localhost:11434",
        timeout: float = EMBED_TIMEOUT,
        pull_timeout: float = PULL_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.model = model
        self.server_url = (server_url or "http://localhost:11434").rstrip("/")
        self.timeout = timeout
        self.pull_timeout = pull_timeout
        self._session = session or requests.Session()
        self._pull_started: float | None = None
        self._pull_lock = threading.Lock()

    def get_dimension_for_model(self, model: str) -> int:
        return DIMENSIONS.get(model, DEFAULT_DIMENSION)

    def list_models(self) -> list[str]:
        """Names of the models present on the server."""
        try:
            resp = self._session.get(f"{self.server_url}/api/tags", timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransientProviderError(f"Ollama connection error: {exc}") from exc
        if resp.status_code != 200:
            raise TransientProviderError(
                f"Ollama API error when checking available models: HTTP {resp.status_code}"
            )
        return [m["name"] for m in resp.json().get("models", []) if "name" in m]

    def ensure_model_available(self) -> bool:
        """Make sure the configured model exists locally, pulling it if needed.

        Returns ``False`` when the server refused the pull.  A pull that
        timed out counts as running for ``pull_timeout`` seconds; once that
        window has passed without the model appearing, the pull is sent
        again.  Safe to call from several worker threads.

        Raises
        ------
        ModelPullingError
            The pull is still in progress.
        """
        with self._pull_lock:
            available = self.list_models()
            if self.model in available or f"{self.model}:latest" in available:
                self._pull_started = None
                return True

            if self._pull_started is not None:
                if time.monotonic() - self._pull_started < self.pull_timeout:
                    raise ModelPullingError(self.model)
                logger.warning(
                    "Ollama model %r still missing %.0fs after its pull started, pulling again",
                    self.model,
                    self.pull_timeout,
                )
                self._pull_started = None

            return self._pull()

    def _pull(self) -> bool:
        logger.info("Ollama model %r not found, pulling it", self.model)
        try:
            resp = self._session.post(
                f"{self.server_url}/api/pull",
                json={"name": self.model, "stream": False},
                timeout=self.pull_timeout,
            )
        except requests.Timeout as exc:
            self._pull_started = time.monotonic()
            raise ModelPullingError(self.model) from exc
        except requests.RequestException as exc:
            raise TransientProviderError(f"Ollama connection error: {exc}") from exc

        if resp.status_code != 200:
            logger.error("Failed to pull Ollama model %r: %s", self.model, resp.text[:500])
            return False

        logger.info("Pulled Ollama model %r", self.model)
        return True

    def generate_embedding(self, text: str) -> list[float]:
        if not self.model:
            raise ConfigError("Ollama model name is required")

        if not self.ensure_model_available():
            raise PermanentProviderError(f"Ollama model {self.model!r} is not available")

        data = post_json(
            self._session,
            f"{self.server_url}/api/embeddings",
            {"model": self.model, "prompt": text},
            label="Ollama API",
            timeout=self.timeout,
        )
        if not isinstance(data.get("embedding"), list):
            raise PermanentProviderError("Invalid response from Ollama API")
        return data["embedding"]
