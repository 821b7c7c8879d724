"""Exception hierarchy shared by the embedding, retrieval and ingestion layers.

Only configuration and collection-lifecycle errors are allowed to abort a
whole operation.  Per-document ingest failures are logged and skipped, and
search failures degrade to an empty result list.
"""

from __future__ import annotations


class NLWebSearchError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(NLWebSearchError):
    """Missing or invalid configuration (credential, model, backend name)."""


# -- embedding ----------------------------------------------------------------


class EmbeddingError(NLWebSearchError):
    """An embedding could not be produced."""


class TransientProviderError(EmbeddingError):
    """Network, rate-limit or 5xx failure.  Eligible for retry."""


class PermanentProviderError(EmbeddingError):
    """Authentication, bad-request or malformed-response failure."""


class ModelPullingError(EmbeddingError):
    """A local model is still being downloaded; the caller should try again shortly."""

    def __init__(self, model: str, message: str | None = None) -> None:
        self.model = model
        super().__init__(message or f"Model {model!r} is being pulled, try again shortly")


class RetryExhaustedError(EmbeddingError):
    """Every retry attempt failed.  ``last_error`` holds the final failure."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed after {attempts} attempts. Last error: {last_error}")


# -- vector store -------------------------------------------------------------


class BackendError(NLWebSearchError):
    """The vector engine rejected or failed a request."""


class DimensionMismatchError(BackendError):
    """Collection dimension differs from the active provider's dimension."""

    def __init__(self, collection: str, current: int, expected: int) -> None:
        self.collection = collection
        self.current = current
        self.expected = expected
        super().__init__(
            f"Collection {collection!r} has dimension {current}, provider reports {expected}"
        )


# -- pipelines ----------------------------------------------------------------


class IngestItemError(NLWebSearchError):
    """A single document could not be prepared for indexing."""

    def __init__(self, external_id: int, reason: str) -> None:
        self.external_id = external_id
        super().__init__(f"Document {external_id}: {reason}")


class SearchError(NLWebSearchError):
    """Embedding or backend failure while answering a query."""


class RepositoryError(NLWebSearchError):
    """The content repository could not be read."""
