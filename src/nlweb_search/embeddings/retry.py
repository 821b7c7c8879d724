"""Bounded retry with exponential backoff for external API calls."""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, TypeVar

from nlweb_search.errors import (
    ConfigError,
    ModelPullingError,
    PermanentProviderError,
    RetryExhaustedError,
    TransientProviderError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"rate limit", re.IGNORECASE),
    re.compile(r"too many requests", re.IGNORECASE),
    re.compile(r"timeout", re.IGNORECASE),
    re.compile(r"connection", re.IGNORECASE),
    re.compile(r"socket", re.IGNORECASE),
    re.compile(r"temporary", re.IGNORECASE),
    re.compile(r"overloaded", re.IGNORECASE),
    re.compile(r"capacity", re.IGNORECASE),
    re.compile(r"5[0-9]{2}"),
)

# Never retried regardless of message text.
_NEVER_RETRY = (ConfigError, ModelPullingError, PermanentProviderError)


def is_retryable(error: BaseException) -> bool:
    """Return ``True`` when *error* looks transient."""
    if isinstance(error, _NEVER_RETRY):
        return False
    if isinstance(error, TransientProviderError):
        return True
    message = str(error)
    return any(pattern.search(message) for pattern in RETRYABLE_PATTERNS)


class RetryExecutor:
    """Run an operation, retrying transient failures.

    Parameters
    ----------
    attempts:
        Total number of tries, first call included.
    base_delay_ms:
        Delay before the second try; doubles after each further failure.
    """

    def __init__(self, attempts: int = 3, base_delay_ms: int = 1000) -> None:
        self.attempts = max(1, attempts)
        self.base_delay_ms = base_delay_ms

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the 0-indexed *attempt* failed."""
        return self.base_delay_ms * (2**attempt) / 1000.0

    def run(self, operation: Callable[..., T], *args: object, **kwargs: object) -> T:
        last_error: Exception | None = None
        for attempt in range(self.attempts):
            try:
                return operation(*args, **kwargs)
            except Exception as exc:
                last_error = exc
                logger.warning("Embedding error (attempt %d/%d): %s", attempt + 1, self.attempts, exc)
                if not is_retryable(exc):
                    raise
                if attempt + 1 < self.attempts:
                    time.sleep(self.delay_for(attempt))

        raise RetryExhaustedError(self.attempts, last_error) from last_error
