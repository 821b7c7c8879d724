"""TTL cache for embedding vectors.

The provider only depends on the two-method :class:`EmbeddingCache`
protocol, so the in-process store below can be swapped for Redis, a
database table, or anything else with ``get``/``set`` semantics.
"""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from typing import Callable, Protocol

KEY_PREFIX = "nlweb_embedding_"


def make_cache_key(text: str, model: str, provider: str) -> str:
    """Deterministic key for ``(text, model, provider)``."""
    digest = hashlib.md5(f"{text}|{model}|{provider}".encode("utf-8")).hexdigest()
    return KEY_PREFIX + digest


class EmbeddingCache(Protocol):
    def get(self, key: str) -> list[float] | None: ...

    def set(self, key: str, value: list[float], ttl: int) -> None: ...


@dataclass
class CacheEntry:
    value: list[float]
    expires_at: float


class InMemoryEmbeddingCache:
    """Dict-backed cache with lazy expiry.

    Expired entries are dropped when they are next read; there is no
    background sweep.  Concurrent misses for the same key may both write,
    which is harmless since the cached value is a pure function of the key.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    def get(self, key: str) -> list[float] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: list[float], ttl: int) -> None:
        self._entries[key] = CacheEntry(value=list(value), expires_at=self._clock() + ttl)

    def __len__(self) -> int:
        return len(self._entries)
