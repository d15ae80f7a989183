"""Result Cache Module - Time-bounded keyed store shared by checks.

The cache is owned by the executor and handed to check code for the
duration of a run through ``active_cache()``. Entries expire lazily: an
expired entry is treated as absent on read but stays in the map until it
is overwritten or the cache is cleared.
"""

import hashlib
import json
import threading
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generator, List, Optional

DEFAULT_TTL_SECONDS = 300.0

_MISSING = object()


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the time it was stored."""
    content: Any
    stored_at: float


class ResultCache:
    """Thread-safe key/value cache with a fixed time-to-live."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            ttl: Lifetime of an entry in seconds, measured from insertion
            clock: Monotonic time source (injectable for tests)
        """
        if ttl < 0:
            raise ValueError("ttl must be non-negative")
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        """Get a cached value, or ``default`` if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or self._is_expired(entry):
            return default
        return entry.content

    def set(self, key: str, content: Any) -> None:
        """Store a value, replacing any previous entry wholesale."""
        entry = CacheEntry(content=content, stored_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def get_or_compute(self, key: str, factory: Callable[[], Any]) -> Any:
        """Get a cached value or compute and store it.

        ``factory`` runs outside the lock, so two threads missing the same
        key may both compute; the last write wins.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = factory()
        self.set(key, value)
        return value

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        """Get cache size and keys."""
        with self._lock:
            keys: List[str] = list(self._entries.keys())
        return {"size": len(keys), "keys": keys}

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.stored_at >= self.ttl

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def fingerprint(*parts: Any) -> str:
    """Build a cache key from a content fingerprint of ``parts``."""
    payload = json.dumps(parts, sort_keys=True, default=str)
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


_active_cache: ContextVar[Optional[ResultCache]] = ContextVar("active_cache", default=None)


def active_cache() -> Optional[ResultCache]:
    """Get the cache enabled for the current scan, if any."""
    return _active_cache.get()


@contextmanager
def using_cache(cache: Optional[ResultCache]) -> Generator[Optional[ResultCache], None, None]:
    """Make ``cache`` the active cache inside the block."""
    token = _active_cache.set(cache)
    try:
        yield cache
    finally:
        _active_cache.reset(token)
