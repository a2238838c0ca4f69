"""Time-bounded in-process cache for the discovery key set.

Only the discovery client writes to the cache, and it replaces the entry
as a whole, so concurrent readers never see a partially updated key set.
Two concurrent misses may both fetch and both write; the last writer wins,
which is harmless since any freshly fetched set is valid.

Security Note:
    Caching trades freshness for load. A key rotated out by the provider
    stays trusted until the entry expires or ``invalidate()`` is called.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import DEFAULT_CACHE_TTL

if TYPE_CHECKING:
    from .key_set import KeySet


@dataclass(frozen=True, slots=True)
class _CacheEntry:
    """Internal cache entry.

    Attributes:
        keys: The cached key set.
        fetched_at: Unix timestamp of the fetch that produced it.
    """

    keys: KeySet
    fetched_at: float


class KeySetCache:
    """Holds the last successfully fetched key set.

    Reads never trigger network activity; deciding whether a miss leads to
    a fetch is the discovery client's job.

    Example:
        ```python
        cache = KeySetCache(ttl_seconds=600)
        cache.put(keys)
        cache.get()  # -> keys, until 600 seconds have passed
        cache.invalidate()
        cache.get()  # -> None
        ```
    """

    def __init__(self, ttl_seconds: float = DEFAULT_CACHE_TTL) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._ttl = ttl_seconds
        self._entry: _CacheEntry | None = None

    def get(self, ttl_seconds: float | None = None) -> KeySet | None:
        """Return the cached set, or None if absent or expired.

        Args:
            ttl_seconds: Lifetime to apply to this read. Defaults to the
                lifetime given at construction.
        """
        entry = self._entry
        if entry is None:
            return None

        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        if time.time() - entry.fetched_at > ttl:
            return None

        return entry.keys

    def put(self, keys: KeySet) -> None:
        """Replace the cached set and stamp it with the current time."""
        self._entry = _CacheEntry(keys=keys, fetched_at=time.time())

    def invalidate(self) -> None:
        """Drop the cached set unconditionally."""
        self._entry = None
