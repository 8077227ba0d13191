"""Process-wide store of per-book computed aggregate snapshots.

Entries are keyed by book id and filled lazily by the read path. There is
no expiry: an entry lives until the book (or one of its reviews) changes
and the mutation path evicts it.

Every eviction bumps a per-key generation. A reader takes the generation
before computing a snapshot and passes it back to ``set``; if an eviction
happened in between, the write is dropped so a read that started before a
mutation cannot reinstate a pre-mutation value. Clearing the cache bumps
every generation at once, including keys it has never seen.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..config import get_config


class AggregateCache(ABC):
    """Keyed store of computed per-book state."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value for key, or None."""

    @abstractmethod
    def set(self, key: str, value: Any, generation: Optional[int] = None) -> bool:
        """Store value under key.

        Args:
            key: Book id
            value: Snapshot to cache
            generation: Generation observed before computing the value.
                        The write is skipped if the key was evicted since.

        Returns:
            True if the value was stored
        """

    @abstractmethod
    def evict(self, key: str) -> None:
        """Drop the entry for key. Evicting an absent key is a no-op."""

    @abstractmethod
    def generation(self, key: str) -> int:
        """Current eviction generation of key."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""


class MemoryCache(AggregateCache):
    """In-process dictionary cache."""

    def __init__(self):
        self._entries: dict[str, Any] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any, generation: Optional[int] = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation(key):
                return False
            self._entries[key] = value
            return True

    def evict(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1

    def _generation(self, key: str) -> int:
        # Both terms only grow, so an old token never matches again
        return self._epoch + self._generations.get(key, 0)

    def generation(self, key: str) -> int:
        with self._lock:
            return self._generation(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._epoch += 1

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class NullCache(AggregateCache):
    """Cache that never stores anything; every read recomputes."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, generation: Optional[int] = None) -> bool:
        return False

    def evict(self, key: str) -> None:
        pass

    def generation(self, key: str) -> int:
        return 0

    def clear(self) -> None:
        pass


def create_cache(backend: str) -> AggregateCache:
    """Build a cache for a configured backend name.

    Args:
        backend: "memory" or "none"

    Returns:
        Cache instance

    Raises:
        ValueError: If the backend is unknown
    """
    if backend == "memory":
        return MemoryCache()
    if backend == "none":
        return NullCache()
    raise ValueError(f"Unknown cache backend: {backend}")


# Global cache instance, lives for the whole process
_cache: Optional[AggregateCache] = None


def get_cache() -> AggregateCache:
    """Get or create the global cache instance."""
    global _cache
    if _cache is None:
        _cache = create_cache(get_config().cache_backend)
    return _cache


def reset_cache() -> None:
    """Reset the global cache instance. Used for testing."""
    global _cache
    _cache = None
