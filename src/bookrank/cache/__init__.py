"""Per-book aggregate cache and its invalidation."""

from .invalidator import CacheInvalidator
from .store import (
    AggregateCache,
    MemoryCache,
    NullCache,
    create_cache,
    get_cache,
    reset_cache,
)

__all__ = [
    "AggregateCache",
    "CacheInvalidator",
    "MemoryCache",
    "NullCache",
    "create_cache",
    "get_cache",
    "reset_cache",
]
