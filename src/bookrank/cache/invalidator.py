"""Eviction of cached book aggregates after mutations."""

import logging
from typing import Optional

from .store import AggregateCache, get_cache

logger = logging.getLogger(__name__)


class CacheInvalidator:
    """Evicts a book's cached state whenever the book or its reviews change.

    Called by the mutation paths after the storage write has committed and
    before they return. A failing cache backend never fails the write: the
    error is logged and the mutation stands.
    """

    def __init__(self, cache: Optional[AggregateCache] = None):
        """Initialize invalidator.

        Args:
            cache: Cache to evict from. Defaults to the process-wide cache.
        """
        self.cache = cache if cache is not None else get_cache()

    def invalidate(self, book_id: str) -> bool:
        """Evict the entry for a book.

        Args:
            book_id: Book ID

        Returns:
            True if the eviction went through, False if the backend failed
        """
        try:
            self.cache.evict(str(book_id))
        except Exception as e:
            logger.warning("Could not evict cached aggregates for book %s: %s", book_id, e)
            return False

        logger.debug("Evicted cached aggregates for book %s", book_id)
        return True
