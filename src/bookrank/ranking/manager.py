"""Ranking manager: runs ranking queries and serves per-book statistics."""

import logging
from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from ..cache.store import AggregateCache, get_cache
from ..db.models import Book, utcnow
from ..db.sqlite import Database, get_db
from .aggregates import summarize
from .presets import get_preset
from .query import BookQuery
from .range_filter import ALL_TIME, DateRange, filter_by_range
from .schemas import BookStats, RankedBook

logger = logging.getLogger(__name__)


class RankingManager:
    """Entry point for ranked listings and book statistics."""

    def __init__(self, db: Optional[Database] = None, cache: Optional[AggregateCache] = None):
        """Initialize ranking manager.

        Args:
            db: Database instance
            cache: Cache for per-book statistics, defaults to the process-wide one
        """
        self.db = db or get_db()
        self.cache = cache if cache is not None else get_cache()

    def rank(
        self,
        query: Union[BookQuery, str],
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[RankedBook]:
        """Run a composed query or a named preset.

        Args:
            query: BookQuery, or a preset name
            limit: Maximum number of books to return
            now: Reference time for preset windows

        Returns:
            Ranked books in order
        """
        if isinstance(query, str):
            query = get_preset(query, now=now)
        if limit is not None:
            query = query.limit(limit)

        with self.db.get_session() as session:
            return query.all(session)

    def get_book_stats(
        self, book_id: str, date_range: Optional[DateRange] = None
    ) -> Optional[BookStats]:
        """Get review count and average rating for one book.

        All-time statistics are cached per book until the book or one of
        its reviews changes; windowed statistics are always recomputed.

        Args:
            book_id: Book ID
            date_range: Window over review creation time

        Returns:
            BookStats or None if the book does not exist
        """
        date_range = date_range or ALL_TIME
        book_id = str(book_id)

        if not date_range.is_unbounded:
            return self._compute_stats(book_id, date_range)

        cached = self.cache.get(book_id)
        if cached is not None:
            logger.debug("Serving cached aggregates for book %s", book_id)
            return cached

        generation = self.cache.generation(book_id)
        stats = self._compute_stats(book_id, date_range)
        if stats is not None:
            self.cache.set(book_id, stats, generation=generation)
        return stats

    def _compute_stats(self, book_id: str, date_range: DateRange) -> Optional[BookStats]:
        with self.db.get_session() as session:
            book = session.get(Book, book_id)
            if not book:
                return None

            reviews = filter_by_range(book.reviews, date_range.start, date_range.end)
            summary = summarize(reviews)

            return BookStats(
                book_id=UUID(book.id),
                title=book.title,
                reviews_count=summary.reviews_count,
                reviews_avg_rating=summary.reviews_avg_rating,
                start=date_range.start,
                end=date_range.end,
                computed_at=utcnow(),
            )
