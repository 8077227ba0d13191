"""Review manager for book review operations.

Creating or deleting a review changes its book's aggregates, so both
evict the book's cached state after the write commits.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select

from ..cache.invalidator import CacheInvalidator
from ..db.models import Book, Review, as_utc_naive
from ..db.sqlite import Database, get_db
from ..ranking.range_filter import DateRange, range_criteria
from .schemas import ReviewCreate


class ReviewManager:
    """Manages book review operations."""

    def __init__(
        self,
        db: Optional[Database] = None,
        invalidator: Optional[CacheInvalidator] = None,
    ):
        """Initialize review manager.

        Args:
            db: Database instance
            invalidator: Cache invalidator, defaults to one over the process-wide cache
        """
        self.db = db or get_db()
        self.invalidator = invalidator or CacheInvalidator()

    def create_review(self, data: ReviewCreate) -> Review:
        """Create a new review.

        Args:
            data: Review creation data

        Returns:
            Created review

        Raises:
            ValueError: If the book does not exist
        """
        book_id = str(data.book_id)

        with self.db.get_session() as session:
            book = session.get(Book, book_id)
            if not book:
                raise ValueError("Book not found")

            review = Review(
                book_id=book_id,
                rating=data.rating,
                review=data.review,
            )
            if data.created_at:
                review.created_at = as_utc_naive(data.created_at)

            session.add(review)
            session.commit()
            session.refresh(review)
            session.expunge(review)

        self.invalidator.invalidate(book_id)
        return review

    def get_review(self, review_id: str) -> Optional[Review]:
        """Get a review by ID.

        Args:
            review_id: Review ID

        Returns:
            Review or None
        """
        with self.db.get_session() as session:
            review = session.get(Review, str(review_id))
            if review:
                session.expunge(review)
            return review

    def list_reviews(
        self,
        book_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Review]:
        """List reviews, newest first.

        Args:
            book_id: Only reviews of this book
            start: Created at or after this time
            end: Created at or before this time

        Returns:
            List of reviews
        """
        with self.db.get_session() as session:
            stmt = select(Review)

            if book_id is not None:
                stmt = stmt.where(Review.book_id == str(book_id))
            stmt = stmt.where(*range_criteria(Review.created_at, DateRange(start, end)))
            stmt = stmt.order_by(Review.created_at.desc())

            reviews = session.execute(stmt).scalars().all()
            for review in reviews:
                session.expunge(review)
            return list(reviews)

    def delete_review(self, review_id: str) -> bool:
        """Delete a review.

        Args:
            review_id: Review ID

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            review = session.get(Review, str(review_id))
            if not review:
                return False

            book_id = review.book_id
            session.delete(review)
            session.commit()

        self.invalidator.invalidate(book_id)
        return True
