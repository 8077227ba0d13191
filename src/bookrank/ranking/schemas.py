"""Pydantic schemas for ranking results."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class RankedBook(BaseModel):
    """A book with the aggregates its query attached."""

    book_id: UUID
    title: str
    created_at: datetime
    reviews_count: Optional[int] = None
    reviews_avg_rating: Optional[float] = None

    @property
    def rating_display(self) -> str:
        """Average rating rounded for display."""
        if self.reviews_avg_rating is None:
            return "-"
        return f"{self.reviews_avg_rating:.2f}"


class BookStats(BaseModel):
    """Snapshot of one book's review aggregates over a window."""

    book_id: UUID
    title: str
    reviews_count: int
    reviews_avg_rating: Optional[float]
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    computed_at: datetime
