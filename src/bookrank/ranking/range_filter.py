"""Creation-time windows over reviews.

A window has an optional lower and an optional upper bound, both
inclusive. The same semantics are available in memory
(``filter_by_range``) and as SQL predicates (``range_criteria``) for
pushdown into aggregate subqueries. An inverted window (start after end)
is accepted and simply matches nothing.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.sql.elements import ColumnElement

from ..db.models import Review, as_utc_naive, utcnow


def subtract_months(moment: datetime, months: int) -> datetime:
    """Step back a number of calendar months.

    The day is clamped to the length of the target month, so
    2026-03-31 minus one month is 2026-02-28.
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class DateRange:
    """Optional inclusive bounds on review creation time."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        if self.start is not None:
            object.__setattr__(self, "start", as_utc_naive(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", as_utc_naive(self.end))

    @classmethod
    def last_months(cls, months: int, now: Optional[datetime] = None) -> "DateRange":
        """Window covering the last ``months`` calendar months up to now."""
        now = as_utc_naive(now) if now is not None else utcnow()
        return cls(start=subtract_months(now, months), end=now)

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, moment: datetime) -> bool:
        """Check whether a creation time falls inside the window."""
        moment = as_utc_naive(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def __str__(self) -> str:
        if self.is_unbounded:
            return "all time"
        start = self.start.isoformat(sep=" ", timespec="seconds") if self.start else "..."
        end = self.end.isoformat(sep=" ", timespec="seconds") if self.end else "..."
        return f"{start} to {end}"


ALL_TIME = DateRange()


def filter_by_range(
    reviews: Iterable[Review],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[Review]:
    """Keep the reviews created inside [start, end].

    Args:
        reviews: Reviews to narrow
        start: Inclusive lower bound, or None
        end: Inclusive upper bound, or None

    Returns:
        Matching reviews, in input order. With no bounds this is every
        review; with start after end it is empty.
    """
    date_range = DateRange(start, end)
    if date_range.is_unbounded:
        return list(reviews)
    return [review for review in reviews if date_range.contains(review.created_at)]


def range_criteria(column, date_range: Optional[DateRange]) -> list[ColumnElement]:
    """SQL predicates restricting a timestamp column to a window.

    Args:
        column: Timestamp column, usually ``Review.created_at``
        date_range: Window, None meaning unbounded

    Returns:
        Zero or one predicate, ready for ``Select.where(*criteria)``
    """
    if date_range is None:
        return []

    start, end = date_range.start, date_range.end
    if start is not None and end is None:
        return [column >= start]
    if start is None and end is not None:
        return [column <= end]
    if start is not None and end is not None:
        return [column.between(start, end)]
    return []
