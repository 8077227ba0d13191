"""Per-book review aggregates.

Two derived columns exist:

- ``reviews_count``: reviews in the window, 0 for books with none
  (left-join semantics).
- ``reviews_avg_rating``: mean rating of reviews in the window, None for
  books with none. It is never coerced to 0, otherwise an unreviewed book
  would outrank a badly reviewed one.

Each attachment carries its own window, so one plan can count over one
period and average over another.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.sql import Subquery
from sqlalchemy.sql.elements import ColumnElement

from ..db.models import Review
from .plan import AggregateColumn, AttachAggregate, QueryPlan
from .range_filter import ALL_TIME, DateRange, range_criteria


def attach_count(plan: QueryPlan, date_range: Optional[DateRange] = None) -> QueryPlan:
    """Attach ``reviews_count`` over reviews in ``date_range``."""
    return plan.append(
        AttachAggregate(AggregateColumn.REVIEWS_COUNT, date_range or ALL_TIME)
    )


def attach_avg(plan: QueryPlan, date_range: Optional[DateRange] = None) -> QueryPlan:
    """Attach ``reviews_avg_rating`` over reviews in ``date_range``."""
    return plan.append(
        AttachAggregate(AggregateColumn.REVIEWS_AVG_RATING, date_range or ALL_TIME)
    )


def aggregate_subquery(attachment: AttachAggregate) -> Subquery:
    """Grouped subquery of (book_id, value) for one attachment.

    Only books with at least one review in the window appear; callers
    outer-join it onto books.
    """
    if attachment.column == AggregateColumn.REVIEWS_COUNT:
        value = func.count(Review.id)
    else:
        value = func.avg(Review.rating)

    return (
        select(Review.book_id.label("book_id"), value.label("value"))
        .where(*range_criteria(Review.created_at, attachment.date_range))
        .group_by(Review.book_id)
        .subquery(attachment.column.value)
    )


def aggregate_value(column: AggregateColumn, subquery: Subquery) -> ColumnElement:
    """Outer-joined value expression, with missing counts reading as 0."""
    if column == AggregateColumn.REVIEWS_COUNT:
        return func.coalesce(subquery.c.value, 0)
    return subquery.c.value


@dataclass(frozen=True)
class ReviewSummary:
    """Count and mean rating of a set of reviews."""

    reviews_count: int
    reviews_avg_rating: Optional[float]


def summarize(reviews: Iterable[Review]) -> ReviewSummary:
    """Compute both aggregates in memory for one book's reviews."""
    ratings = [review.rating for review in reviews]
    if not ratings:
        return ReviewSummary(reviews_count=0, reviews_avg_rating=None)
    return ReviewSummary(
        reviews_count=len(ratings),
        reviews_avg_rating=sum(ratings) / len(ratings),
    )
