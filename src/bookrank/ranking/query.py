"""Fluent, composable book ranking queries.

``BookQuery`` wraps an immutable ``QueryPlan``; every method returns a new
builder, so partial queries can be shared and extended freely::

    query = (
        BookQuery()
        .by_title("dune")
        .with_reviews_count(last_month)
        .min_reviews(2)
        .order_by_popularity()
    )
    rows = query.all(session)

The whole plan compiles to a single SELECT: one grouped, range-filtered
subquery per attached aggregate, outer-joined onto ``books``.
"""

from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from ..db.models import Book
from .aggregates import aggregate_subquery, aggregate_value, attach_avg, attach_count
from .plan import AggregateColumn, MinReviews, OrderBy, QueryPlan, TitleFilter
from .range_filter import DateRange
from .schemas import RankedBook


def compile_plan(plan: QueryPlan) -> Select:
    """Translate a plan into a SQLAlchemy statement.

    Rows are ``(Book, <derived columns...>)`` with each derived column
    labelled by its name.
    """
    stmt = select(Book)
    derived = {}

    for attachment in plan.attachments:
        subquery = aggregate_subquery(attachment)
        value = aggregate_value(attachment.column, subquery)
        stmt = stmt.outerjoin(subquery, subquery.c.book_id == Book.id)
        stmt = stmt.add_columns(value.label(attachment.column.value))
        derived[attachment.column] = value

    for title in plan.title_filters:
        stmt = stmt.where(Book.title.icontains(title, autoescape=True))

    for count in plan.thresholds:
        stmt = stmt.where(derived[AggregateColumn.REVIEWS_COUNT] >= count)

    ordering = plan.ordering
    if ordering is not None:
        value = derived[ordering.column]
        if ordering.column == AggregateColumn.REVIEWS_AVG_RATING:
            # Books without reviews in the window have no average to rank by
            stmt = stmt.where(value.isnot(None))
        stmt = stmt.order_by(value.desc())

    stmt = stmt.order_by(Book.title, Book.id)

    if plan.limit is not None:
        stmt = stmt.limit(plan.limit)

    return stmt


class BookQuery:
    """Immutable builder for ranking queries."""

    def __init__(self, plan: Optional[QueryPlan] = None):
        self.plan = plan or QueryPlan()

    def __repr__(self) -> str:
        return f"<BookQuery(operations={len(self.plan.operations)}, limit={self.plan.limit})>"

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def by_title(self, title: Optional[str]) -> "BookQuery":
        """Match titles containing ``title``, ignoring case. Empty is a no-op."""
        if not title:
            return self
        return BookQuery(self.plan.append(TitleFilter(title)))

    def with_reviews_count(self, date_range: Optional[DateRange] = None) -> "BookQuery":
        """Attach ``reviews_count`` over reviews in the window."""
        return BookQuery(attach_count(self.plan, date_range))

    def with_avg_rating(self, date_range: Optional[DateRange] = None) -> "BookQuery":
        """Attach ``reviews_avg_rating`` over reviews in the window."""
        return BookQuery(attach_avg(self.plan, date_range))

    def min_reviews(self, count: int) -> "BookQuery":
        """Keep books with at least ``count`` reviews.

        Raises:
            MissingAggregateError: If no review count is attached yet
        """
        return BookQuery(self.plan.append(MinReviews(count)))

    def order_by_popularity(self) -> "BookQuery":
        """Sort by review count, most reviewed first."""
        return BookQuery(self.plan.append(OrderBy(AggregateColumn.REVIEWS_COUNT)))

    def order_by_rating(self) -> "BookQuery":
        """Sort by average rating, best first. Unrated books drop out."""
        return BookQuery(self.plan.append(OrderBy(AggregateColumn.REVIEWS_AVG_RATING)))

    def limit(self, count: Optional[int]) -> "BookQuery":
        return BookQuery(self.plan.with_limit(count))

    # -------------------------------------------------------------------------
    # Named fragments
    # -------------------------------------------------------------------------

    def popular(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> "BookQuery":
        """Count reviews in [start, end] and sort by that count."""
        return self.with_reviews_count(DateRange(start, end)).order_by_popularity()

    def highest_rated(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> "BookQuery":
        """Average ratings in [start, end] and sort by that average."""
        return self.with_avg_rating(DateRange(start, end)).order_by_rating()

    def apply(self, fragment: Callable[["BookQuery"], "BookQuery"]) -> "BookQuery":
        """Apply a reusable fragment, e.g. ``query.apply(lambda q: q.min_reviews(3))``."""
        return fragment(self)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def statement(self) -> Select:
        return compile_plan(self.plan)

    def all(self, session: Session) -> list[RankedBook]:
        """Run the query and return the ranked books in order."""
        rows = session.execute(self.statement()).all()
        result = []

        for row in rows:
            book = row[0]
            mapping = row._mapping
            result.append(RankedBook(
                book_id=UUID(book.id),
                title=book.title,
                created_at=book.created_at,
                reviews_count=mapping.get(AggregateColumn.REVIEWS_COUNT.value),
                reviews_avg_rating=mapping.get(AggregateColumn.REVIEWS_AVG_RATING.value),
            ))

        return result
