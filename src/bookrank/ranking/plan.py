"""Query plans: ordered compositions of a closed set of operations.

A plan is immutable. Appending an operation returns a new plan and checks
its precondition on the spot: thresholds and orderings may only reference
a derived column that an earlier operation attached.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from .errors import MissingAggregateError
from .range_filter import ALL_TIME, DateRange


class AggregateColumn(str, Enum):
    """Derived per-book columns exposed to thresholds and orderings."""

    REVIEWS_COUNT = "reviews_count"
    REVIEWS_AVG_RATING = "reviews_avg_rating"


@dataclass(frozen=True)
class TitleFilter:
    """Case-insensitive substring match on the book title."""

    title: str


@dataclass(frozen=True)
class AttachAggregate:
    """Attach a derived column computed over reviews in a window."""

    column: AggregateColumn
    date_range: DateRange = ALL_TIME


@dataclass(frozen=True)
class MinReviews:
    """Drop books whose attached review count is below ``count``."""

    count: int

    def __post_init__(self):
        if self.count < 0:
            raise ValueError("minimum review count cannot be negative")


@dataclass(frozen=True)
class OrderBy:
    """Sort descending by a derived column."""

    column: AggregateColumn


Operation = Union[TitleFilter, AttachAggregate, MinReviews, OrderBy]


def _required_column(operation: Operation) -> Optional[AggregateColumn]:
    if isinstance(operation, MinReviews):
        return AggregateColumn.REVIEWS_COUNT
    if isinstance(operation, OrderBy):
        return operation.column
    return None


def _check_preconditions(operations: tuple) -> None:
    attached = set()
    for operation in operations:
        if isinstance(operation, AttachAggregate):
            attached.add(operation.column)
            continue
        required = _required_column(operation)
        if required is not None and required not in attached:
            raise MissingAggregateError(required.value, type(operation).__name__)


@dataclass(frozen=True)
class QueryPlan:
    """Ordered operations plus an optional row limit.

    Plans are validated on construction, whether built directly or through
    ``append``.

    Raises:
        MissingAggregateError: If an operation references a derived column
                               no earlier operation attached
    """

    operations: tuple[Operation, ...] = ()
    limit: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "operations", tuple(self.operations))
        _check_preconditions(self.operations)
        if self.limit is not None and self.limit < 1:
            raise ValueError("limit must be positive")

    def append(self, operation: Operation) -> "QueryPlan":
        """Return a new plan with ``operation`` applied last.

        Re-attaching an aggregate replaces the earlier attachment of the
        same column in place.

        Raises:
            MissingAggregateError: If the operation needs a derived column
                                   the plan has not attached
        """
        if isinstance(operation, AttachAggregate):
            if operation.column in self.attached:
                operations = tuple(
                    operation
                    if isinstance(op, AttachAggregate) and op.column == operation.column
                    else op
                    for op in self.operations
                )
                return replace(self, operations=operations)

        return replace(self, operations=self.operations + (operation,))

    def with_limit(self, limit: Optional[int]) -> "QueryPlan":
        return replace(self, limit=limit)

    @property
    def attachments(self) -> list[AttachAggregate]:
        return [op for op in self.operations if isinstance(op, AttachAggregate)]

    @property
    def attached(self) -> set[AggregateColumn]:
        return {op.column for op in self.attachments}

    @property
    def ordering(self) -> Optional[OrderBy]:
        """The effective ordering: the last one applied wins."""
        orderings = [op for op in self.operations if isinstance(op, OrderBy)]
        return orderings[-1] if orderings else None

    @property
    def title_filters(self) -> list[str]:
        return [op.title for op in self.operations if isinstance(op, TitleFilter)]

    @property
    def thresholds(self) -> list[int]:
        return [op.count for op in self.operations if isinstance(op, MinReviews)]
