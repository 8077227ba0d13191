"""Exceptions raised while composing ranking queries."""


class BookRankError(Exception):
    """Base exception for bookrank errors."""

    pass


class MissingAggregateError(BookRankError):
    """Raised when an operation references a derived column never attached.

    This is a composition mistake, not a runtime failure: fix the query by
    attaching the aggregate before thresholding or ordering on it.
    """

    def __init__(self, column: str, operation: str):
        self.column = column
        self.operation = operation
        super().__init__(
            f"{operation} needs '{column}', attach it first "
            f"(with_reviews_count / with_avg_rating)"
        )


class UnknownPresetError(BookRankError, KeyError):
    """Raised when a ranking preset name is not registered."""

    def __init__(self, name: str, known: list[str]):
        self.name = name
        self.known = known
        super().__init__(f"Unknown preset '{name}'. Available: {', '.join(known)}")

    def __str__(self) -> str:
        return self.args[0]
