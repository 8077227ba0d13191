"""Named ranking presets.

| Preset                      | Window        | Min reviews |
|-----------------------------|---------------|-------------|
| popular_last_month          | last month    | 2           |
| popular_last_6_months       | last 6 months | 5           |
| highest_rated_last_month    | last month    | 2           |
| highest_rated_last_6_months | last 6 months | 5           |

Every preset attaches both the review count and the average rating over
its window, applies the threshold, and ends up sorted by rating: the
"popular" ordering is applied first and then overridden by the
"highest rated" one. For a given window and threshold the popular and
highest-rated presets therefore return the same rows. Keep them that way;
callers rely on the two names being interchangeable.
"""

from datetime import datetime
from typing import Callable, Optional

from .errors import UnknownPresetError
from .query import BookQuery
from .range_filter import DateRange


def _ranked_window(months: int, min_reviews: int, now: Optional[datetime]) -> BookQuery:
    window = DateRange.last_months(months, now)
    return (
        BookQuery()
        .popular(window.start, window.end)
        .highest_rated(window.start, window.end)
        .min_reviews(min_reviews)
    )


def popular_last_month(now: Optional[datetime] = None) -> BookQuery:
    return _ranked_window(1, 2, now)


def popular_last_6_months(now: Optional[datetime] = None) -> BookQuery:
    return _ranked_window(6, 5, now)


def highest_rated_last_month(now: Optional[datetime] = None) -> BookQuery:
    return _ranked_window(1, 2, now)


def highest_rated_last_6_months(now: Optional[datetime] = None) -> BookQuery:
    return _ranked_window(6, 5, now)


PRESETS: dict[str, Callable[[Optional[datetime]], BookQuery]] = {
    "popular_last_month": popular_last_month,
    "popular_last_6_months": popular_last_6_months,
    "highest_rated_last_month": highest_rated_last_month,
    "highest_rated_last_6_months": highest_rated_last_6_months,
}


def preset_names() -> list[str]:
    return list(PRESETS)


def get_preset(name: str, now: Optional[datetime] = None) -> BookQuery:
    """Build a preset query by name.

    Args:
        name: Preset name; hyphens and underscores are interchangeable
        now: Reference time for the window, defaults to the current time

    Raises:
        UnknownPresetError: If no preset has that name
    """
    key = name.strip().lower().replace("-", "_")
    if key not in PRESETS:
        raise UnknownPresetError(name, preset_names())
    return PRESETS[key](now)
