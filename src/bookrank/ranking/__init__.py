"""Composable review-based book rankings."""

from .aggregates import ReviewSummary, attach_avg, attach_count, summarize
from .errors import BookRankError, MissingAggregateError, UnknownPresetError
from .manager import RankingManager
from .plan import AggregateColumn, QueryPlan
from .presets import (
    PRESETS,
    get_preset,
    highest_rated_last_6_months,
    highest_rated_last_month,
    popular_last_6_months,
    popular_last_month,
    preset_names,
)
from .query import BookQuery, compile_plan
from .range_filter import ALL_TIME, DateRange, filter_by_range, range_criteria
from .schemas import BookStats, RankedBook

__all__ = [
    "ALL_TIME",
    "AggregateColumn",
    "BookQuery",
    "BookRankError",
    "BookStats",
    "DateRange",
    "MissingAggregateError",
    "PRESETS",
    "QueryPlan",
    "RankedBook",
    "RankingManager",
    "ReviewSummary",
    "UnknownPresetError",
    "attach_avg",
    "attach_count",
    "compile_plan",
    "filter_by_range",
    "get_preset",
    "highest_rated_last_6_months",
    "highest_rated_last_month",
    "popular_last_6_months",
    "popular_last_month",
    "preset_names",
    "range_criteria",
    "summarize",
]
