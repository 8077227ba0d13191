"""Tests for composing and running ranking queries."""

from datetime import datetime, timedelta

import pytest

from bookrank.ranking import (
    AggregateColumn,
    BookQuery,
    DateRange,
    MissingAggregateError,
    QueryPlan,
)
from bookrank.ranking.plan import AttachAggregate, MinReviews, OrderBy

NOW = datetime(2026, 10, 19, 12, 0, 0)
LAST_MONTH = DateRange.last_months(1, NOW)


def ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


@pytest.fixture
def catalog(make_book):
    """A small catalog with recent and old reviews."""
    return {
        "dune": make_book("Dune", [(5, ago(1)), (4, ago(2)), (3, ago(3)), (1, ago(200))]),
        "emma": make_book("Emma", [(2, ago(5)), (2, ago(6))]),
        "ulysses": make_book("Ulysses", [(4, ago(100))]),
        "unread": make_book("Unread Manuscript"),
    }


def by_title(rows):
    return {row.title: row for row in rows}


class TestTitleFilter:
    """Tests for by_title."""

    def test_case_insensitive_substring(self, db, catalog):
        """Test that titles match ignoring case."""
        with db.get_session() as session:
            rows = BookQuery().by_title("UNE").all(session)
        assert [row.title for row in rows] == ["Dune"]

    def test_empty_title_is_noop(self, db, catalog):
        """Test that an empty or missing title leaves the query untouched."""
        query = BookQuery()
        assert query.by_title("") is query
        assert query.by_title(None) is query
        with db.get_session() as session:
            assert len(query.by_title("").all(session)) == 4

    def test_wildcards_match_literally(self, db, make_book):
        """Test that LIKE wildcards in the input are escaped."""
        make_book("100% Cotton")
        make_book("1000 Cotton Bales")
        with db.get_session() as session:
            rows = BookQuery().by_title("100%").all(session)
        assert [row.title for row in rows] == ["100% Cotton"]

    def test_non_ascii_case_folding(self, db, make_book):
        """Test that accented capitals match their lowercase forms."""
        make_book("ÉCOLE DES FEMMES")
        make_book("Emma")
        with db.get_session() as session:
            rows = BookQuery().by_title("école").all(session)
        assert [row.title for row in rows] == ["ÉCOLE DES FEMMES"]

    def test_no_aggregates_attached(self, db, catalog):
        """Test that rows carry no derived values unless attached."""
        with db.get_session() as session:
            row = BookQuery().by_title("Dune").all(session)[0]
        assert row.reviews_count is None
        assert row.reviews_avg_rating is None


class TestAggregates:
    """Tests for attached count and average columns."""

    def test_count_defaults_to_zero(self, db, catalog):
        """Test that books without reviews count 0."""
        with db.get_session() as session:
            rows = by_title(BookQuery().with_reviews_count().all(session))
        assert rows["Unread Manuscript"].reviews_count == 0
        assert rows["Dune"].reviews_count == 4

    def test_count_over_window(self, db, catalog):
        """Test that only reviews in the window are counted."""
        with db.get_session() as session:
            rows = by_title(BookQuery().with_reviews_count(LAST_MONTH).all(session))
        assert rows["Dune"].reviews_count == 3
        assert rows["Emma"].reviews_count == 2
        assert rows["Ulysses"].reviews_count == 0

    def test_average_absent_without_reviews(self, db, catalog):
        """Test that books without reviews in range get no average, not 0."""
        with db.get_session() as session:
            rows = by_title(BookQuery().with_avg_rating(LAST_MONTH).all(session))
        assert rows["Dune"].reviews_avg_rating == pytest.approx(4.0)
        assert rows["Ulysses"].reviews_avg_rating is None
        assert rows["Unread Manuscript"].reviews_avg_rating is None

    def test_rating_order_excludes_unrated(self, db, catalog):
        """Test that average-ordered results skip books with no average."""
        with db.get_session() as session:
            rows = BookQuery().with_avg_rating(LAST_MONTH).order_by_rating().all(session)
        assert [row.title for row in rows] == ["Dune", "Emma"]

    def test_count_matches_averaged_set(self, db, catalog):
        """Test that the count equals the size of the averaged set for one window."""
        with db.get_session() as session:
            rows = (
                BookQuery()
                .with_reviews_count(LAST_MONTH)
                .with_avg_rating(LAST_MONTH)
                .all(session)
            )
        for row in rows:
            assert (row.reviews_count == 0) == (row.reviews_avg_rating is None)
        assert by_title(rows)["Emma"].reviews_count == 2
        assert by_title(rows)["Emma"].reviews_avg_rating == pytest.approx(2.0)

    def test_attachment_order_does_not_change_values(self, db, catalog):
        """Test that count-then-average equals average-then-count."""
        with db.get_session() as session:
            first = BookQuery().with_reviews_count(LAST_MONTH).with_avg_rating().all(session)
            second = BookQuery().with_avg_rating().with_reviews_count(LAST_MONTH).all(session)

        def values(rows):
            return {r.title: (r.reviews_count, r.reviews_avg_rating) for r in rows}

        assert values(first) == values(second)

    def test_independent_windows(self, db, catalog):
        """Test that count and average can use different windows."""
        with db.get_session() as session:
            row = by_title(
                BookQuery().with_reviews_count().with_avg_rating(LAST_MONTH).all(session)
            )["Dune"]
        assert row.reviews_count == 4
        assert row.reviews_avg_rating == pytest.approx(4.0)

    def test_reattach_replaces_window(self, db, catalog):
        """Test that attaching the same column twice keeps the later window."""
        query = BookQuery().with_reviews_count().with_reviews_count(LAST_MONTH)
        assert len(query.plan.attachments) == 1
        with db.get_session() as session:
            assert by_title(query.all(session))["Dune"].reviews_count == 3

    def test_inverted_window_is_empty_not_error(self, db, catalog):
        """Test that an inverted window counts nothing."""
        inverted = DateRange(start=NOW, end=ago(30))
        with db.get_session() as session:
            rows = (
                BookQuery()
                .with_reviews_count(inverted)
                .with_avg_rating(inverted)
                .all(session)
            )
        assert all(row.reviews_count == 0 for row in rows)
        assert all(row.reviews_avg_rating is None for row in rows)


class TestThresholdAndOrdering:
    """Tests for min_reviews and ordering operations."""

    def test_min_reviews(self, db, catalog):
        """Test that books below the threshold are dropped."""
        with db.get_session() as session:
            rows = BookQuery().with_reviews_count(LAST_MONTH).min_reviews(3).all(session)
        assert [row.title for row in rows] == ["Dune"]

    def test_min_reviews_idempotent(self, db, catalog):
        """Test that applying the same threshold twice changes nothing."""
        base = BookQuery().with_reviews_count(LAST_MONTH)
        with db.get_session() as session:
            once = base.min_reviews(2).all(session)
            twice = base.min_reviews(2).min_reviews(2).all(session)
        assert [r.book_id for r in once] == [r.book_id for r in twice]

    def test_order_by_popularity(self, db, catalog):
        """Test sorting by review count, most first."""
        with db.get_session() as session:
            rows = BookQuery().with_reviews_count().order_by_popularity().all(session)
        assert [row.title for row in rows] == ["Dune", "Emma", "Ulysses", "Unread Manuscript"]

    def test_last_ordering_wins(self, db, catalog):
        """Test that a later ordering overrides an earlier one."""
        query = (
            BookQuery()
            .with_reviews_count()
            .with_avg_rating()
            .order_by_popularity()
            .order_by_rating()
        )
        assert query.plan.ordering.column == AggregateColumn.REVIEWS_AVG_RATING
        with db.get_session() as session:
            rows = query.all(session)
        # Ulysses: 4.0, Dune: 3.25, Emma: 2.0
        assert [row.title for row in rows] == ["Ulysses", "Dune", "Emma"]

    def test_ties_break_by_title(self, db, make_book):
        """Test that equal values fall back to title order."""
        make_book("Beta", [(3, ago(1))])
        make_book("Alpha", [(3, ago(1))])
        with db.get_session() as session:
            rows = BookQuery().with_avg_rating().order_by_rating().all(session)
        assert [row.title for row in rows] == ["Alpha", "Beta"]

    def test_limit(self, db, catalog):
        """Test capping the number of rows."""
        with db.get_session() as session:
            rows = BookQuery().with_reviews_count().order_by_popularity().limit(2).all(session)
        assert [row.title for row in rows] == ["Dune", "Emma"]

    def test_invalid_limit(self):
        """Test that a non-positive limit is rejected."""
        with pytest.raises(ValueError):
            BookQuery().limit(0)

    def test_negative_threshold(self):
        """Test that a negative threshold is rejected."""
        with pytest.raises(ValueError):
            BookQuery().with_reviews_count().min_reviews(-1)


class TestPreconditions:
    """Tests for construction-time aggregate checks."""

    def test_min_reviews_without_count(self):
        """Test that thresholding without a count fails immediately."""
        with pytest.raises(MissingAggregateError) as exc_info:
            BookQuery().with_avg_rating().min_reviews(2)
        assert exc_info.value.column == "reviews_count"
        assert exc_info.value.operation == "MinReviews"

    def test_order_by_popularity_without_count(self):
        """Test that popularity ordering needs a count."""
        with pytest.raises(MissingAggregateError):
            BookQuery().order_by_popularity()

    def test_order_by_rating_without_average(self):
        """Test that rating ordering needs an average."""
        with pytest.raises(MissingAggregateError) as exc_info:
            BookQuery().with_reviews_count().order_by_rating()
        assert exc_info.value.column == "reviews_avg_rating"

    def test_plan_built_directly_is_checked(self):
        """Test that a hand-built plan is validated before it can run."""
        with pytest.raises(MissingAggregateError) as exc_info:
            QueryPlan(operations=(MinReviews(2),))
        assert exc_info.value.operation == "MinReviews"

    def test_plan_checks_operation_order(self):
        """Test that an attachment after its use does not satisfy it."""
        with pytest.raises(MissingAggregateError):
            QueryPlan(
                operations=(
                    OrderBy(AggregateColumn.REVIEWS_COUNT),
                    AttachAggregate(AggregateColumn.REVIEWS_COUNT),
                )
            )

    def test_valid_plan_built_directly(self, db, catalog):
        """Test that a well-formed hand-built plan runs."""
        plan = QueryPlan(
            operations=(
                AttachAggregate(AggregateColumn.REVIEWS_COUNT, LAST_MONTH),
                MinReviews(2),
            )
        )
        with db.get_session() as session:
            rows = BookQuery(plan).all(session)
        assert {row.title for row in rows} == {"Dune", "Emma"}


class TestComposition:
    """Tests for builder immutability and named fragments."""

    def test_builder_is_immutable(self):
        """Test that deriving a query leaves the original untouched."""
        base = BookQuery().with_reviews_count()
        base.min_reviews(3)
        base.order_by_popularity()
        assert len(base.plan.operations) == 1

    def test_popular_fragment(self):
        """Test that popular attaches a count and orders by it."""
        plan = BookQuery().popular(LAST_MONTH.start, LAST_MONTH.end).plan
        assert plan.attached == {AggregateColumn.REVIEWS_COUNT}
        assert plan.attachments[0].date_range == LAST_MONTH
        assert plan.ordering.column == AggregateColumn.REVIEWS_COUNT

    def test_highest_rated_fragment(self):
        """Test that highest_rated attaches an average and orders by it."""
        plan = BookQuery().highest_rated(start=LAST_MONTH.start).plan
        assert plan.attached == {AggregateColumn.REVIEWS_AVG_RATING}
        assert plan.attachments[0].date_range == DateRange(start=LAST_MONTH.start)
        assert plan.ordering.column == AggregateColumn.REVIEWS_AVG_RATING

    def test_apply_fragment(self, db, catalog):
        """Test applying a reusable fragment."""

        def well_reviewed(query):
            return query.with_reviews_count().min_reviews(2)

        with db.get_session() as session:
            rows = BookQuery().apply(well_reviewed).all(session)
        assert {row.title for row in rows} == {"Dune", "Emma"}
