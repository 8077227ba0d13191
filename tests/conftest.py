"""Pytest configuration and shared fixtures.

Provides an in-memory database, an isolated cache, the managers wired to
both, and a helper that creates a book together with backdated reviews.
"""

import os
from datetime import datetime, timedelta
from typing import Generator
from uuid import UUID

import pytest

from bookrank.cache import CacheInvalidator, MemoryCache, reset_cache
from bookrank.config import reset_config
from bookrank.db.schemas import BookCreate
from bookrank.db.sqlite import Database, reset_db
from bookrank.library import BookManager
from bookrank.ranking import RankingManager
from bookrank.reviews import ReviewCreate, ReviewManager

# Fixed reference time for windowed queries
NOW = datetime(2026, 10, 19, 12, 0, 0)


def days_ago(days: float) -> datetime:
    """A moment ``days`` before NOW."""
    return NOW - timedelta(days=days)


# ============================================================================
# Global State
# ============================================================================


@pytest.fixture(autouse=True)
def reset_globals() -> Generator[None, None, None]:
    """Reset process-wide config, database and cache around each test."""
    reset_db()
    reset_config()
    reset_cache()
    os.environ["BOOKRANK_DB_PATH"] = ":memory:"
    yield
    reset_db()
    reset_config()
    reset_cache()
    os.environ.pop("BOOKRANK_DB_PATH", None)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def cache() -> MemoryCache:
    """Create an isolated in-memory cache."""
    return MemoryCache()


@pytest.fixture
def invalidator(cache: MemoryCache) -> CacheInvalidator:
    """Create an invalidator over the test cache."""
    return CacheInvalidator(cache)


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
def book_manager(db: Database, invalidator: CacheInvalidator) -> BookManager:
    """Create a BookManager with test database and cache."""
    return BookManager(db, invalidator)


@pytest.fixture
def review_manager(db: Database, invalidator: CacheInvalidator) -> ReviewManager:
    """Create a ReviewManager with test database and cache."""
    return ReviewManager(db, invalidator)


@pytest.fixture
def ranking_manager(db: Database, cache: MemoryCache) -> RankingManager:
    """Create a RankingManager with test database and cache."""
    return RankingManager(db, cache)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def make_book(book_manager: BookManager, review_manager: ReviewManager):
    """Factory creating a book with (rating, created_at) reviews."""

    def _make(title: str, reviews=()):
        book = book_manager.create_book(
            BookCreate(title=title, created_at=days_ago(400))
        )
        for rating, created_at in reviews:
            review_manager.create_review(
                ReviewCreate(book_id=UUID(book.id), rating=rating, created_at=created_at)
            )
        return book

    return _make
