"""Book manager for catalog operations.

Updates and deletes evict the book's cached aggregates once the write has
committed, before the call returns.
"""

import logging
from typing import Optional

from sqlalchemy import select

from ..cache.invalidator import CacheInvalidator
from ..db.models import Book, as_utc_naive
from ..db.schemas import BookCreate, BookUpdate
from ..db.sqlite import Database, get_db

logger = logging.getLogger(__name__)


class BookManager:
    """Manages book catalog operations."""

    def __init__(
        self,
        db: Optional[Database] = None,
        invalidator: Optional[CacheInvalidator] = None,
    ):
        """Initialize book manager.

        Args:
            db: Database instance
            invalidator: Cache invalidator, defaults to one over the process-wide cache
        """
        self.db = db or get_db()
        self.invalidator = invalidator or CacheInvalidator()

    def create_book(self, data: BookCreate) -> Book:
        """Create a new book.

        Args:
            data: Book creation data

        Returns:
            Created book
        """
        with self.db.get_session() as session:
            book = Book(title=data.title)
            if data.created_at:
                book.created_at = as_utc_naive(data.created_at)

            session.add(book)
            session.commit()
            session.refresh(book)
            session.expunge(book)

        logger.debug("Created book %s", book.id)
        return book

    def get_book(self, book_id: str) -> Optional[Book]:
        """Get a book by ID.

        Args:
            book_id: Book ID

        Returns:
            Book or None
        """
        with self.db.get_session() as session:
            book = session.get(Book, str(book_id))
            if book:
                session.expunge(book)
            return book

    def list_books(self, title: Optional[str] = None) -> list[Book]:
        """List books, optionally filtered by a title substring.

        Args:
            title: Case-insensitive title substring

        Returns:
            Books ordered by title
        """
        with self.db.get_session() as session:
            stmt = select(Book)
            if title:
                stmt = stmt.where(Book.title.icontains(title, autoescape=True))
            stmt = stmt.order_by(Book.title)

            books = session.execute(stmt).scalars().all()
            for book in books:
                session.expunge(book)
            return list(books)

    def update_book(self, book_id: str, data: BookUpdate) -> Optional[Book]:
        """Update a book.

        Any update evicts the cached aggregates, whichever field changed.

        Args:
            book_id: Book ID
            data: Update data

        Returns:
            Updated book or None
        """
        book_id = str(book_id)

        with self.db.get_session() as session:
            book = session.get(Book, book_id)
            if not book:
                return None

            update_data = data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if value is not None and hasattr(book, field):
                    setattr(book, field, value)

            session.commit()
            session.refresh(book)
            session.expunge(book)

        self.invalidator.invalidate(book_id)
        return book

    def delete_book(self, book_id: str) -> bool:
        """Delete a book and its reviews.

        Args:
            book_id: Book ID

        Returns:
            True if deleted
        """
        book_id = str(book_id)

        with self.db.get_session() as session:
            book = session.get(Book, book_id)
            if not book:
                return False

            session.delete(book)
            session.commit()

        self.invalidator.invalidate(book_id)
        return True
