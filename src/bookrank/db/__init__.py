"""Database module for local SQLite storage."""

from .models import Base, Book, Review
from .schemas import BookCreate, BookUpdate, BookResponse
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Base",
    "Book",
    "Review",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "Database",
    "get_db",
    "reset_db",
]
