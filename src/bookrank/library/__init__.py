"""Book catalog management."""

from .manager import BookManager

__all__ = ["BookManager"]
