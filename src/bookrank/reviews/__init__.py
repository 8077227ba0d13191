"""Book reviews and ratings module."""

from .manager import ReviewManager
from .schemas import ReviewCreate, ReviewResponse

__all__ = [
    "ReviewManager",
    "ReviewCreate",
    "ReviewResponse",
]
