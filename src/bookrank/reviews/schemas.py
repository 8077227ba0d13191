"""Pydantic schemas for book reviews."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    """Schema for creating a review."""

    book_id: UUID
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = None

    # Backdated creation, used by imports and tests
    created_at: Optional[datetime] = None


class ReviewResponse(BaseModel):
    """Schema for review responses."""

    id: UUID
    book_id: UUID
    rating: int
    review: Optional[str]
    star_display: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
