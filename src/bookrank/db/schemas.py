"""Pydantic schemas for book data validation."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class BookBase(BaseModel):
    """Base book fields."""

    title: str = Field(..., min_length=1, max_length=500)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Strip surrounding whitespace, rejecting blank titles."""
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v


class BookCreate(BookBase):
    """Schema for creating a new book."""

    # Backdated creation, used by imports and tests
    created_at: Optional[datetime] = None


class BookUpdate(BaseModel):
    """Schema for updating an existing book. All fields optional."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        """Strip surrounding whitespace, rejecting blank titles."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v


class BookResponse(BookBase):
    """Schema for book responses (includes DB-generated fields)."""

    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
