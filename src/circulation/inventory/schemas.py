"""Pydantic schemas for the book catalog."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..persistence.base import Entity


class SortField(str, Enum):
    """Fields the catalog can be sorted by."""

    TITLE = "title"
    GENRE = "genre"


class BookBase(BaseModel):
    """Base book fields."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    genre: str = Field("", max_length=200)

    @field_validator("title", "author", "genre", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        """Trim surrounding whitespace."""
        if isinstance(v, str):
            return v.strip()
        return v


class BookCreate(BookBase):
    """Schema for adding a book to the catalog."""

    initial_copies: int = Field(0, ge=0)


class BookUpdate(BaseModel):
    """Schema for updating book details.

    Copy counts are not editable here; they only move as loans open and close.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=500)
    genre: Optional[str] = Field(None, max_length=200)

    @field_validator("title", "author", "genre", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        """Trim surrounding whitespace."""
        if isinstance(v, str):
            return v.strip()
        return v


class Book(Entity):
    """A catalog entry."""

    title: str
    author: str
    genre: str = ""
    available_copies: int = Field(..., ge=0)

    def same_work(self, title: str, author: str) -> bool:
        """True if title and author match, ignoring case."""
        return (
            self.title.casefold() == title.strip().casefold()
            and self.author.casefold() == author.strip().casefold()
        )
