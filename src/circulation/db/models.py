"""SQLAlchemy ORM models for the relational store.

Tables:
- books: Catalog entries and their available copy counts
- members: Registered library members
- borrowings: Loan records, open while return_date is NULL
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class BookRow(Base):
    """Book model - one row per catalog entry."""

    __tablename__ = "books"

    book_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    genre: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    available_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<BookRow(book_id={self.book_id}, title='{self.title}')>"


class MemberRow(Base):
    """Member model - people allowed to borrow."""

    __tablename__ = "members"

    member_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<MemberRow(member_id={self.member_id}, name='{self.name}')>"


class BorrowingRow(Base):
    """Borrowing model - individual loans of a book to a member."""

    __tablename__ = "borrowings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    book_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("books.book_id"), nullable=False, index=True
    )
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.member_id"), nullable=False, index=True
    )
    # Naive UTC; SQLite does not keep offsets
    borrow_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    return_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<BorrowingRow(id={self.id}, book_id={self.book_id}, "
            f"member_id={self.member_id}, returned={self.return_date is not None})>"
        )
