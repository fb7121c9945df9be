"""Schemas for loans.

Timestamps are timezone-aware UTC, truncated to whole milliseconds so they
survive the epoch-millisecond encoding of the line file unchanged.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import field_validator

from ..persistence.base import Entity

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def normalize_timestamp(value: datetime) -> datetime:
    """Convert to UTC and drop sub-millisecond precision.

    Naive values are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utc_now() -> datetime:
    return normalize_timestamp(datetime.now(timezone.utc))


def to_epoch_millis(value: datetime) -> int:
    return (normalize_timestamp(value) - EPOCH) // timedelta(milliseconds=1)


def from_epoch_millis(millis: int) -> datetime:
    return EPOCH + timedelta(milliseconds=millis)


class LoanStatus(str, Enum):
    """Status of a loan."""

    ACTIVE = "active"
    RETURNED = "returned"


class Loan(Entity):
    """A book lent to a member; active until it has a return date."""

    book_id: int
    member_id: int
    borrow_date: datetime
    return_date: Optional[datetime] = None

    @field_validator("borrow_date", "return_date")
    @classmethod
    def normalize(cls, v):
        if v is None:
            return v
        return normalize_timestamp(v)

    @property
    def is_active(self) -> bool:
        return self.return_date is None

    @property
    def status(self) -> LoanStatus:
        return LoanStatus.ACTIVE if self.is_active else LoanStatus.RETURNED

    def __repr__(self) -> str:
        return (
            f"<Loan(id={self.id}, book_id={self.book_id}, "
            f"member_id={self.member_id}, status={self.status.value})>"
        )


@dataclass
class LoanDetail:
    """A loan joined with the book title and member name, for display."""

    loan_id: int
    book_id: int
    book_title: str
    member_id: int
    member_name: str
    status: LoanStatus
    borrow_date: datetime
    return_date: Optional[datetime] = None
