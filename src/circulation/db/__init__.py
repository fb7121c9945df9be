"""Database module for the relational store."""

from .models import Base, BookRow, BorrowingRow, MemberRow
from .sqlite import Database

__all__ = [
    "Base",
    "BookRow",
    "BorrowingRow",
    "MemberRow",
    "Database",
]
