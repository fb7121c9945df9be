"""Library service: wires the stores and exposes the operations the CLI uses.

``Library`` is the composition root. It builds one ``DualWritePersistence``
per entity type over the configured files and database, runs startup
reconciliation, and offers a flat, synchronous interface over the
inventory, the member directory and the loan ledger. Every call returns a
result or raises a ``CirculationError``.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .config import Config, get_config
from .db.sqlite import Database
from .errors import NotFound, PersistenceFailure
from .inventory import (
    FIRST_BOOK_ID,
    Book,
    BookCodec,
    BookCreate,
    BookInventory,
    BookMapper,
    BookUpdate,
    SortField,
)
from .lending import FIRST_LOAN_ID, Loan, LoanCodec, LoanDetail, LoanLedger, LoanMapper
from .members import (
    FIRST_MEMBER_ID,
    Member,
    MemberCodec,
    MemberCreate,
    MemberDirectory,
    MemberMapper,
    MemberUpdate,
)
from .persistence import DualWritePersistence, LineFileStore, RelationalStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """Outcome of a reconciliation pass."""

    books: int = 0
    members: int = 0
    loans: int = 0
    anomalies: list[Loan] = field(default_factory=list)
    failures: list[PersistenceFailure] = field(default_factory=list)


class Library:
    """Book inventory, members and loans behind one interface."""

    def __init__(self, config: Optional[Config] = None, db: Optional[Database] = None):
        """Build the components. Call ``reconcile`` (or use ``open``) before use.

        Args:
            config: Configuration; uses the global config if not provided
            db: Database instance; built from ``config.db_path`` if not provided
        """
        self.config = config or get_config()
        self.db = db or Database(str(self.config.db_path))
        try:
            self.db.create_tables()
        except SQLAlchemyError as e:
            logger.warning("Could not create database tables: %s", e)

        timeout = self.config.store_timeout
        self.book_store: DualWritePersistence[Book] = DualWritePersistence(
            "book",
            LineFileStore(self.config.books_file, BookCodec()),
            RelationalStore(self.db, BookMapper()),
            timeout=timeout,
            first_id=FIRST_BOOK_ID,
        )
        self.member_store: DualWritePersistence[Member] = DualWritePersistence(
            "member",
            LineFileStore(self.config.members_file, MemberCodec()),
            RelationalStore(self.db, MemberMapper()),
            timeout=timeout,
            first_id=FIRST_MEMBER_ID,
        )
        self.loan_store: DualWritePersistence[Loan] = DualWritePersistence(
            "loan",
            LineFileStore(self.config.loans_file, LoanCodec()),
            RelationalStore(self.db, LoanMapper()),
            timeout=timeout,
            first_id=FIRST_LOAN_ID,
        )

        self.books = BookInventory(self.book_store)
        self.members = MemberDirectory(self.member_store)
        self.loans = LoanLedger(self.books, self.loan_store, self.members)

    @classmethod
    def open(cls, config: Optional[Config] = None, db: Optional[Database] = None) -> "Library":
        """Build a library and reconcile its stores."""
        library = cls(config, db)
        library.reconcile()
        return library

    def reconcile(self) -> ReconcileReport:
        """Rebuild the in-memory state from the file and database stores."""
        books = self.books.load()
        members = self.members.load()
        loans = self.loans.load()

        # Loan history outlives deleted books and members; their ids stay taken
        for loan in loans:
            self.book_store.reserve_through(loan.book_id)
            self.member_store.reserve_through(loan.member_id)

        return ReconcileReport(
            books=len(books),
            members=len(members),
            loans=len(loans),
            anomalies=list(self.loans.anomalies),
            failures=self.failures,
        )

    @property
    def failures(self) -> list[PersistenceFailure]:
        """Every store failure recorded so far."""
        return [
            *self.book_store.failures,
            *self.member_store.failures,
            *self.loan_store.failures,
        ]

    def close(self) -> None:
        for store in (self.book_store, self.member_store, self.loan_store):
            store.close()

    def __enter__(self) -> "Library":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Books
    # -------------------------------------------------------------------------

    def add_book(self, title: str, author: str, genre: str = "", copies: int = 0) -> Book:
        return self.books.add_book(
            BookCreate(title=title, author=author, genre=genre, initial_copies=copies)
        )

    def update_book(
        self,
        book_id: int,
        title: Optional[str] = None,
        author: Optional[str] = None,
        genre: Optional[str] = None,
    ) -> Book:
        return self.books.update_details(
            book_id, BookUpdate(title=title, author=author, genre=genre)
        )

    def delete_book(self, book_id: int) -> None:
        self.books.delete_book(book_id)

    def get_book(self, book_id: int) -> Book:
        return self.books.get_book(book_id)

    def list_books(self) -> list[Book]:
        return self.books.list_books()

    def search_by_title(self, title: str) -> list[Book]:
        return self.books.find_by_title(title)

    def search_by_author(self, author: str) -> list[Book]:
        return self.books.find_by_author(author)

    def search_by_genre(self, genre: str) -> list[Book]:
        return self.books.find_by_genre(genre)

    def sort_by_title(self) -> list[Book]:
        return self.books.list_sorted_by(SortField.TITLE)

    def sort_by_genre(self) -> list[Book]:
        return self.books.list_sorted_by(SortField.GENRE)

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    def register_member(self, name: str, email: str, phone: str = "") -> Member:
        return self.members.register(MemberCreate(name=name, email=email, phone=phone))

    def update_member(
        self,
        member_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Member:
        return self.members.update_member(
            member_id, MemberUpdate(name=name, email=email, phone=phone)
        )

    def delete_member(self, member_id: int) -> None:
        self.members.delete_member(member_id)

    def get_member(self, member_id: int) -> Member:
        return self.members.get_member(member_id)

    def member_by_email(self, email: str) -> Member:
        """Resolve a member by email.

        Raises:
            NotFound: If no member has that email
        """
        member = self.members.find_by_email(email)
        if member is None:
            raise NotFound("Member", email)
        return member

    def list_members(self) -> list[Member]:
        return self.members.list_members()

    # -------------------------------------------------------------------------
    # Loans
    # -------------------------------------------------------------------------

    def open_loan(self, book_id: int, member_id: int) -> Loan:
        return self.loans.open_loan(book_id, member_id)

    def close_loan(self, book_id: int, member_id: int) -> Loan:
        return self.loans.close_loan(book_id, member_id)

    def list_active_loans_for_member(self, member_id: int) -> list[int]:
        return self.loans.active_loans_for_member(member_id)

    def borrowed_books(self, member_id: int) -> list[Book]:
        """Books a member has on loan; ids no longer in the catalog are skipped."""
        books = []
        for book_id in self.loans.active_loans_for_member(member_id):
            book = self.book_store.get(book_id)
            if book is not None:
                books.append(book)
        return books

    def loan_details(self) -> list[LoanDetail]:
        return self.loans.loan_details()


# Global library instance
_library: Optional[Library] = None


def get_library() -> Library:
    """Get or create the global, reconciled library instance."""
    global _library
    if _library is None:
        _library = Library.open()
    return _library


def reset_library() -> None:
    """Close and forget the global library instance. Used for testing."""
    global _library
    if _library is not None:
        _library.close()
        _library.db.dispose()
    _library = None
