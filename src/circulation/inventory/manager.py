"""Book inventory: the catalog and its available-copy counters."""

import logging
import threading
from typing import Callable, ContextManager, Optional

from ..errors import Conflict, DuplicateBook, Exhausted, NotFound
from ..persistence import DualWritePersistence, IdentityLocks
from .schemas import Book, BookCreate, BookUpdate, SortField

logger = logging.getLogger(__name__)

# Ids handed to a fresh catalog start here
FIRST_BOOK_ID = 1001


class BookInventory:
    """Owns books and is the only place their copy counts change."""

    def __init__(self, persistence: DualWritePersistence[Book]):
        """Initialize the inventory.

        Args:
            persistence: Store for book records
        """
        self.persistence = persistence
        self._locks = IdentityLocks()
        # Serializes add/update so the (title, author) check cannot race
        self._catalog_lock = threading.RLock()
        self._loan_guard: Optional[Callable[[int], bool]] = None

    def attach_loan_guard(self, has_active_loans: Callable[[int], bool]) -> None:
        """Register the check that blocks deleting books that are on loan."""
        self._loan_guard = has_active_loans

    def hold(self, book_id: int) -> ContextManager[None]:
        """Lock one book. Loans take it so opening a loan and deleting the book serialize."""
        return self._locks.hold(book_id)

    def load(self) -> list[Book]:
        """Reconcile the backing stores and return the loaded catalog."""
        self.persistence.reconcile_on_startup()
        return self.list_books()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_book(self, data: BookCreate) -> Book:
        """Add a new book to the catalog.

        Args:
            data: Book creation data

        Returns:
            Created book

        Raises:
            DuplicateBook: If the same title and author are already catalogued
        """
        with self._catalog_lock:
            if self._find_work(data.title, data.author) is not None:
                raise DuplicateBook(data.title, data.author)

            book = Book(
                id=self.persistence.next_id(),
                title=data.title,
                author=data.author,
                genre=data.genre,
                available_copies=data.initial_copies,
            )
            self.persistence.write(book)

        logger.info(
            "Book added: '%s' by %s (id %d, %d copies)",
            book.title,
            book.author,
            book.id,
            book.available_copies,
        )
        return book

    def adjust_availability(self, book_id: int, delta: int) -> None:
        """Apply ``available_copies += delta`` atomically.

        Raises:
            NotFound: If the book does not exist
            Exhausted: If the count would drop below zero
        """
        with self._locks.hold(book_id):
            book = self.get_book(book_id)
            remaining = book.available_copies + delta
            if remaining < 0:
                raise Exhausted(book_id)
            self.persistence.write(book.model_copy(update={"available_copies": remaining}))

        logger.debug("Book %d availability %+d -> %d", book_id, delta, remaining)

    def update_details(self, book_id: int, data: BookUpdate) -> Book:
        """Update title, author or genre.

        Raises:
            NotFound: If the book does not exist
            DuplicateBook: If the new title and author belong to another book
        """
        with self._catalog_lock, self._locks.hold(book_id):
            book = self.get_book(book_id)
            changes = data.model_dump(exclude_unset=True, exclude_none=True)
            updated = book.model_copy(update=changes)

            clash = self._find_work(updated.title, updated.author)
            if clash is not None and clash.id != book_id:
                raise DuplicateBook(updated.title, updated.author)

            self.persistence.write(updated)

        logger.info("Book updated: %d '%s' by %s", updated.id, updated.title, updated.author)
        return updated

    def delete_book(self, book_id: int) -> None:
        """Remove a book from the catalog.

        Raises:
            NotFound: If the book does not exist
            Conflict: If the book has active loans
        """
        with self._catalog_lock, self._locks.hold(book_id):
            book = self.get_book(book_id)
            if self._loan_guard is not None and self._loan_guard(book_id):
                raise Conflict(f"Book {book_id} has active loans and cannot be deleted")
            self.persistence.delete(book_id)

        logger.info("Book deleted: %d '%s'", book.id, book.title)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_book(self, book_id: int) -> Book:
        """Get a book by ID.

        Raises:
            NotFound: If the book does not exist
        """
        book = self.persistence.get(book_id)
        if book is None:
            raise NotFound("Book", book_id)
        return book

    def list_books(self) -> list[Book]:
        """All books, ordered by id."""
        return self.persistence.values()

    def find_by_title(self, title: str) -> list[Book]:
        """Books whose title matches exactly, ignoring case."""
        wanted = title.strip().casefold()
        return [b for b in self.list_books() if b.title.casefold() == wanted]

    def find_by_author(self, author: str) -> list[Book]:
        """Books whose author contains ``author``, ignoring case."""
        needle = author.strip().casefold()
        return [b for b in self.list_books() if needle in b.author.casefold()]

    def find_by_genre(self, genre: str) -> list[Book]:
        """Books whose genre contains ``genre``, ignoring case."""
        needle = genre.strip().casefold()
        return [b for b in self.list_books() if needle in b.genre.casefold()]

    def list_sorted_by(self, field: SortField) -> list[Book]:
        """All books sorted by title or genre, ties broken by id."""
        key = SortField(field).value
        return sorted(self.list_books(), key=lambda b: (getattr(b, key).casefold(), b.id))

    def _find_work(self, title: str, author: str) -> Optional[Book]:
        for book in self.list_books():
            if book.same_work(title, author):
                return book
        return None
