"""Loan ledger: opening and closing loans against the book inventory."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional

from ..errors import Conflict, Exhausted, NotFound
from ..inventory import BookInventory
from ..members import MemberDirectory
from ..persistence import DualWritePersistence
from .schemas import Loan, LoanDetail, utc_now

logger = logging.getLogger(__name__)

FIRST_LOAN_ID = 1


class LoanLedger:
    """Owns loan records and keeps book availability in step with them.

    Each book's open/close sequence runs under the inventory's lock for that
    book, so the availability check, the duplicate-loan check, the copy
    adjustment and any delete of the book happen one at a time.
    """

    def __init__(
        self,
        inventory: BookInventory,
        persistence: DualWritePersistence[Loan],
        members: Optional[MemberDirectory] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the ledger.

        Args:
            inventory: Book inventory whose copy counts this ledger drives
            persistence: Store for loan records
            members: Directory used to validate members; skipped if None
            clock: Source of borrow and return timestamps
        """
        self.inventory = inventory
        self.persistence = persistence
        self.members = members
        self._clock = clock
        self.anomalies: list[Loan] = []

        inventory.attach_loan_guard(self.has_active_loans)
        if members is not None:
            members.attach_loan_guard(self.member_has_active_loans)

    def load(self) -> list[Loan]:
        """Reconcile the backing stores and flag duplicate active loans."""
        self.persistence.reconcile_on_startup()
        self.anomalies = self._find_anomalies()
        return self.all_loans()

    # -------------------------------------------------------------------------
    # Borrow / return
    # -------------------------------------------------------------------------

    def open_loan(self, book_id: int, member_id: int) -> Loan:
        """Lend a copy of a book to a member.

        Args:
            book_id: Book to lend
            member_id: Borrowing member

        Returns:
            The new active loan

        Raises:
            NotFound: If the book (or member) does not exist
            Conflict: If the member already has this book on loan
            Exhausted: If no copies are available
        """
        with self.inventory.hold(book_id):
            book = self.inventory.get_book(book_id)
            if self.members is not None:
                self.members.get_member(member_id)

            if self._active_loan(book_id, member_id) is not None:
                raise Conflict(f"Member {member_id} already has book {book_id} on loan")
            if book.available_copies <= 0:
                raise Exhausted(book_id)

            loan = Loan(
                id=self.persistence.next_id(),
                book_id=book_id,
                member_id=member_id,
                borrow_date=self._clock(),
            )
            self.inventory.adjust_availability(book_id, -1)
            try:
                self.persistence.write(loan)
            except Exception:
                self.inventory.adjust_availability(book_id, +1)
                raise

        logger.info(
            "Member %d borrowed book %d '%s' (loan %d)", member_id, book_id, book.title, loan.id
        )
        return loan

    def close_loan(self, book_id: int, member_id: int) -> Loan:
        """Return a member's copy of a book.

        Returns:
            The loan, now returned

        Raises:
            NotFound: If the member has no active loan for the book
        """
        with self.inventory.hold(book_id):
            loan = self._active_loan(book_id, member_id)
            if loan is None:
                raise NotFound("Active loan", f"of book {book_id} by member {member_id}")

            returned = Loan(**{**loan.model_dump(), "return_date": self._clock()})
            self.inventory.adjust_availability(book_id, +1)
            try:
                self.persistence.write(returned)
            except Exception:
                self.inventory.adjust_availability(book_id, -1)
                raise

        logger.info("Member %d returned book %d (loan %d)", member_id, book_id, returned.id)
        return returned

    # -------------------------------------------------------------------------
    # Queries (in-memory only)
    # -------------------------------------------------------------------------

    def get_loan(self, loan_id: int) -> Loan:
        loan = self.persistence.get(loan_id)
        if loan is None:
            raise NotFound("Loan", loan_id)
        return loan

    def all_loans(self) -> list[Loan]:
        return self.persistence.values()

    def active_loans(self) -> list[Loan]:
        return [loan for loan in self.all_loans() if loan.is_active]

    def active_loans_for_member(self, member_id: int) -> list[int]:
        """Ids of the books a member has on loan, one per active loan, sorted."""
        return sorted(loan.book_id for loan in self.active_loans() if loan.member_id == member_id)

    def is_actively_borrowed(self, book_id: int, member_id: int) -> bool:
        return self._active_loan(book_id, member_id) is not None

    def has_active_loans(self, book_id: int) -> bool:
        return any(loan.book_id == book_id for loan in self.active_loans())

    def member_has_active_loans(self, member_id: int) -> bool:
        return any(loan.member_id == member_id for loan in self.active_loans())

    def loan_details(self) -> list[LoanDetail]:
        """Every loan with its book title and member name."""
        details = []
        for loan in self.all_loans():
            book = self.inventory.persistence.get(loan.book_id)
            member = self.members.persistence.get(loan.member_id) if self.members else None
            details.append(
                LoanDetail(
                    loan_id=loan.id,
                    book_id=loan.book_id,
                    book_title=book.title if book else "Unknown Book",
                    member_id=loan.member_id,
                    member_name=member.name if member else "Unknown Member",
                    status=loan.status,
                    borrow_date=loan.borrow_date,
                    return_date=loan.return_date,
                )
            )
        return details

    def _active_loan(self, book_id: int, member_id: int) -> Optional[Loan]:
        """The authoritative active loan for a pair: the one with the smallest id."""
        for loan in self.active_loans():
            if loan.book_id == book_id and loan.member_id == member_id:
                return loan
        return None

    def _find_anomalies(self) -> list[Loan]:
        by_pair: dict[tuple[int, int], list[Loan]] = defaultdict(list)
        for loan in self.active_loans():
            by_pair[(loan.book_id, loan.member_id)].append(loan)

        anomalies = []
        for (book_id, member_id), loans in sorted(by_pair.items()):
            if len(loans) < 2:
                continue
            keep, *extra = loans
            for loan in extra:
                logger.warning(
                    "Loan %d duplicates active loan %d for book %d and member %d; "
                    "keeping %d as authoritative",
                    loan.id,
                    keep.id,
                    book_id,
                    member_id,
                    keep.id,
                )
            anomalies.extend(extra)
        return sorted(anomalies, key=lambda loan: loan.id)
