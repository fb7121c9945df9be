"""Member directory: identity lookup for lending."""

import logging
import threading
from typing import Callable, Optional

from ..errors import Conflict, NotFound
from ..persistence import DualWritePersistence
from .schemas import Member, MemberCreate, MemberUpdate

logger = logging.getLogger(__name__)

FIRST_MEMBER_ID = 1001


class MemberDirectory:
    """Registers members and resolves them by id or email."""

    def __init__(self, persistence: DualWritePersistence[Member]):
        """Initialize the directory.

        Args:
            persistence: Store for member records
        """
        self.persistence = persistence
        self._lock = threading.RLock()
        self._loan_guard: Optional[Callable[[int], bool]] = None

    def attach_loan_guard(self, has_active_loans: Callable[[int], bool]) -> None:
        """Register the check that blocks deleting members with books out."""
        self._loan_guard = has_active_loans

    def load(self) -> list[Member]:
        self.persistence.reconcile_on_startup()
        return self.list_members()

    def register(self, data: MemberCreate) -> Member:
        """Register a new member.

        Raises:
            Conflict: If the email is already registered
        """
        with self._lock:
            if self.find_by_email(data.email) is not None:
                raise Conflict(f"A member with email {data.email} already exists")

            member = Member(
                id=self.persistence.next_id(),
                name=data.name,
                email=data.email,
                phone=data.phone,
            )
            self.persistence.write(member)

        logger.info("Member registered: %s (id %d)", member.name, member.id)
        return member

    def get_member(self, member_id: int) -> Member:
        """Get a member by ID.

        Raises:
            NotFound: If the member does not exist
        """
        member = self.persistence.get(member_id)
        if member is None:
            raise NotFound("Member", member_id)
        return member

    def find_by_email(self, email: str) -> Optional[Member]:
        """Find a member by email, ignoring case."""
        wanted = email.strip().casefold()
        for member in self.persistence.values():
            if member.email.casefold() == wanted:
                return member
        return None

    def list_members(self) -> list[Member]:
        return self.persistence.values()

    def update_member(self, member_id: int, data: MemberUpdate) -> Member:
        """Update a member's details.

        Raises:
            NotFound: If the member does not exist
            Conflict: If the new email belongs to another member
        """
        with self._lock:
            member = self.get_member(member_id)
            changes = data.model_dump(exclude_unset=True, exclude_none=True)
            updated = member.model_copy(update=changes)

            other = self.find_by_email(updated.email)
            if other is not None and other.id != member_id:
                raise Conflict(f"A member with email {updated.email} already exists")

            self.persistence.write(updated)

        logger.info("Member updated: %d", member_id)
        return updated

    def delete_member(self, member_id: int) -> None:
        """Remove a member.

        Raises:
            NotFound: If the member does not exist
            Conflict: If the member still has books on loan
        """
        with self._lock:
            member = self.get_member(member_id)
            if self._loan_guard is not None and self._loan_guard(member_id):
                raise Conflict(f"Member {member_id} has active loans and cannot be deleted")
            self.persistence.delete(member_id)

        logger.info("Member deleted: %s (id %d)", member.name, member.id)
