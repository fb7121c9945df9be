"""Failure taxonomy for circulation operations.

``NotFound``, ``DuplicateBook``, ``Exhausted`` and ``Conflict`` are decision
outcomes: they are raised to the caller, which presents them to the user.
``PersistenceFailure`` is only ever recorded and logged by the persistence
layer; the in-memory operation that triggered it still succeeded.
"""

from typing import Optional


class CirculationError(Exception):
    """Base class for expected, user-facing failures."""


class NotFound(CirculationError):
    """An id does not match any known entity."""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class DuplicateBook(CirculationError):
    """A book with the same title and author already exists."""

    def __init__(self, title: str, author: str):
        self.title = title
        self.author = author
        super().__init__(f"Book '{title}' by {author} already exists")


class Exhausted(CirculationError):
    """No copies left to lend."""

    def __init__(self, book_id: int):
        self.book_id = book_id
        super().__init__(f"No copies of book {book_id} are available")


class Conflict(CirculationError):
    """The operation would break a loan invariant."""


class PersistenceFailure(Exception):
    """A write to a backing store failed or timed out."""

    def __init__(
        self,
        store: str,
        operation: str,
        entity_id: Optional[int],
        cause: BaseException,
    ):
        self.store = store
        self.operation = operation
        self.entity_id = entity_id
        self.cause = cause
        super().__init__(
            f"{store} {operation} failed for id {entity_id}: {cause!r}"
        )
