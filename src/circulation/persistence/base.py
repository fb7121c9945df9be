"""Shared building blocks for entity persistence.

Every persisted entity is a pydantic model with an integer ``id``. Each
backing store knows how to load every record and how to upsert or remove a
single one; the codec and row-mapper classes translate entities to the line
and row formats of the two stores.
"""

from abc import ABC, abstractmethod
from typing import Generic, Protocol, TypeVar

from pydantic import BaseModel, Field

from ..db.models import Base


class Entity(BaseModel):
    """Base for anything stored through dual-write persistence."""

    id: int = Field(..., ge=1)


E = TypeVar("E", bound=Entity)


class EntityStore(Protocol[E]):
    """Minimal contract of a backing store."""

    def load_all(self) -> dict[int, E]: ...

    def upsert(self, entity: E) -> None: ...

    def remove(self, entity_id: int) -> None: ...


class LineCodec(ABC, Generic[E]):
    """Converts an entity to and from the fields of one comma-separated line."""

    #: Number of comma-separated fields in a well-formed line
    field_count: int

    @abstractmethod
    def encode(self, entity: E) -> list[str]:
        """Return the line fields for an entity, in file order."""

    @abstractmethod
    def decode(self, fields: list[str]) -> E:
        """Build an entity from line fields.

        Raises:
            ValueError: If a field cannot be parsed
        """


class RowMapper(ABC, Generic[E]):
    """Converts an entity to and from its ORM row."""

    #: ORM class holding this entity's table
    row_type: type[Base]

    @abstractmethod
    def to_row(self, entity: E) -> Base:
        """Build a detached ORM row for an entity."""

    @abstractmethod
    def from_row(self, row: Base) -> E:
        """Build an entity from an ORM row."""
