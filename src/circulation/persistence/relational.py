"""Relational store backed by the SQLAlchemy ``Database``."""

from typing import Generic

from sqlalchemy import select

from ..db.sqlite import Database
from .base import E, RowMapper


class RelationalStore(Generic[E]):
    """Keeps entities of one type in a database table."""

    def __init__(self, db: Database, mapper: RowMapper[E]):
        """Initialize the store.

        Args:
            db: Database instance
            mapper: Converts entities to and from ORM rows
        """
        self.db = db
        self.mapper = mapper

    def load_all(self) -> dict[int, E]:
        """Load every row.

        Raises:
            SQLAlchemyError: If the database is unreachable or the table is missing
        """
        with self.db.get_session() as session:
            rows = session.execute(select(self.mapper.row_type)).scalars().all()
            entities = [self.mapper.from_row(row) for row in rows]
        return {entity.id: entity for entity in entities}

    def upsert(self, entity: E) -> None:
        """Insert the row, or update it if the primary key exists."""
        with self.db.get_session() as session:
            session.merge(self.mapper.to_row(entity))

    def remove(self, entity_id: int) -> None:
        with self.db.get_session() as session:
            row = session.get(self.mapper.row_type, entity_id)
            if row is not None:
                session.delete(row)
