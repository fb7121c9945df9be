"""Persistence layer: in-memory cache replicated to a file and a database."""

from .base import Entity, EntityStore, LineCodec, RowMapper
from .dual_write import DualWritePersistence
from .ids import IdSequence
from .line_file import LineFileStore
from .locks import IdentityLocks
from .relational import RelationalStore

__all__ = [
    "Entity",
    "EntityStore",
    "LineCodec",
    "RowMapper",
    "DualWritePersistence",
    "IdSequence",
    "LineFileStore",
    "IdentityLocks",
    "RelationalStore",
]
