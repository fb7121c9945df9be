"""Dual-write persistence with startup reconciliation.

Every mutation is applied to the in-memory cache first and then replicated
to two independently failing stores: a line-oriented file and a relational
database. There is no transaction spanning the two, so they are kept
eventually consistent:

- A failed or timed-out store write is logged as a ``PersistenceFailure``
  and the in-memory state stands.
- ``reconcile_on_startup`` merges both stores (the database wins on
  disagreement), re-writes file-only records to the database and rewrites
  the file when it differs from the merged set.

Each store has its own single-worker executor. Writes to one store are
applied in the order they were issued, and a caller waits at most
``timeout`` seconds on any one of them.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any, Callable, Generic, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceFailure
from .base import E, EntityStore
from .ids import IdSequence
from .line_file import LineFileStore

logger = logging.getLogger(__name__)

FILE_STORE = "file"
DATABASE_STORE = "database"

# Store-level errors that degrade an operation instead of failing it
STORE_ERRORS = (FuturesTimeout, OSError, SQLAlchemyError)


def _drained() -> None:
    """No-op queued behind earlier store calls; finishing means they finished."""


class DualWritePersistence(Generic[E]):
    """Cache plus file plus database for one entity type."""

    def __init__(
        self,
        name: str,
        file_store: LineFileStore[E],
        relational_store: EntityStore[E],
        timeout: Optional[float] = 5.0,
        first_id: int = 1,
    ):
        """Initialize persistence for one entity type.

        Args:
            name: Entity name used in log messages ("book", "loan", ...)
            file_store: Line-oriented file store
            relational_store: Database-backed store
            timeout: Seconds to wait on each store call; None waits forever
            first_id: Smallest id ``next_id`` will hand out
        """
        self.name = name
        self.file_store = file_store
        self.relational_store = relational_store
        self.timeout = timeout
        self.failures: list[PersistenceFailure] = []

        self._cache: dict[int, E] = {}
        self._ids = IdSequence(first_id)
        self._file_worker = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"{name}-file"
        )
        self._db_worker = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"{name}-db"
        )
        self._closed = False

    # -------------------------------------------------------------------------
    # Cache reads
    # -------------------------------------------------------------------------

    def get(self, entity_id: int) -> Optional[E]:
        entity = self._cache.get(entity_id)
        return entity.model_copy() if entity is not None else None

    def values(self) -> list[E]:
        """All cached entities, ordered by id."""
        return [self._cache[k].model_copy() for k in sorted(self._cache)]

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def next_id(self) -> int:
        return self._ids.next()

    def reserve_through(self, entity_id: int) -> None:
        """Keep ``next_id`` above an id referenced elsewhere, even if no record holds it."""
        self._ids.advance_past(entity_id)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def write(self, entity: E) -> None:
        """Cache the entity, then upsert it in the file and the database."""
        self._cache[entity.id] = entity.model_copy()
        self._ids.advance_past(entity.id)

        self._replicate(
            self._file_worker, FILE_STORE, "write", entity.id, self.file_store.upsert, entity
        )
        self._replicate(
            self._db_worker,
            DATABASE_STORE,
            "write",
            entity.id,
            self.relational_store.upsert,
            entity,
        )

    def delete(self, entity_id: int) -> None:
        """Evict the entity, then remove it from the file and the database."""
        self._cache.pop(entity_id, None)

        self._replicate(
            self._file_worker, FILE_STORE, "delete", entity_id, self.file_store.remove, entity_id
        )
        self._replicate(
            self._db_worker,
            DATABASE_STORE,
            "delete",
            entity_id,
            self.relational_store.remove,
            entity_id,
        )

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def reconcile_on_startup(self) -> dict[int, E]:
        """Merge both stores into the cache and heal whichever side is behind.

        Returns:
            Mapping of id to entity that now seeds the cache
        """
        db_records: Optional[dict[int, E]] = None
        try:
            db_records = self._call(self._db_worker, self.relational_store.load_all)
        except STORE_ERRORS as e:
            logger.warning(
                "Could not load %ss from the database, falling back to %s: %s",
                self.name,
                self.file_store.path,
                e,
            )

        file_readable = True
        try:
            file_records = self._call(self._file_worker, self.file_store.load_all)
        except STORE_ERRORS as e:
            logger.warning("Could not read %s: %s", self.file_store.path, e)
            file_records = {}
            file_readable = False

        merged: dict[int, E] = dict(file_records)

        if db_records is not None:
            for entity_id, db_entity in db_records.items():
                file_entity = file_records.get(entity_id)
                if file_entity is not None and file_entity != db_entity:
                    logger.info(
                        "%s %s differs between file and database; keeping database copy",
                        self.name.capitalize(),
                        entity_id,
                    )
                merged[entity_id] = db_entity

            for entity_id in sorted(file_records.keys() - db_records.keys()):
                logger.info(
                    "%s %s found only in %s; restoring it to the database",
                    self.name.capitalize(),
                    entity_id,
                    self.file_store.path,
                )
                self._replicate(
                    self._db_worker,
                    DATABASE_STORE,
                    "heal",
                    entity_id,
                    self.relational_store.upsert,
                    file_records[entity_id],
                )

            if file_readable and file_records != merged:
                logger.info("Rewriting %s from reconciled %ss", self.file_store.path, self.name)
                self._replicate(
                    self._file_worker,
                    FILE_STORE,
                    "heal",
                    None,
                    self.file_store.replace_all,
                    list(merged.values()),
                )

        self._cache = {k: v.model_copy() for k, v in merged.items()}
        if merged:
            self._ids.advance_past(max(merged))

        logger.info("Loaded %d %ss", len(merged), self.name)
        return {k: v.model_copy() for k, v in merged.items()}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Give queued store writes up to ``timeout`` seconds, then stop the workers.

        A store call still running after that is abandoned, not awaited.
        """
        if self._closed:
            return
        self._closed = True
        for store, worker in ((FILE_STORE, self._file_worker), (DATABASE_STORE, self._db_worker)):
            try:
                self._call(worker, _drained)
            except FuturesTimeout:
                logger.warning(
                    "%s %s store still busy after %ss; abandoning pending writes",
                    self.name.capitalize(),
                    store,
                    self.timeout,
                )
            worker.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "DualWritePersistence[E]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _call(self, worker: ThreadPoolExecutor, fn: Callable[..., Any], *args: Any) -> Any:
        """Run ``fn`` on a store worker and wait at most ``timeout`` seconds."""
        return worker.submit(fn, *args).result(timeout=self.timeout)

    def _replicate(
        self,
        worker: ThreadPoolExecutor,
        store: str,
        operation: str,
        entity_id: Optional[int],
        fn: Callable[..., Any],
        *args: Any,
    ) -> bool:
        """Run a store write; record a failure instead of raising."""
        try:
            self._call(worker, fn, *args)
        except STORE_ERRORS as e:
            failure = PersistenceFailure(store, operation, entity_id, e)
            self.failures.append(failure)
            logger.warning("Persistence failure (%s): %s", self.name, failure)
            return False
        return True
