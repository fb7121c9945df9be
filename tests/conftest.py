"""Pytest configuration and shared fixtures.

This module provides fixtures for testing library circulation, including
temporary data directories, databases and fully wired libraries.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest

from circulation.config import Config, reset_config
from circulation.db.sqlite import Database
from circulation.inventory import FIRST_BOOK_ID, Book, BookCodec, BookInventory, BookMapper
from circulation.library import Library, reset_library
from circulation.persistence import DualWritePersistence, LineFileStore, RelationalStore


# ============================================================================
# Configuration / Database Fixtures
# ============================================================================


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Configuration pointing every store at a temporary directory."""
    return Config(
        db_path=tmp_path / "library.db",
        data_dir=tmp_path / "data",
        store_timeout=5.0,
        log_file=tmp_path / "library_log.txt",
        log_level="INFO",
    )


@pytest.fixture
def db(config: Config) -> Generator[Database, None, None]:
    """Create a test database instance."""
    database = Database(str(config.db_path))
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture(autouse=True)
def reset_globals() -> Generator[None, None, None]:
    """Make sure no global config or library leaks between tests."""
    reset_config()
    reset_library()
    yield
    reset_library()
    reset_config()


# ============================================================================
# Component Fixtures
# ============================================================================


@pytest.fixture
def book_store(config: Config, db: Database) -> Generator[DualWritePersistence[Book], None, None]:
    """Book persistence over a temp file and the test database."""
    store = DualWritePersistence(
        "book",
        LineFileStore(config.books_file, BookCodec()),
        RelationalStore(db, BookMapper()),
        timeout=5.0,
        first_id=FIRST_BOOK_ID,
    )
    yield store
    store.close()


@pytest.fixture
def inventory(book_store: DualWritePersistence[Book]) -> BookInventory:
    """An empty book inventory."""
    return BookInventory(book_store)


@pytest.fixture
def library(config: Config, db: Database) -> Generator[Library, None, None]:
    """A reconciled library over empty stores."""
    lib = Library.open(config, db)
    yield lib
    lib.close()


class FixedClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()
