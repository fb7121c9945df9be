"""Per-identity mutual exclusion.

Mutations on one book (or any other keyed entity) are serialized by taking
that key's lock; mutations on different keys proceed independently. The
locks are re-entrant so a component holding a key may call helpers that take
the same key.
"""

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator


class IdentityLocks:
    """Lazily created re-entrant lock per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.RLock] = {}

    def lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self.lock_for(key):
            yield
