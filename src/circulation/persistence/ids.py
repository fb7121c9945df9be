"""Monotonic integer identity allocation."""

import threading


class IdSequence:
    """Hands out increasing ids; never one it has issued or been advanced past."""

    def __init__(self, start: int = 1):
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def advance_past(self, value: int) -> None:
        """Make sure the next id handed out is greater than ``value``."""
        with self._lock:
            if value >= self._next:
                self._next = value + 1
