"""Per-pool mutual exclusion.

Mutating operations hold the lock exclusively for their whole duration,
including calls out to the asset-transfer collaborator. Queries share the
lock with each other but never run alongside a mutation. Once a writer is
waiting, new readers queue behind it so steady query load cannot starve
mutations. A thread that already holds the write side and tries to enter
again (typically from a transfer callback) fails with ReentrancyError
rather than deadlocking.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from weighted_amm.errors import ReentrancyError


class PoolLock:
    """Non-reentrant readers-writer lock that prefers waiting writers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._writer: int | None = None
        self._readers = 0
        self._writers_waiting = 0

    @property
    def is_mutating(self) -> bool:
        """True while some thread holds the write side."""
        return self._writer is not None

    def _check_reentry(self) -> None:
        if self._writer == threading.get_ident():
            raise ReentrancyError("Pool re-entered during a mutating operation")

    @contextmanager
    def mutating(self) -> Iterator[None]:
        """Hold the lock exclusively."""
        with self._cond:
            self._check_reentry()
            self._writers_waiting += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = threading.get_ident()
        try:
            yield
        finally:
            with self._cond:
                self._writer = None
                self._cond.notify_all()

    @contextmanager
    def reading(self) -> Iterator[None]:
        """Hold the lock shared with other readers."""
        with self._cond:
            self._check_reentry()
            while self._writer is not None or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()
