"""Process-local keyed mutexes for read-modify-write updates on shared parents."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType

log = getLogger(__name__)


class LockHandle:
    """Ownership of one keyed mutex; release exactly once."""

    __slots__ = ("_key", "_lock", "_released")

    def __init__(self, key: str, lock: threading.Lock) -> None:
        self._key = key
        self._lock = lock
        self._released = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            raise RuntimeError(f"lock {self._key!r} already released")
        self._released = True
        self._lock.release()
        log.debug("Released lock %s", self._key)

    def __enter__(self) -> LockHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self._released:
            self.release()


class LockRegistry:
    """Table of named locks created on first use and kept for the process lifetime.

    Guarantees mutual exclusion only between callers passing the identical key
    to the same registry instance. Entries are never removed.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def lock(self, key: str) -> LockHandle:
        """Block until ``key`` is free and return a handle owning it."""

        lock = self._lock_for(key)
        log.debug("Waiting for lock %s", key)
        lock.acquire()
        log.debug("Acquired lock %s", key)
        return LockHandle(key, lock)

    def held(self, key: str) -> LockHandle:
        """Shorthand for ``with registry.held(key): ...``."""

        return self.lock(key)

    def __contains__(self, key: object) -> bool:
        with self._guard:
            return key in self._locks

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = ["LockHandle", "LockRegistry"]
