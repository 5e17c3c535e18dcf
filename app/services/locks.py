"""
Lock Manager - FoodEval Scoring Engine
app/services/locks.py

Mutual exclusion for check-then-act sections:

    sample:<id>                          session creation, sample transitions,
                                         aggregation, auto-exclusion tally
    session:<id>                         session complete / cancel and every
                                         expert evaluation write
    document:<event>:<kind>:<number>     new document versions, transitions
    counter:<scope>                      sequential / document number allocation

A lock that cannot be acquired within the blocking timeout raises
LockConflict, which callers treat as retryable.

No section holds a ``session:`` and a ``sample:`` lock at the same time.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from functools import lru_cache
from typing import Dict, Generator, Optional

import redis
from redis.exceptions import LockError

from app.config import settings
from app.core.exceptions import LockConflict

logger = logging.getLogger(__name__)


class LockManager(ABC):

    @abstractmethod
    def hold(self, key: str) -> Generator[None, None, None]:
        """Context manager holding the lock for ``key``."""

    def _conflict(self, key: str) -> LockConflict:
        logger.warning("lock_conflict", extra={"lock_key": key})
        return LockConflict(
            f"Resource '{key}' is busy, retry the operation", {"lock_key": key}
        )


class _KeyLock:
    """A key's lock plus the number of callers holding or waiting on it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class LocalLockManager(LockManager):
    """
    Per-key ``threading.Lock``; valid within a single process only.

    A key's entry lives while some caller holds or waits on it and is
    dropped by the last one out.
    """

    def __init__(self, blocking_timeout: Optional[float] = None):
        self.blocking_timeout = (
            settings.LOCK_BLOCKING_TIMEOUT_SECONDS if blocking_timeout is None else blocking_timeout
        )
        self._guard = threading.Lock()
        self._locks: Dict[str, _KeyLock] = {}

    def _checkout(self, key: str) -> _KeyLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
            return entry

    def _checkin(self, key: str, entry: _KeyLock) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(timeout=self.blocking_timeout):
                raise self._conflict(key)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(key, entry)


class RedisLockManager(LockManager):
    """Distributed locks via redis-py ``Lock`` with a lease timeout."""

    def __init__(self, client: Optional[redis.Redis] = None):
        self.client = client or redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        self.timeout = settings.LOCK_TIMEOUT_SECONDS
        self.blocking_timeout = settings.LOCK_BLOCKING_TIMEOUT_SECONDS
        self.prefix = settings.LOCK_KEY_PREFIX

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        lock = self.client.lock(
            f"{self.prefix}{key}",
            timeout=self.timeout,
            blocking_timeout=self.blocking_timeout,
        )
        if not lock.acquire():
            raise self._conflict(key)
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # Lease expired while held; the section already ran.
                logger.warning("lock_lease_expired", extra={"lock_key": key})


# ---- FastAPI dependency singleton ----
@lru_cache
def get_lock_manager() -> LockManager:
    if settings.LOCK_BACKEND == "redis":
        return RedisLockManager()
    return LocalLockManager()
