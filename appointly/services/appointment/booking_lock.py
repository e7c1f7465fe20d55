# appointly/services/appointment/booking_lock.py
"""
Locks serializing the check-then-insert booking sequence per employee and day.

Without a database exclusion constraint this is a best-effort guarantee:
LocalBookingLock only covers one process, RedisBookingLock covers every
process sharing the Redis instance. The PostgreSQL migration adds the
exclusion constraint that makes double-booking impossible at the store level.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Dict, Optional
from uuid import UUID

from redis.exceptions import LockNotOwnedError

from appointly.config.redis import RedisKeys, get_redis
from appointly.config.settings import get_settings
from appointly.core.exceptions import SchedulingConflict

logger = logging.getLogger(__name__)


class BookingLock(ABC):
    """Mutual exclusion for writers booking the same employee on the same day"""

    @abstractmethod
    def hold(self, employee_id: UUID, day: date):
        """Async context manager held around conflict re-check and insert"""
        raise NotImplementedError


class LocalBookingLock(BookingLock):
    """In-process asyncio locks, one per (employee, day), dropped once nobody holds or awaits them"""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, employee_id: UUID, day: date) -> AsyncIterator[None]:
        key = RedisKeys.BOOKING_LOCK.format(employee_id=employee_id, day=day.isoformat())
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


class RedisBookingLock(BookingLock):
    """Distributed lock shared by every API worker"""

    def __init__(self, client=None, timeout_seconds: Optional[int] = None):
        self._client = client
        self.timeout_seconds = timeout_seconds or get_settings().BOOKING_LOCK_TIMEOUT_SECONDS

    async def _get_client(self):
        if self._client is None:
            self._client = await get_redis()
        return self._client

    @asynccontextmanager
    async def hold(self, employee_id: UUID, day: date) -> AsyncIterator[None]:
        client = await self._get_client()
        key = RedisKeys.BOOKING_LOCK.format(employee_id=employee_id, day=day.isoformat())
        lock = client.lock(
            key,
            timeout=self.timeout_seconds,
            blocking_timeout=self.timeout_seconds,
        )

        acquired = await lock.acquire()
        if not acquired:
            logger.warning(f"Could not acquire booking lock {key} within {self.timeout_seconds}s")
            raise SchedulingConflict("Another booking for this employee is in progress, please retry")

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockNotOwnedError:
                logger.error(f"Booking lock {key} expired before release, timeout {self.timeout_seconds}s is too short")


_default_lock: Optional[BookingLock] = None


def get_booking_lock() -> BookingLock:
    """Process-wide lock selected by BOOKING_LOCK_BACKEND"""
    global _default_lock
    if _default_lock is None:
        backend = get_settings().BOOKING_LOCK_BACKEND.lower()
        if backend == "redis":
            _default_lock = RedisBookingLock()
        else:
            if backend != "local":
                logger.warning(f"Unknown BOOKING_LOCK_BACKEND {backend!r}, using local locks")
            _default_lock = LocalBookingLock()
    return _default_lock
