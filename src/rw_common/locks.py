"""Per-entity mutual exclusion for saga steps that issue signing requests.

Conditional UPDATEs already make every state transition idempotent. The lock
additionally guarantees that at most one worker is *talking to the gateway*
for a given asset at a time, so a settlement transfer is never requested twice.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from redis.exceptions import LockError

from config.settings import Settings
from src.rw_common.errors import PersistenceConflict
from src.rw_common.redis_client import get_redis

logger = logging.getLogger(__name__)

EntityLock = Callable[[str], AbstractAsyncContextManager[None]]


def redis_entity_lock(settings: Settings) -> EntityLock:
    """Lock factory backed by redis; serialises across processes."""

    @asynccontextmanager
    async def _lock(key: str) -> AsyncIterator[None]:
        redis = await get_redis(settings)
        lock = redis.lock(
            f"lock:{key}",
            timeout=settings.ENTITY_LOCK_TTL_SECONDS,
            blocking_timeout=settings.ENTITY_LOCK_WAIT_SECONDS,
        )
        if not await lock.acquire():
            raise PersistenceConflict(f"Entity {key} is locked by another worker")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                logger.warning("Lock for %s expired before release", key)

    return _lock


class LocalEntityLock:
    """In-process lock factory (single worker deployments and tests).

    A key's lock lives only while someone holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def __call__(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]
