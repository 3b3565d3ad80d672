"""Redis connection for per-entity locks.

Entity state lives in PostgreSQL; redis never holds asset or offer state, so
losing it only drops in-flight locks (which expire on their own anyway).
"""

import logging

import redis.asyncio as aioredis

from config.settings import Settings

logger = logging.getLogger(__name__)

_client: aioredis.Redis | None = None


async def get_redis(settings: Settings) -> aioredis.Redis:
    """Shared client, created from REDIS_URL on first use."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


async def verify_redis(settings: Settings) -> None:
    """Startup check: fail fast when the lock backend is unreachable."""
    client = await get_redis(settings)
    await client.ping()
    logger.info("Redis reachable at %s", settings.REDIS_URL.rsplit("@", 1)[-1])


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
