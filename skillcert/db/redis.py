"""Redis connection management.

Mirrors engine.py: when REDIS_URL is configured a shared connection pool is
created at import time; otherwise ``redis_pool`` is None and lifecycle
notifications stay in process (InMemoryNotifier).

Redis carries the notification queue only.  Credential and issuer state is
never kept in Redis; it lives in the repositories.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from skillcert.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Verify connectivity on startup and close the pool on shutdown.

    An unreachable Redis is logged, not fatal: notifications are
    fire-and-forget and the lifecycle itself never depends on them.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured; notifications stay in process")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    except Exception:
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield
    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
