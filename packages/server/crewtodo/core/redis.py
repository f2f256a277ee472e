"""Redis connection management."""

from __future__ import annotations

from typing import Optional

import redis.asyncio as redis

from crewtodo.core.config import get_settings

settings = get_settings()

_redis_pool: redis.Redis | None = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create the Redis connection; None when Redis is not configured."""
    global _redis_pool
    if not settings.redis_url:
        return None
    if _redis_pool is None:
        _redis_pool = redis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
