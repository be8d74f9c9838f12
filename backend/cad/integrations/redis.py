from __future__ import annotations

import logging

from redis.asyncio import Redis

from cad.core.config import get_settings

logger = logging.getLogger(__name__)

_redis_client: Redis | None = None


async def get_redis() -> Redis | None:
    """Shared client for the geocode cache; None when no cache is configured."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        if not settings.redis_url:
            return None
        _redis_client = Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=settings.redis_timeout_sec,
            socket_connect_timeout=settings.redis_timeout_sec,
        )
        logger.info("Redis client created", extra={"url": settings.redis_url.rsplit("@", 1)[-1]})
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
