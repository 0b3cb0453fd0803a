"""
Shared async Redis client for the location channels.

One client (and therefore one connection pool) per process. It is created on
first use, so a deployment with REDIS_ENABLED=false never opens a socket.
"""

from __future__ import annotations

import asyncio

import redis.asyncio as redis

from shared.config.logging import get_logger
from shared.config.settings import REDIS_URL, settings

logger = get_logger(__name__)

_client: redis.Redis | None = None


async def get_redis_pool() -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            max_connections=settings.redis_pool_max_connections,
            socket_connect_timeout=settings.redis_socket_timeout,
            health_check_interval=30,
        )
        logger.info("Redis client created", max_connections=settings.redis_pool_max_connections)
    return _client


async def check_redis_health() -> dict:
    """{"status": "disabled" | "healthy" | "unhealthy"} for /api/health/detailed."""
    if not settings.redis_enabled:
        return {"status": "disabled"}
    try:
        client = await get_redis_pool()
        await asyncio.wait_for(client.ping(), timeout=3.0)
    except (redis.RedisError, OSError, asyncio.TimeoutError) as e:
        logger.warning("Redis ping failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy"}


async def close_redis_pool() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
