"""Redis client for the identity verification cache.

Only used when CRM_IDENTITY_CACHE_TTL_SECONDS is positive. Cache lookups
share the identity timeout so a slow Redis never outlasts the provider call
it is meant to save.
"""

from __future__ import annotations

import redis.asyncio as redis

from app.core.config import get_settings

_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Return the shared client, creating it on first use."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.identity_timeout_seconds,
            socket_connect_timeout=settings.identity_timeout_seconds,
        )
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
