"""Rate limiting for booking endpoints.

Booking and rescheduling counters live in Redis when it answers a ping at
startup, so every worker sees the same budget; otherwise each worker counts
in memory.
"""

import logging
import os

import redis
from slowapi import Limiter
from slowapi.util import get_remote_address

from booking_api.core.config import settings

logger = logging.getLogger(__name__)

MEMORY_STORAGE = "memory://"
IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")


def default_limits() -> list[str]:
    """Blanket per-client limit for every route (none while testing)."""
    if IS_TESTING or settings.RATE_LIMIT_API <= 0:
        return []
    return [f"{settings.RATE_LIMIT_API}/minute"]


def resolve_storage_uri(redis_url: str | None = None, testing: bool = IS_TESTING) -> str:
    """Redis URL when reachable, in-memory storage otherwise."""
    redis_url = settings.REDIS_URL if redis_url is None else redis_url
    if testing or not redis_url:
        return MEMORY_STORAGE
    try:
        redis.from_url(redis_url, socket_connect_timeout=1).ping()
    except (redis.RedisError, ValueError) as e:
        logger.warning("Rate limit storage %s unavailable, counting per worker: %s", redis_url, e)
        return MEMORY_STORAGE
    return redis_url


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=resolve_storage_uri(),
    default_limits=default_limits(),
)
