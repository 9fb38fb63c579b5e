"""
Shared Redis connection.

Redis only holds revoked-token markers, so the API keeps serving (and the
health check reports it) when Redis is unreachable.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError
from lastmile.app.core.config import settings


# Lazily connected on first command
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


def get_redis_client():
    """Look the client up at call time so tests can swap it."""
    return redis_client


async def ping_redis() -> bool:
    try:
        return bool(await get_redis_client().ping())
    except (RedisError, OSError):
        return False
