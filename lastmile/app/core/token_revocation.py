"""
Token Revocation System using Redis.

Implements token blacklisting to immediately invalidate JWT tokens
when drivers log out or are deactivated by dispatch.
"""

import logging
from redis.exceptions import RedisError
from lastmile.app.core.redis_client import get_redis_client
from lastmile.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        token: The JWT token string to revoke
        user_id: Driver ID who owns the token

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        # Tokens auto-expire anyway, so the blacklist entry only needs to outlive them
        ttl_seconds = settings.access_token_expire_minutes * 60
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await get_redis_client().setex(key, ttl_seconds, str(user_id))
        return True
    except RedisError:
        logger.exception("Error revoking token for driver %s", user_id)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Returns:
        True if token is revoked, False otherwise
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await get_redis_client().exists(key)
        return exists > 0
    except RedisError:
        # Fail open: drivers in the field keep working if Redis is down
        logger.warning("Token revocation check unavailable", exc_info=True)
        return False


async def revoke_all_user_tokens(user_id: int) -> bool:
    """
    Revoke all active tokens for a driver.

    Called when dispatch deactivates or deletes a driver so every
    session ends immediately.
    """
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        ttl_seconds = settings.access_token_expire_minutes * 60
        await get_redis_client().setex(key, ttl_seconds, "1")
        return True
    except RedisError:
        logger.exception("Error revoking all tokens for driver %s", user_id)
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    """
    Check if all tokens for a driver have been revoked.
    """
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        exists = await get_redis_client().exists(key)
        return exists > 0
    except RedisError:
        logger.warning("Driver revocation check unavailable", exc_info=True)
        return False


async def clear_user_token_revocation(user_id: int) -> bool:
    """
    Clear the global token revocation flag for a driver.

    Called when a deactivated driver is reactivated.
    """
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        await get_redis_client().delete(key)
        return True
    except RedisError:
        logger.exception("Error clearing token revocation for driver %s", user_id)
        return False
