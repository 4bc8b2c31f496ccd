"""
Token Revocation System using Redis.

Implements token blacklisting to immediately invalidate JWT tokens
when users log out.
"""

import logging

from ledgerly.app.core import redis_client as redis_module
from ledgerly.app.core.config import settings

logger = logging.getLogger(__name__)


# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        token: The JWT token string to revoke
        user_id: User ID who owns the token

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        # Tokens auto-expire anyway, the blacklist entry only has to outlive them
        ttl_seconds = settings.access_token_expire_minutes * 60

        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await redis_module.redis_client.setex(key, ttl_seconds, str(user_id))

        return True
    except Exception as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Args:
        token: JWT token string to check

    Returns:
        True if token is revoked, False otherwise
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await redis_module.redis_client.exists(key)
        return exists > 0
    except Exception as e:
        # Fail open: an unreachable Redis must not lock every merchant out
        logger.warning("Error checking token revocation: %s", e)
        return False
