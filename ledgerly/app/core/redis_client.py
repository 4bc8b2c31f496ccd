"""
Redis client initialization and connection management.

This module provides the Redis client used for token revocation.
"""

import redis.asyncio as redis
from ledgerly.app.core.config import settings


# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    Used as a FastAPI dependency by the health check.
    """
    return redis_client
