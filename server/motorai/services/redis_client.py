"""Redis client for caching VIN decode results."""

import asyncio
import json
import logging
from typing import Optional

import redis.asyncio as redis
from motorai.config import settings

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# Key prefixes for namespace organization
VIN_CACHE_PREFIX = "vin:"

# Timeout for Redis operations (2 seconds)
REDIS_TIMEOUT = 2.0


async def init_redis(url: Optional[str] = None):
    """Initialize Redis connection with connection pooling.

    Raises:
        Exception: If connection fails or cannot be validated
    """
    global redis_client
    try:
        redis_client = redis.from_url(
            url or settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            max_connections=20,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )

        await redis_client.ping()
        logger.info("Redis connection initialized and validated")

    except Exception as e:
        logger.error(f"Failed to initialize Redis connection: {e}")
        if redis_client:
            try:
                await redis_client.aclose()
            except Exception as close_error:
                logger.debug(f"Ignoring error while closing Redis: {close_error}")
        redis_client = None
        raise Exception(f"Redis connection initialization failed: {e}") from e


async def close_redis():
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        logger.info("Redis connection closed")
    redis_client = None


def get_redis():
    """Get Redis client instance.

    Returns:
        Redis client instance or None if not initialized.
    """
    return redis_client


async def get_cached_vin_decode(vin: str) -> Optional[dict]:
    """Return a cached decode payload for a VIN, or None on miss/error."""
    if not redis_client:
        return None

    key = f"{VIN_CACHE_PREFIX}{vin}"
    try:
        value = await asyncio.wait_for(redis_client.get(key), timeout=REDIS_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning(f"Redis timeout checking VIN cache for {vin}")
        return None
    except Exception as e:
        logger.warning(f"Redis error checking VIN cache: {e}")
        return None

    if not value:
        return None

    logger.info(f"VIN cache hit: {vin}")
    return json.loads(value)


async def cache_vin_decode(vin: str, payload: dict, ttl: Optional[int] = None) -> bool:
    """Cache a successful decode payload.

    Returns:
        True if stored, False otherwise
    """
    if not redis_client:
        return False

    key = f"{VIN_CACHE_PREFIX}{vin}"
    try:
        await asyncio.wait_for(
            redis_client.setex(key, ttl or settings.VIN_CACHE_TTL, json.dumps(payload)),
            timeout=REDIS_TIMEOUT,
        )
        logger.debug(f"VIN decode cached: {vin}")
        return True
    except asyncio.TimeoutError:
        logger.warning(f"Redis timeout caching VIN decode for {vin}")
        return False
    except Exception as e:
        logger.warning(f"Redis error caching VIN decode: {e}")
        return False


async def check_redis_health() -> bool:
    """Check Redis connection health."""
    if not redis_client:
        return False
    try:
        await asyncio.wait_for(redis_client.ping(), timeout=REDIS_TIMEOUT)
        return True
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return False
