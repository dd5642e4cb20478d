# backend/pokebrowser/cache.py

import redis.asyncio as redis
import json
import logging
from typing import Optional, Any
from contextlib import asynccontextmanager

from .config import settings

logger = logging.getLogger(__name__)

redis_pool: Optional[redis.ConnectionPool] = None

def create_redis_pool():
    """Creates an asynchronous Redis connection pool."""
    global redis_pool
    try:
        logger.info(f"Attempting to connect to Redis at: {settings.redis_url}")
        redis_pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True, # Decode responses to strings automatically
            max_connections=20
        )
        logger.info("Redis connection pool created successfully.")
        return redis_pool
    except Exception as e:
        logger.error(f"Failed to create Redis connection pool: {e}", exc_info=True)
        raise

async def close_redis_pool():
    """Closes the Redis connection pool."""
    global redis_pool
    if redis_pool:
        try:
            await redis_pool.disconnect(inuse_connections=True)
            logger.info("Redis connection pool disconnected.")
        except redis.RedisError as e:
            logger.error(f"Error closing Redis pool: {e}", exc_info=True)
        finally:
            redis_pool = None

def is_cache_available() -> bool:
    return redis_pool is not None

@asynccontextmanager
async def get_redis_connection():
    """Provides a Redis connection from the pool using an async context manager."""
    if redis_pool is None:
        raise ConnectionError("Redis pool is not initialized.")

    conn = redis.Redis(connection_pool=redis_pool)
    try:
        yield conn
    except redis.RedisError as e:
        logger.error(f"Redis connection error: {e}", exc_info=True)
        raise

async def get_cache(key: str) -> Optional[Any]:
    """Retrieves JSON data from Redis. Any cache problem is reported as a miss."""
    if not is_cache_available():
        return None
    try:
        async with get_redis_connection() as conn:
            cached_data = await conn.get(key)
    except redis.RedisError as e:
        logger.error(f"Redis GET error for key '{key}': {e}")
        return None

    if not cached_data:
        logger.debug(f"Cache MISS for key: {key}")
        return None
    logger.debug(f"Cache HIT for key: {key}")
    try:
        return json.loads(cached_data)
    except json.JSONDecodeError:
        logger.warning(f"Failed to decode JSON from cache for key: {key}. Treating as miss.")
        return None

async def set_cache(key: str, value: Any, ttl: Optional[int] = None) -> bool:
    """Stores data in Redis cache with a TTL."""
    if not is_cache_available():
        return False
    if value is None:
        logger.warning(f"Attempted to cache None value for key: {key}. Skipping.")
        return False

    try:
        json_value = json.dumps(value)
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to serialize data to JSON for key '{key}': {e}", exc_info=True)
        return False

    ttl = ttl if ttl is not None else settings.cache_ttl_seconds
    try:
        async with get_redis_connection() as conn:
            await conn.setex(key, ttl, json_value)
            logger.debug(f"Cache SET for key: {key} with TTL: {ttl}s")
            return True
    except redis.RedisError as e:
        logger.error(f"Redis SET error for key '{key}': {e}")
        return False

async def clear_cache(key: str) -> bool:
    """Removes a specific key from the Redis cache."""
    if not is_cache_available():
        return False
    try:
        async with get_redis_connection() as conn:
            result = await conn.delete(key)
            if result > 0:
                logger.info(f"Cache CLEARED for key: {key}")
                return True
            logger.info(f"Cache key not found for deletion: {key}")
            return False
    except redis.RedisError as e:
        logger.error(f"Redis DELETE error for key '{key}': {e}")
        return False
