"""Redis caching for read-only product views.

Authenticity checks and supply-chain summaries are read far more often
than products change (every QR scan hits them), so their results are kept
in Redis and dropped whenever a write touches the product.

If Redis is unreachable the decorated function simply runs uncached.
Setting ``CACHE_ENABLED=false`` bypasses Redis entirely.
"""

import functools
import hashlib
import json
import logging
from datetime import date, datetime
from typing import Callable, Optional

import redis.asyncio as redis

from trackchain.config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get or create Redis client connection."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )
    return _redis_client


async def close_redis():
    """Close Redis connection (call on app shutdown)."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def cache_key(*args, **kwargs) -> str:
    """Generate a deterministic hash from function arguments."""
    if not args and not kwargs:
        return "default"

    key_data = json.dumps({"args": args, "kwargs": kwargs}, sort_keys=True)
    return hashlib.md5(key_data.encode()).hexdigest()


def product_pattern(product_id: int) -> str:
    """Key pattern covering every cached view of one product."""
    return f"products:{product_id}:*"


def cached(ttl: int = 300, prefix: str = "cache"):
    """Decorator to cache an endpoint's result in Redis.

    Only simple keyword arguments take part in the key; injected
    dependencies (sessions, callers) are skipped.  When the endpoint has a
    ``product_id`` argument the key is ``{prefix}:{product_id}:{func}:{hash}``
    so that ``invalidate_product`` can drop every view of that product.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not settings.cache_enabled:
                return await func(*args, **kwargs)

            cache_kwargs = {}
            for k, v in kwargs.items():
                if k.startswith("_"):
                    continue
                if isinstance(v, (int, str, bool, float, type(None))):
                    cache_kwargs[k] = v
                elif isinstance(v, (date, datetime)):
                    cache_kwargs[k] = v.isoformat()
            key_hash = cache_key(**cache_kwargs)
            scope = kwargs.get("product_id", "all")
            key = f"{prefix}:{scope}:{func.__name__}:{key_hash}"

            try:
                redis_client = await get_redis()
                cached_value = await redis_client.get(key)

                if cached_value:
                    logger.debug(f"Cache HIT: {key}")
                    return json.loads(cached_value)

                logger.debug(f"Cache MISS: {key}")
                result = await func(*args, **kwargs)

                if hasattr(result, "model_dump"):
                    serialized = result.model_dump(mode="json")
                elif isinstance(result, list) and result and hasattr(result[0], "model_dump"):
                    serialized = [item.model_dump(mode="json") for item in result]
                else:
                    serialized = result

                await redis_client.setex(key, ttl, json.dumps(serialized))
                return result

            except redis.RedisError as e:
                logger.warning(f"Redis error (falling back to uncached): {e}")
                return await func(*args, **kwargs)

        return wrapper

    return decorator


async def invalidate_cache(pattern: str):
    """Delete every cache key matching ``pattern``."""
    if not settings.cache_enabled:
        return
    try:
        redis_client = await get_redis()
        keys = []
        async for key in redis_client.scan_iter(match=pattern):
            keys.append(key)

        if keys:
            await redis_client.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching {pattern}")
    except redis.RedisError as e:
        logger.warning(f"Failed to invalidate cache: {e}")


async def invalidate_product(product_id: int):
    await invalidate_cache(product_pattern(product_id))


def mark_product_stale(db, product_id: int):
    """Queue ``product_id`` for invalidation once ``db`` commits."""
    db.info.setdefault("stale_products", set()).add(product_id)


def discard_stale_products(db):
    db.info.pop("stale_products", None)


async def flush_stale_products(db):
    """Drop cached views of every product the committed transaction touched."""
    for product_id in sorted(db.info.pop("stale_products", ())):
        await invalidate_product(product_id)
