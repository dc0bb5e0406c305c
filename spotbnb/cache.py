import json
import logging
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from .config import settings

logger = logging.getLogger("spotbnb.cache")


def spot_cache_key(spot_id: int) -> str:
    return f"spot_{spot_id}"


def get_cached_spot(redis_client: Redis, spot_id: int) -> Optional[dict]:
    """
    Returns the cached spot detail payload, or None on a miss.
    A Redis outage is treated as a miss.
    """
    try:
        cached = redis_client.get(spot_cache_key(spot_id))
    except RedisError as e:
        logger.warning(f"Redis read failed for spot {spot_id}: {e}")
        return None
    if not cached:
        return None
    try:
        return json.loads(cached)
    except (TypeError, ValueError):
        logger.error(f"Discarding unreadable cache entry for spot {spot_id}")
        return None


def cache_spot(redis_client: Redis, spot_id: int, payload: dict) -> None:
    try:
        redis_client.set(
            spot_cache_key(spot_id),
            json.dumps(payload, default=str),
            ex=settings.SPOT_CACHE_TTL_SECONDS,
        )
    except RedisError as e:
        logger.warning(f"Redis write failed for spot {spot_id}: {e}")


def invalidate_spot(redis_client: Redis, spot_id: int) -> None:
    try:
        redis_client.delete(spot_cache_key(spot_id))
        logger.info(f"Invalidated Redis cache for spot {spot_id}.")
    except RedisError as e:
        logger.error(f"Failed to invalidate Redis cache for spot {spot_id}: {e}")
