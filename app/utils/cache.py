import json
import logging
import redis
from typing import Optional, Any

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Create Redis client
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


class CacheService:
    """
    Redis cache for product details.

    Every operation degrades to a miss or a no-op when Redis is
    unreachable, so callers always fall back to the database.
    """

    def __init__(self, client: redis.Redis = None, ttl: int = None):
        self.client = client or redis_client
        self.ttl = ttl or settings.CACHE_TTL

    def _make_key(self, prefix: str, key: str) -> str:
        """Create a namespaced cache key."""
        return f"{prefix}:{key}"

    def get(self, prefix: str, key: str) -> Optional[Any]:
        """
        Get a value from cache.

        Args:
            prefix: Cache key prefix (e.g., 'product')
            key: Unique identifier

        Returns:
            Cached value or None if not found
        """
        cache_key = self._make_key(prefix, key)
        try:
            value = self.client.get(cache_key)
            if value:
                return json.loads(value)
            return None
        except (redis.RedisError, json.JSONDecodeError) as e:
            logger.debug(f"Cache read failed for {cache_key}: {e}")
            return None

    def set(self, prefix: str, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set a value in cache with TTL.

        Returns:
            True if successful, False otherwise
        """
        cache_key = self._make_key(prefix, key)
        ttl = ttl or self.ttl
        try:
            serialized = json.dumps(value, default=str)
            self.client.setex(cache_key, ttl, serialized)
            return True
        except (redis.RedisError, TypeError) as e:
            logger.debug(f"Cache write failed for {cache_key}: {e}")
            return False

    def delete(self, prefix: str, key: str) -> bool:
        """Delete a value from cache."""
        cache_key = self._make_key(prefix, key)
        try:
            self.client.delete(cache_key)
            return True
        except redis.RedisError as e:
            logger.warning(f"Cache invalidation failed for {cache_key}: {e}")
            return False


# Singleton cache service instance
cache_service = CacheService()
