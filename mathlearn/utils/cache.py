"""
Redis cache utility for lesson payloads
"""
import redis
import json
import logging
from typing import Optional, Any
from mathlearn.config import settings

logger = logging.getLogger(__name__)

LESSON_KEY_PREFIX = "lesson"


class CacheService:
    """Redis-based cache; every failure is logged and treated as a miss"""

    def __init__(self, url: str = None, enabled: bool = None):
        self.redis_client = None

        enabled = settings.CACHE_ENABLED if enabled is None else enabled
        if not enabled:
            logger.info("Caching disabled by configuration")
            return

        try:
            self.redis_client = redis.from_url(
                url or settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    def lesson_key(self, lesson_id: str) -> str:
        return f"{LESSON_KEY_PREFIX}:{lesson_id}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Returns:
            Cached value or None
        """
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.debug(f"Cache hit: {key}")
                return json.loads(value)
            logger.debug(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds (default from settings)
        """
        if not self.redis_client:
            return False

        try:
            ttl = ttl or settings.LESSON_CACHE_TTL
            self.redis_client.setex(key, ttl, json.dumps(value))
            logger.debug(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache"""
        if not self.redis_client:
            return False

        try:
            self.redis_client.delete(key)
            logger.info(f"Cache delete: {key}")
            return True
        except Exception as e:
            logger.error(f"Cache delete error: {str(e)}")
            return False

    def clear_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern; returns the number removed"""
        if not self.redis_client:
            return 0

        try:
            keys = list(self.redis_client.scan_iter(match=pattern))
            if keys:
                self.redis_client.delete(*keys)
                logger.info(f"Cleared {len(keys)} cache entries matching {pattern}")
            return len(keys)
        except Exception as e:
            logger.error(f"Cache clear error: {str(e)}")
            return 0

    def clear_lessons(self) -> int:
        """Drop every cached lesson payload"""
        return self.clear_pattern(f"{LESSON_KEY_PREFIX}:*")

    def status(self) -> str:
        """Cache health for the detailed health check"""
        if not self.redis_client:
            return "DISABLED"
        try:
            self.redis_client.ping()
            return "OK"
        except Exception as e:
            logger.error(f"Cache ping failed: {str(e)}")
            return "ERROR"


# Global instance
cache_service = CacheService()
