"""
Redis service with graceful error handling.
- Never raises on connection/command errors (returns None/False/0 on failure)
- Lazy connection with health checks
- Automatic JSON serialization/deserialization
"""

import json
import logging
from typing import Any, List, Optional

import redis

from spinapi.config import Settings

logger = logging.getLogger(__name__)


class RedisService:
    def __init__(self, settings: Settings, client: Optional[redis.Redis] = None):
        self._settings = settings
        self._client: Optional[redis.Redis] = client

    def _get_client(self) -> Optional[redis.Redis]:
        """Lazy connection with health check"""
        if self._client is None and self._settings.REDIS_ENABLED:
            try:
                redis_kwargs = {
                    "host": self._settings.REDIS_HOST,
                    "port": self._settings.REDIS_PORT,
                    "db": self._settings.REDIS_DB,
                    "decode_responses": True,
                    "socket_connect_timeout": 5,
                    "socket_keepalive": True,
                    "health_check_interval": 30,
                }
                if self._settings.REDIS_PASSWORD:
                    redis_kwargs["password"] = self._settings.REDIS_PASSWORD

                client = redis.Redis(**redis_kwargs)
                client.ping()
                self._client = client
            except redis.RedisError as e:
                logger.warning(f"Redis connection failed: {e}")
                self._client = None
        return self._client

    @property
    def available(self) -> bool:
        return self._get_client() is not None

    def get(self, key: str) -> Optional[Any]:
        """Get cached value, returns None if not found or error"""
        values = self.get_many([key])
        return values[0] if values else None

    def get_many(self, keys: List[str]) -> List[Optional[Any]]:
        """MGET. 실패 시 빈 리스트."""
        client = self._get_client()
        if client is None:
            return []
        try:
            raw = client.mget(keys)
            return [json.loads(value) if value else None for value in raw]
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis MGET failed for {keys}: {e}")
            return []

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Set cache with TTL, returns success status"""
        client = self._get_client()
        if client is None:
            return False
        try:
            client.setex(key, ttl_seconds, json.dumps(value))
            return True
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.warning(f"Redis SET failed for {key}: {e}")
            return False

    def incr(self, key: str) -> Optional[int]:
        client = self._get_client()
        if client is None:
            return None
        try:
            return int(client.incr(key))
        except redis.RedisError as e:
            logger.warning(f"Redis INCR failed for {key}: {e}")
            return None

    def delete(self, key: str) -> bool:
        client = self._get_client()
        if client is None:
            return False
        try:
            return bool(client.delete(key))
        except redis.RedisError as e:
            logger.warning(f"Redis DEL failed for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """SCAN 으로 찾은 키 일괄 삭제 (KEYS 는 사용하지 않음)"""
        client = self._get_client()
        if client is None:
            return 0
        try:
            keys = list(client.scan_iter(match=pattern, count=100))
            return int(client.delete(*keys)) if keys else 0
        except redis.RedisError as e:
            logger.warning(f"Redis DEL pattern failed for {pattern}: {e}")
            return 0

    def close(self) -> None:
        """Close connection pool on app shutdown"""
        if self._client is not None:
            self._client.close()
            self._client = None
