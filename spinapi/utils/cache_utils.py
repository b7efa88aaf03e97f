"""
Redis-backed TTL cache and key helpers.
Key Format: leaderboard:{timeframe}:{limit}

Payload Format: {"stored_at": ISO-8601, "generation": int, "value": <json>}
- stored_at 은 주입된 clock 기준. 만료 판단은 이 값으로 한다 (Redis TTL 은 정리용 상한).
- invalidate() 는 namespace 의 generation 을 올린다. 이전 generation 으로 저장된
  값은 어떤 프로세스에서 읽어도 무시된다.
"""

from datetime import datetime
from typing import Any, Callable, Optional

from spinapi.services.redis_service import RedisService
from spinapi.utils.timezone_utils import Clock, ensure_aware, utc_now

_MISSING = object()


def generate_leaderboard_cache_key(timeframe: str, limit: int) -> str:
    """Generate deterministic cache key from request parameters"""
    return f"leaderboard:{timeframe}:{limit}"


class TTLCache:
    """namespace 단위 TTL 캐시 (여러 워커가 같은 Redis 를 공유)

    Redis 를 쓸 수 없으면 항상 miss 로 동작하며 loader 결과를 그대로 돌려준다.
    값은 JSON 직렬화 가능해야 한다.
    """

    def __init__(
        self,
        redis_service: RedisService,
        namespace: str,
        ttl_seconds: int,
        clock: Clock = utc_now,
    ):
        self.redis = redis_service
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @property
    def generation_key(self) -> str:
        return f"cache-generation:{self.namespace}"

    def _generation(self) -> int:
        value = self.redis.get(self.generation_key)
        return int(value) if value is not None else 0

    def _is_fresh(self, payload: dict, generation: int) -> bool:
        if payload.get("generation") != generation:
            return False
        stored_at = ensure_aware(datetime.fromisoformat(payload["stored_at"]))
        return (ensure_aware(self.clock()) - stored_at).total_seconds() < self.ttl_seconds

    def get(self, key: str, default: Any = None) -> Any:
        values = self.redis.get_many([self.generation_key, key])
        if len(values) != 2 or not isinstance(values[1], dict):
            return default
        generation = int(values[0]) if values[0] is not None else 0
        payload = values[1]
        if not self._is_fresh(payload, generation):
            return default
        return payload["value"]

    def set(self, key: str, value: Any, generation: Optional[int] = None) -> bool:
        payload = {
            "stored_at": ensure_aware(self.clock()).isoformat(),
            "generation": self._generation() if generation is None else generation,
            "value": value,
        }
        return self.redis.set(key, payload, self.ttl_seconds)

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        # loader 실행 전 generation 으로 저장: 로딩 중 invalidate() 되면 이 값은 무시됨
        generation = self._generation()
        value = loader()
        self.set(key, value, generation=generation)
        return value

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is not None:
            self.redis.delete(key)
            return
        self.redis.incr(self.generation_key)
        self.redis.delete_pattern(f"{self.namespace}:*")
