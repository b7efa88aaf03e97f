from unittest.mock import Mock

import pytest
import redis

from spinapi.services.redis_service import RedisService
from spinapi.utils.cache_utils import TTLCache, generate_leaderboard_cache_key


def test_generate_leaderboard_cache_key():
    assert generate_leaderboard_cache_key("week", 10) == "leaderboard:week:10"


@pytest.fixture
def make_cache(redis_service, clock):
    def _make(namespace: str = "leaderboard", ttl_seconds: int = 60) -> TTLCache:
        return TTLCache(redis_service, namespace=namespace, ttl_seconds=ttl_seconds, clock=clock)

    return _make


class TestTTLCache:
    """Redis TTL 캐시 테스트"""

    def test_entry_expires_after_ttl(self, make_cache, clock):
        # Given
        cache = make_cache()
        cache.set("leaderboard:all:10", [{"rank": 1}])

        # When / Then
        clock.advance(seconds=59)
        assert cache.get("leaderboard:all:10") == [{"rank": 1}]
        clock.advance(seconds=1)
        assert cache.get("leaderboard:all:10") is None

    def test_values_are_stored_in_redis_with_ttl(self, make_cache, redis_client):
        cache = make_cache()
        cache.set("leaderboard:all:10", {"a": 1})

        assert 0 < redis_client.ttl("leaderboard:all:10") <= 60

    def test_get_or_load_calls_loader_once_within_ttl(self, make_cache, clock):
        cache = make_cache()
        calls = []

        def loader():
            calls.append(1)
            return len(calls)

        assert cache.get_or_load("leaderboard:k", loader) == 1
        assert cache.get_or_load("leaderboard:k", loader) == 1
        clock.advance(seconds=61)
        assert cache.get_or_load("leaderboard:k", loader) == 2

    def test_get_or_load_caches_falsy_values(self, make_cache):
        cache = make_cache()
        calls = []

        def loader():
            calls.append(1)
            return []

        cache.get_or_load("leaderboard:k", loader)
        cache.get_or_load("leaderboard:k", loader)
        assert len(calls) == 1

    def test_invalidate_single_key_and_all(self, make_cache):
        cache = make_cache()
        cache.set("leaderboard:a", 1)
        cache.set("leaderboard:b", 2)

        cache.invalidate("leaderboard:a")
        assert cache.get("leaderboard:a") is None
        assert cache.get("leaderboard:b") == 2

        cache.invalidate()
        assert cache.get("leaderboard:b") is None

    def test_invalidate_leaves_other_namespaces(self, make_cache):
        boards = make_cache("leaderboard")
        stats = make_cache("realtime")
        boards.set("leaderboard:all:10", 1)
        stats.set("realtime:stats", 2)

        boards.invalidate()

        assert stats.get("realtime:stats") == 2

    def test_invalidate_during_load_discards_loaded_value(self, make_cache):
        # Given: 로딩 도중 다른 요청이 적립 후 invalidate
        cache = make_cache()

        def loader():
            cache.invalidate()
            return "stale-board"

        # When
        returned = cache.get_or_load("leaderboard:k", loader)

        # Then: 호출자에게는 반환되지만 캐시에는 남지 않음
        assert returned == "stale-board"
        assert cache.get("leaderboard:k") is None
        assert cache.get_or_load("leaderboard:k", lambda: "fresh-board") == "fresh-board"
        assert cache.get("leaderboard:k") == "fresh-board"

    def test_invalidate_is_visible_to_other_workers(self, test_settings, redis_client, clock):
        # Given: 같은 Redis 를 쓰는 두 워커
        worker_a = TTLCache(
            RedisService(test_settings, client=redis_client), "leaderboard", 60, clock
        )
        worker_b = TTLCache(
            RedisService(test_settings, client=redis_client), "leaderboard", 60, clock
        )
        worker_b.get_or_load("leaderboard:all:10", lambda: "old-board")

        # When
        worker_a.invalidate()

        # Then
        assert worker_b.get("leaderboard:all:10") is None

    def test_stale_write_after_invalidate_is_ignored(self, test_settings, redis_client, clock):
        worker_a = TTLCache(
            RedisService(test_settings, client=redis_client), "leaderboard", 60, clock
        )
        worker_b = TTLCache(
            RedisService(test_settings, client=redis_client), "leaderboard", 60, clock
        )

        def slow_loader():
            worker_a.invalidate()
            return "old-board"

        worker_b.get_or_load("leaderboard:all:10", slow_loader)

        assert worker_a.get("leaderboard:all:10") is None


class TestRedisUnavailable:
    def test_cache_degrades_to_loader(self, test_settings, clock):
        # REDIS_ENABLED=False: 연결 없이 항상 miss
        cache = TTLCache(RedisService(test_settings), "leaderboard", 60, clock)
        calls = []

        def loader():
            calls.append(1)
            return len(calls)

        assert cache.get_or_load("leaderboard:k", loader) == 1
        assert cache.get_or_load("leaderboard:k", loader) == 2
        cache.invalidate()
        assert cache.get("leaderboard:k") is None

    def test_redis_errors_are_not_raised(self, test_settings):
        client = Mock()
        client.mget.side_effect = redis.ConnectionError("down")
        client.setex.side_effect = redis.ConnectionError("down")
        client.incr.side_effect = redis.ConnectionError("down")
        service = RedisService(test_settings, client=client)

        assert service.get("k") is None
        assert service.set("k", 1, 60) is False
        assert service.incr("k") is None
