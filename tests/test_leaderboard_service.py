from datetime import timedelta

import pytest

from spinapi.core.exceptions import ValidationError
from spinapi.models.user import User
from spinapi.services.leaderboard_service import LeaderboardService
from spinapi.utils.points_extractor import format_points_label


@pytest.fixture
def leaderboard_service(db, test_settings, clock, leaderboard_cache, stats_cache):
    return LeaderboardService(
        db, settings=test_settings, cache=leaderboard_cache, stats_cache=stats_cache, clock=clock
    )


@pytest.fixture
def ranked_users(make_user, make_result, clock):
    """a, b 동점(100) - b 가 먼저 활동. c 는 3일 전 활동. d 는 포인트 없음."""
    now = clock()
    a = make_user("alice", points=100)
    b = make_user("bob", points=100)
    c = make_user("carol", points=50)
    d = make_user("dave", points=0)
    make_result("Try again", user_id=a.id, created_at=now - timedelta(hours=1))
    make_result("Try again", user_id=b.id, created_at=now - timedelta(hours=2))
    make_result("Try again", user_id=c.id, created_at=now - timedelta(days=3))
    make_result("Try again", user_id=d.id, created_at=now)
    return a, b, c, d


class TestLeaderboard:
    """리더보드 조회 테스트"""

    def test_all_time_orders_by_points_then_earliest_activity(
        self, leaderboard_service, ranked_users
    ):
        a, b, c, _ = ranked_users

        entries = leaderboard_service.get_leaderboard(10, "all")

        assert [e.user_id for e in entries] == [b.id, a.id, c.id]
        assert [e.rank for e in entries] == [1, 2, 3]
        assert entries[0].points == 100

    def test_today_includes_only_users_active_today(self, leaderboard_service, ranked_users):
        a, b, c, _ = ranked_users

        entries = leaderboard_service.get_leaderboard(10, "today")

        assert [e.user_id for e in entries] == [b.id, a.id]

    def test_week_includes_recent_activity(self, leaderboard_service, ranked_users):
        a, b, c, _ = ranked_users

        entries = leaderboard_service.get_leaderboard(10, "week")

        assert [e.user_id for e in entries] == [b.id, a.id, c.id]

    def test_limit_is_clamped(self, leaderboard_service, ranked_users):
        assert len(leaderboard_service.get_leaderboard(1, "all")) == 1
        assert len(leaderboard_service.get_leaderboard(0, "all")) == 1
        assert len(leaderboard_service.get_leaderboard(10_000, "all")) == 3

    def test_unknown_timeframe_is_rejected(self, leaderboard_service):
        with pytest.raises(ValidationError):
            leaderboard_service.get_leaderboard(10, "year")

    def test_cached_until_ttl_or_invalidate(self, db, leaderboard_service, ranked_users, clock):
        # Given
        a, b, c, _ = ranked_users
        leaderboard_service.get_leaderboard(10, "all")
        db.get(User, c.id).current_points = 500
        db.commit()

        # When / Then: TTL 안에서는 이전 결과
        assert leaderboard_service.get_leaderboard(10, "all")[0].user_id == b.id

        leaderboard_service.invalidate()
        assert leaderboard_service.get_leaderboard(10, "all")[0].user_id == c.id

    def test_cache_expires_after_ttl(self, db, leaderboard_service, ranked_users, clock):
        a, b, c, _ = ranked_users
        leaderboard_service.get_leaderboard(10, "all")
        db.get(User, c.id).current_points = 500
        db.commit()

        clock.advance(seconds=61)

        assert leaderboard_service.get_leaderboard(10, "all")[0].user_id == c.id

    def test_snapshot_contains_all_boards(self, leaderboard_service, ranked_users):
        snapshot = leaderboard_service.snapshot()

        assert set(snapshot.boards) == {"all_time", "today", "this_week", "this_month"}
        assert len(snapshot.boards["today"]) == 2


class TestRealtimeStats:
    def test_stats(self, leaderboard_service, make_user, make_result, clock):
        user = make_user("player01", points=30)
        make_user("player02", points=10)
        make_user("idle")
        make_result(format_points_label(25), user_id=user.id, points_calculated=True)
        make_result(format_points_label(5), user_id=user.id)
        make_result(format_points_label(40), user_id=user.id, points_calculated=True,
                    created_at=clock() - timedelta(days=2))
        make_result("Try again")

        stats = leaderboard_service.get_realtime_stats()

        assert stats.total_users_with_points == 2
        assert stats.total_points_in_system == 40
        assert stats.average_points_per_user == 20.0
        assert stats.today_spins == 3
        assert stats.today_points_earned == 25

    def test_stats_are_cached(self, leaderboard_service, make_user, clock):
        make_user("player01", points=30)
        first = leaderboard_service.get_realtime_stats()
        make_user("player02", points=10)

        assert leaderboard_service.get_realtime_stats() == first
        clock.advance(seconds=31)
        assert leaderboard_service.get_realtime_stats().total_users_with_points == 2
