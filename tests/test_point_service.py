import threading
from datetime import timedelta
from unittest.mock import Mock, patch

import pytest

from spinapi.core.exceptions import InvalidStateError, NotFoundError
from spinapi.models.game_result import GameResult, ResultStatusEnum
from spinapi.models.user import User
from spinapi.providers.notifier.base import EventNotifier
from spinapi.providers.notifier.events import LeaderboardChangedEvent, PointsCreditedEvent
from spinapi.services.point_service import PointService
from spinapi.utils.points_extractor import format_points_label


class BrokenNotifier(EventNotifier):
    def publish(self, event):
        raise ConnectionError("broker unreachable")


@pytest.fixture
def notifier():
    return Mock(spec=EventNotifier)


@pytest.fixture
def cache(leaderboard_cache):
    return leaderboard_cache


@pytest.fixture
def point_service(db, test_settings, cache, notifier, clock):
    return PointService(db, settings=test_settings, cache=cache, notifier=notifier, clock=clock)


class TestCreditForResult:
    """결과 1건 적립 테스트"""

    def test_credit_updates_both_balances_and_flag(self, db, point_service, make_user, make_result):
        # Given
        user = make_user("player01", points=10, lifetime=40)
        result = make_result(format_points_label(25), user_id=user.id)

        # When
        outcome = point_service.credit_for_result(result.id)

        # Then
        assert outcome.points_credited == 25
        assert outcome.current_points == 35
        assert outcome.lifetime_points == 65
        assert db.get(GameResult, result.id, populate_existing=True).points_calculated is True

    def test_second_credit_is_a_no_op(self, point_service, make_user, make_result):
        user = make_user("player01")
        result = make_result(format_points_label(25), user_id=user.id)

        point_service.credit_for_result(result.id)
        again = point_service.credit_for_result(result.id)

        assert again.points_credited == 0
        assert again.skipped_reason == "already_processed"
        assert again.current_points == 25
        assert again.lifetime_points == 25

    def test_guest_result_credits_nothing(self, point_service, make_result, notifier):
        result = make_result(format_points_label(25))

        outcome = point_service.credit_for_result(result.id)

        assert outcome.points_credited == 0
        assert outcome.skipped_reason == "guest_result"
        notifier.notify.assert_not_called()

    def test_zero_point_label_leaves_flag_untouched(self, db, point_service, make_user, make_result):
        user = make_user("player01")
        result = make_result("Try again", user_id=user.id)

        outcome = point_service.credit_for_result(result.id)

        assert outcome.points_credited == 0
        assert outcome.skipped_reason == "no_points"
        assert db.get(GameResult, result.id, populate_existing=True).points_calculated is False

    def test_out_of_range_label_is_skipped(self, db, point_service, make_user, make_result):
        user = make_user("player01", points=10)
        result = make_result("ពិន្ទុ 99999999999999999999", user_id=user.id)

        outcome = point_service.credit_for_result(result.id)

        assert outcome.points_credited == 0
        assert outcome.skipped_reason == "no_points"
        assert outcome.current_points == 10
        assert db.get(GameResult, result.id, populate_existing=True).points_calculated is False

    def test_failure_inside_transaction_rolls_back_flag(
        self, db, point_service, make_user, make_result
    ):
        # Given: 잔액 UPDATE 단계에서 예상치 못한 오류
        user = make_user("player01")
        result = make_result(format_points_label(25), user_id=user.id)

        with patch.object(
            point_service.user_repo, "credit_points", side_effect=OverflowError("too large")
        ):
            with pytest.raises(OverflowError):
                point_service.credit_for_result(result.id)

        # Then: 플래그가 되돌려져 다시 적립 가능
        assert db.get(GameResult, result.id, populate_existing=True).points_calculated is False
        assert point_service.credit_for_result(result.id).points_credited == 25

    def test_non_completed_result_is_rejected(self, point_service, make_user, make_result):
        user = make_user("player01")
        result = make_result(
            format_points_label(25), user_id=user.id, status=ResultStatusEnum.PENDING
        )

        with pytest.raises(InvalidStateError) as exc_info:
            point_service.credit_for_result(result.id)

        assert exc_info.value.reason == "result_not_completed"

    def test_unknown_result_raises_not_found(self, point_service):
        with pytest.raises(NotFoundError):
            point_service.credit_for_result(9999)

    def test_events_are_published_after_commit(self, point_service, make_user, make_result, notifier):
        user = make_user("player01")
        result = make_result(format_points_label(25), user_id=user.id)

        point_service.credit_for_result(result.id)

        events = [call.args[0] for call in notifier.notify.call_args_list]
        assert isinstance(events[0], PointsCreditedEvent)
        assert events[0].delta == 25
        assert events[0].new_total == 25
        assert events[0].result_id == result.id
        assert isinstance(events[1], LeaderboardChangedEvent)
        assert events[1].boards["all_time"][0].user_id == user.id

    def test_notifier_failure_does_not_undo_credit(
        self, db, test_settings, clock, make_user, make_result
    ):
        service = PointService(db, settings=test_settings, notifier=BrokenNotifier(), clock=clock)
        user = make_user("player01")
        result = make_result(format_points_label(25), user_id=user.id)

        outcome = service.credit_for_result(result.id)

        assert outcome.points_credited == 25
        assert db.get(User, user.id, populate_existing=True).current_points == 25

    def test_credit_invalidates_leaderboard_cache(self, point_service, make_user, make_result):
        # Given: 캐시된 리더보드
        leader = make_user("leader", points=50)
        chaser = make_user("chaser", points=40)
        before = point_service.leaderboard.get_leaderboard(10, "all")
        assert [e.user_id for e in before] == [leader.id, chaser.id]

        # When
        result = make_result(format_points_label(20), user_id=chaser.id)
        point_service.credit_for_result(result.id)

        # Then: TTL 이 지나지 않았어도 새 순위가 보임
        after = point_service.leaderboard.get_leaderboard(10, "all")
        assert [e.user_id for e in after] == [chaser.id, leader.id]

    def test_concurrent_credits_apply_exactly_once(
        self, session_factory, test_settings, clock, make_user, make_result
    ):
        # Given
        user = make_user("player01")
        result = make_result(format_points_label(25), user_id=user.id)
        workers = 8
        barrier = threading.Barrier(workers)
        outcomes, errors = [], []

        def worker():
            session = session_factory()
            try:
                service = PointService(session, settings=test_settings, clock=clock)
                barrier.wait()
                outcomes.append(service.credit_for_result(result.id))
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        # When
        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Then
        assert errors == []
        assert sum(o.points_credited for o in outcomes) == 25
        assert sum(1 for o in outcomes if o.points_credited) == 1

        check = session_factory()
        try:
            stored = check.get(User, user.id)
            assert stored.current_points == 25
            assert stored.lifetime_points == 25
        finally:
            check.close()


class TestRecalculate:
    def test_calculate_user_points_credits_only_pending_results(
        self, point_service, make_user, make_result
    ):
        user = make_user("player01")
        make_result(format_points_label(25), user_id=user.id)
        make_result(format_points_label(10), user_id=user.id)
        make_result("Try again", user_id=user.id)
        make_result(format_points_label(99), user_id=user.id, points_calculated=True)

        first = point_service.calculate_user_points(user.id)
        second = point_service.calculate_user_points(user.id)

        assert first.processed_results == 2
        assert first.points_added == 35
        assert second.processed_results == 0
        assert second.points_added == 0

    def test_out_of_range_label_does_not_abort_reconciliation(
        self, point_service, make_user, make_result
    ):
        user = make_user("player01")
        make_result("ពិន្ទុ " + "9" * 5000, user_id=user.id)
        make_result("ពិន្ទុ 99999999999999999999", user_id=user.id)
        make_result(format_points_label(15), user_id=user.id)

        response = point_service.calculate_user_points(user.id)

        assert response.processed_results == 1
        assert response.points_added == 15

    def test_calculate_user_points_unknown_user(self, point_service):
        with pytest.raises(NotFoundError):
            point_service.calculate_user_points(404)

    def test_calculate_all_users_points_skips_guests(self, point_service, make_user, make_result):
        alice = make_user("alice")
        bob = make_user("bob")
        make_result(format_points_label(25), user_id=alice.id)
        make_result(format_points_label(5), user_id=bob.id)
        make_result(format_points_label(50))

        response = point_service.calculate_all_users_points()

        assert response.users_processed == 2
        assert response.processed_results == 2
        assert response.points_added == 30


class TestUserPointsStatus:
    def test_status_sums_earnings_per_window(self, point_service, make_user, make_result, clock):
        # Given: 오늘 25, 3일 전 10, 20일 전 5
        user = make_user("player01")
        make_user("rich", points=1000)
        now = clock()
        for points, age in ((25, timedelta(0)), (10, timedelta(days=3)), (5, timedelta(days=20))):
            make_result(format_points_label(points), user_id=user.id, created_at=now - age)
        point_service.calculate_user_points(user.id)

        # When
        status = point_service.get_user_points_status(user.id)

        # Then
        assert status.current_points == 40
        assert status.lifetime_points == 40
        assert status.today_points == 25
        assert status.week_points == 35
        assert status.month_points == 40
        assert status.rank == 2

    def test_status_rank_for_user_without_points(self, point_service, make_user):
        make_user("a", points=10)
        make_user("b", points=10)
        nobody = make_user("nobody")

        assert point_service.get_user_points_status(nobody.id).rank == 3
