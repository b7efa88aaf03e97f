import logging
from typing import Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from spinapi.config import Settings, settings as default_settings
from spinapi.core.exceptions import (
    BaseAPIException,
    ConcurrencyConflictError,
    InvalidStateError,
    NotFoundError,
)
from spinapi.models.game_result import ResultStatusEnum
from spinapi.providers.notifier.base import EventNotifier, LoggingEventNotifier
from spinapi.providers.notifier.events import (
    LeaderboardChangedEvent,
    PointsCreditedEvent,
)
from spinapi.repositories.result_repository import ResultRepository
from spinapi.repositories.user_repository import UserRepository
from spinapi.schemas.points import CreditOutcome, RecalculateResponse, UserPointsStatus
from spinapi.services.leaderboard_service import LeaderboardCache, LeaderboardService
from spinapi.utils.cache_utils import TTLCache
from spinapi.utils.points_extractor import extract_points
from spinapi.utils.timezone_utils import Clock, utc_now, window_start

logger = logging.getLogger(__name__)


class PointService:
    """포인트 원장 - 결과 1건당 최대 1회 적립 보장"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        cache: Optional[LeaderboardCache] = None,
        notifier: Optional[EventNotifier] = None,
        stats_cache: Optional[TTLCache] = None,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.result_repo = ResultRepository(db)
        self.notifier = notifier if notifier is not None else LoggingEventNotifier()
        self.leaderboard = LeaderboardService(
            db, settings=settings, cache=cache, stats_cache=stats_cache, clock=clock
        )

    def _skipped(self, result_id: int, user_id: Optional[int], reason: str) -> CreditOutcome:
        balance = self.user_repo.get_balance(user_id) if user_id is not None else None
        return CreditOutcome(
            result_id=result_id,
            user_id=user_id,
            points_credited=0,
            current_points=balance.current_points if balance else None,
            lifetime_points=balance.lifetime_points if balance else None,
            skipped_reason=reason,
        )

    def credit_for_result(self, result_id: int) -> CreditOutcome:
        """completed 결과의 포인트를 소유자에게 적립

        결과 플래그 전환(조건부 UPDATE)과 잔액 증가를 한 트랜잭션으로 커밋한다.
        이미 처리된 결과는 오류 없이 0 을 반환한다.

        Args:
            result_id: 결과 ID

        Returns:
            CreditOutcome: 적립 포인트와 적립 후 잔액

        Raises:
            NotFoundError: 결과 또는 소유자가 없음
            InvalidStateError: completed 가 아닌 결과
        """
        result = self.result_repo.get_model(result_id, fresh=True)
        if result is None:
            raise NotFoundError(f"Result not found: {result_id}")

        if result.status != ResultStatusEnum.COMPLETED:
            raise InvalidStateError(
                "result_not_completed",
                f"Result {result_id} is {result.status.value}",
                details={"status": result.status.value},
            )

        if result.user_id is None:
            return CreditOutcome(result_id=result_id, skipped_reason="guest_result")

        user_id = result.user_id
        if result.points_calculated:
            return self._skipped(result_id, user_id, "already_processed")

        delta = extract_points(result.result_label)
        if delta <= 0:
            return self._skipped(result_id, user_id, "no_points")

        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")

        try:
            if not self.result_repo.mark_points_calculated(result_id):
                # 다른 요청이 먼저 처리함
                self.db.rollback()
                logger.info(f"Result {result_id} already credited by a concurrent request")
                return self._skipped(result_id, user_id, "already_processed")

            if not self.user_repo.credit_points(user_id, delta):
                self.db.rollback()
                raise NotFoundError(f"User not found: {user_id}")

            self.db.commit()
        except OperationalError as e:
            self.db.rollback()
            logger.warning(f"Credit for result {result_id} hit a lock/timeout: {str(e)}")
            raise ConcurrencyConflictError(details={"result_id": result_id})
        except BaseAPIException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to credit result {result_id}: {str(e)}")
            raise

        balance = self.user_repo.get_balance(user_id)
        logger.info(
            f"Credited {delta} points to user {user_id} for result {result_id} "
            f"(current={balance.current_points}, lifetime={balance.lifetime_points})"
        )

        self._after_credit(user.username, user_id, result_id, delta, balance)

        return CreditOutcome(
            result_id=result_id,
            user_id=user_id,
            points_credited=delta,
            current_points=balance.current_points,
            lifetime_points=balance.lifetime_points,
        )

    def _after_credit(self, username: str, user_id: int, result_id: int, delta: int, balance) -> None:
        """커밋 이후 처리: 캐시 무효화 + 이벤트. 여기서의 실패는 적립을 되돌리지 않는다."""
        self.leaderboard.invalidate()
        self.notifier.notify(
            PointsCreditedEvent(
                user_id=user_id,
                username=username,
                delta=delta,
                new_total=balance.current_points,
                lifetime_total=balance.lifetime_points,
                result_id=result_id,
            )
        )
        try:
            snapshot = self.leaderboard.snapshot()
        except SQLAlchemyError as e:
            logger.warning(f"Leaderboard snapshot failed after crediting result {result_id}: {str(e)}")
            return
        self.notifier.notify(LeaderboardChangedEvent(boards=snapshot.boards))

    def calculate_user_points(self, user_id: int) -> RecalculateResponse:
        """사용자의 미처리 completed 결과를 모두 적립"""
        if self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError(f"User not found: {user_id}")

        processed = 0
        added = 0
        for result_id in self.result_repo.get_unprocessed_ids(user_id):
            outcome = self.credit_for_result(result_id)
            if outcome.points_credited > 0:
                processed += 1
                added += outcome.points_credited

        logger.info(f"Recalculated user {user_id}: {processed} results, {added} points")
        return RecalculateResponse(
            user_id=user_id, processed_results=processed, points_added=added, users_processed=1
        )

    def calculate_all_users_points(self) -> RecalculateResponse:
        """전체 회원의 미처리 결과 일괄 적립"""
        processed = 0
        added = 0
        users = set()
        for result_id in self.result_repo.get_unprocessed_ids():
            outcome = self.credit_for_result(result_id)
            if outcome.points_credited > 0:
                processed += 1
                added += outcome.points_credited
                users.add(outcome.user_id)

        logger.info(f"Recalculated all users: {len(users)} users, {processed} results, {added} points")
        return RecalculateResponse(
            processed_results=processed, points_added=added, users_processed=len(users)
        )

    def get_user_points_status(self, user_id: int) -> UserPointsStatus:
        """잔액, 기간별 획득 포인트, 현재 순위"""
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")

        now = self.clock()

        def earned(timeframe: str) -> int:
            since = window_start(timeframe, now, self.settings.TIMEZONE)
            return sum(
                extract_points(label)
                for label in self.result_repo.get_credited_labels(user_id, since)
            )

        return UserPointsStatus(
            user_id=user.id,
            username=user.username,
            current_points=user.current_points,
            lifetime_points=user.lifetime_points,
            today_points=earned("today"),
            week_points=earned("week"),
            month_points=earned("month"),
            rank=self.user_repo.count_with_more_points(user.current_points) + 1,
            last_updated=now,
        )
