import logging
import secrets
import string
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from spinapi.config import Settings, settings as default_settings
from spinapi.core.exceptions import NotFoundError, ValidationError
from spinapi.models.game_result import ResultStatusEnum
from spinapi.providers.notifier.base import EventNotifier
from spinapi.repositories.result_repository import ResultRepository
from spinapi.repositories.user_repository import UserRepository
from spinapi.schemas.pagination import PageMeta, PaginationLimits
from spinapi.schemas.results import (
    GameResultListResponse,
    SpinResultCreate,
    SpinResultResponse,
)
from spinapi.services.leaderboard_service import LeaderboardCache
from spinapi.services.point_service import PointService
from spinapi.utils.cache_utils import TTLCache
from spinapi.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)

GAME_TYPE_SPIN_WHEEL = "spin_wheel"
GUEST_HISTORY_HOURS = 24


def generate_game_code(length: int = 8) -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


class ResultService:
    """스핀 결과 저장 및 적립 연결"""

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
        self.result_repo = ResultRepository(db)
        self.user_repo = UserRepository(db)
        self.point_service = PointService(
            db,
            settings=settings,
            cache=cache,
            notifier=notifier,
            stats_cache=stats_cache,
            clock=clock,
        )

    def record_spin(
        self,
        payload: SpinResultCreate,
        user_id: Optional[int],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SpinResultResponse:
        """completed 결과를 저장하고, 회원 결과면 바로 적립

        Args:
            payload: 결과 데이터
            user_id: 이미 결정된 요청 주체 (AuthService.resolve_user_id 결과), 게스트는 None
        """
        if user_id is not None and self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError(f"User not found: {user_id}")

        now = self.clock()
        result = self.result_repo.create(
            user_id=user_id,
            game_type=GAME_TYPE_SPIN_WHEEL,
            game_code=payload.game_code or generate_game_code(),
            result_label=payload.result_label,
            result_khmer=payload.result_khmer,
            result_color=payload.result_color,
            segment_index=payload.segment_index,
            spin_angle=payload.spin_angle,
            status=ResultStatusEnum.COMPLETED,
            points_calculated=False,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=now,
            completed_at=now,
        )
        logger.info(f"Recorded spin result {result.id} for {'user ' + str(user_id) if user_id else 'guest'}")

        if user_id is None:
            return SpinResultResponse(result=result)

        outcome = self.point_service.credit_for_result(result.id)
        return SpinResultResponse(
            result=self.result_repo.get_by_id(result.id),
            points_earned=outcome.points_credited,
            current_points=outcome.current_points,
            lifetime_points=outcome.lifetime_points,
        )

    def list_results(
        self,
        user_id: Optional[int],
        ip_address: Optional[str] = None,
        page: int = 1,
        per_page: int = PaginationLimits.RESULTS_HISTORY["default"],
    ) -> GameResultListResponse:
        """회원은 본인 결과, 게스트는 같은 IP 의 최근 24시간 결과"""
        page = max(1, page)
        per_page = max(1, min(per_page, PaginationLimits.RESULTS_HISTORY["max"]))
        offset = (page - 1) * per_page

        if user_id is not None:
            results, total = self.result_repo.list_for_user(user_id, offset, per_page)
        elif ip_address:
            since = self.clock() - timedelta(hours=GUEST_HISTORY_HOURS)
            results, total = self.result_repo.list_for_guest(ip_address, since, offset, per_page)
        else:
            raise ValidationError("Either an authenticated user or a client address is required")

        return GameResultListResponse(
            results=results, meta=PageMeta.build(page=page, per_page=per_page, total=total)
        )
