import logging
from typing import Dict, List, Optional, Union

from sqlalchemy.orm import Session

from spinapi.config import Settings, settings as default_settings
from spinapi.core.exceptions import ValidationError
from spinapi.repositories.result_repository import ResultRepository
from spinapi.repositories.user_repository import UserRepository
from spinapi.schemas.leaderboard import (
    LeaderboardEntry,
    LeaderboardSnapshot,
    RealtimeStats,
    Timeframe,
)
from spinapi.services.redis_service import RedisService
from spinapi.utils.cache_utils import TTLCache, generate_leaderboard_cache_key
from spinapi.utils.points_extractor import extract_points
from spinapi.utils.timezone_utils import Clock, start_of_local_day, utc_now, window_start

logger = logging.getLogger(__name__)

# LeaderboardChanged 이벤트에 실리는 기간별 보드
SNAPSHOT_BOARDS = {
    "all_time": Timeframe.ALL,
    "today": Timeframe.TODAY,
    "this_week": Timeframe.WEEK,
    "this_month": Timeframe.MONTH,
}
SNAPSHOT_LIMIT = 10
STATS_CACHE_KEY = "realtime:stats"


class LeaderboardCache(TTLCache):
    """(timeframe, limit) 별 리더보드 캐시. 적립/교환 성공 시 invalidate() 된다."""

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Clock = utc_now,
        redis_service: Optional[RedisService] = None,
    ) -> "LeaderboardCache":
        return cls(
            redis_service if redis_service is not None else RedisService(settings),
            namespace="leaderboard",
            ttl_seconds=settings.LEADERBOARD_CACHE_TTL_SECONDS,
            clock=clock,
        )


class LeaderboardService:
    """리더보드 / 실시간 통계 조회"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        cache: Optional[LeaderboardCache] = None,
        stats_cache: Optional[TTLCache] = None,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.cache = cache if cache is not None else LeaderboardCache.from_settings(settings, clock)
        self.stats_cache = (
            stats_cache if stats_cache is not None else build_stats_cache(settings, clock)
        )
        self.user_repo = UserRepository(db)
        self.result_repo = ResultRepository(db)

    def _parse_timeframe(self, timeframe: Union[str, Timeframe]) -> Timeframe:
        try:
            return Timeframe(timeframe)
        except ValueError:
            raise ValidationError(
                f"Invalid timeframe: {timeframe}",
                details={"allowed": [t.value for t in Timeframe]},
            )

    def _clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.settings.LEADERBOARD_DEFAULT_LIMIT
        return max(1, min(int(limit), self.settings.LEADERBOARD_MAX_LIMIT))

    def get_leaderboard(
        self, limit: Optional[int] = None, timeframe: Union[str, Timeframe] = Timeframe.ALL
    ) -> List[LeaderboardEntry]:
        """기간별 리더보드 (TTL 캐시)

        Args:
            limit: 1..LEADERBOARD_MAX_LIMIT 로 보정
            timeframe: all | today | week | month

        Returns:
            List[LeaderboardEntry]: rank 1 부터
        """
        tf = self._parse_timeframe(timeframe)
        limit = self._clamp_limit(limit)
        key = generate_leaderboard_cache_key(tf.value, limit)
        cached = self.cache.get_or_load(
            key,
            lambda: [e.model_dump(mode="json") for e in self._load_leaderboard(tf, limit)],
        )
        return [LeaderboardEntry.model_validate(e) for e in cached]

    def _load_leaderboard(self, timeframe: Timeframe, limit: int) -> List[LeaderboardEntry]:
        since = window_start(timeframe.value, self.clock(), self.settings.TIMEZONE)
        activity = self.result_repo.last_activity_subquery(since)
        rows = self.user_repo.get_ranked(limit, activity, require_activity=since is not None)
        logger.debug(f"Leaderboard loaded: timeframe={timeframe.value} limit={limit} rows={len(rows)}")
        return [
            LeaderboardEntry(
                rank=index,
                user_id=user.id,
                username=user.username,
                name=user.name,
                points=user.current_points,
                lifetime_points=user.lifetime_points,
            )
            for index, (user, _last_activity) in enumerate(rows, start=1)
        ]

    def snapshot(self) -> LeaderboardSnapshot:
        boards: Dict[str, List[LeaderboardEntry]] = {
            name: self.get_leaderboard(SNAPSHOT_LIMIT, timeframe)
            for name, timeframe in SNAPSHOT_BOARDS.items()
        }
        return LeaderboardSnapshot(boards=boards, generated_at=self.clock())

    def invalidate(self) -> None:
        self.cache.invalidate()

    def get_realtime_stats(self) -> RealtimeStats:
        cached = self.stats_cache.get_or_load(
            STATS_CACHE_KEY, lambda: self._load_realtime_stats().model_dump(mode="json")
        )
        return RealtimeStats.model_validate(cached)

    def _load_realtime_stats(self) -> RealtimeStats:
        now = self.clock()
        today_start = start_of_local_day(now, self.settings.TIMEZONE)
        users_with_points, total_points = self.user_repo.get_points_totals()
        today_points = sum(
            extract_points(label) for label in self.result_repo.get_labels_since(today_start)
        )
        average = round(total_points / users_with_points, 2) if users_with_points else 0.0
        return RealtimeStats(
            total_users_with_points=users_with_points,
            total_points_in_system=total_points,
            today_spins=self.result_repo.count_since(today_start),
            today_points_earned=today_points,
            average_points_per_user=average,
            generated_at=now,
        )


def build_stats_cache(
    settings: Settings, clock: Clock = utc_now, redis_service: Optional[RedisService] = None
) -> TTLCache:
    return TTLCache(
        redis_service if redis_service is not None else RedisService(settings),
        namespace="realtime",
        ttl_seconds=settings.STATS_CACHE_TTL_SECONDS,
        clock=clock,
    )
