import logging
from collections import OrderedDict, defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

import pytz
from sqlalchemy.orm import Session

from spinapi.config import Settings, settings as default_settings
from spinapi.core.exceptions import NotFoundError, ValidationError
from spinapi.repositories.result_repository import ResultRepository
from spinapi.repositories.user_repository import UserRepository
from spinapi.schemas.reports import (
    DailySummary,
    DistributionItem,
    DistributionReport,
    PrizeHistoryItem,
    UserReport,
    UserTotals,
)
from spinapi.utils.points_extractor import extract_points
from spinapi.utils.timezone_utils import Clock, ensure_aware, local_tz, utc_now

logger = logging.getLogger(__name__)


class ReportService:
    """읽기 전용 집계. 포인트는 항상 extract_points 로 계산한다."""

    def __init__(self, db: Session, settings: Settings = default_settings, clock: Clock = utc_now):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.result_repo = ResultRepository(db)
        self.user_repo = UserRepository(db)

    def _day_bounds(self, day: date) -> Tuple[datetime, datetime]:
        """로컬 날짜 [00:00, 다음날 00:00) 를 UTC 로"""
        tz = local_tz(self.settings.TIMEZONE)
        start = tz.localize(datetime(day.year, day.month, day.day))
        end = tz.localize(datetime(day.year, day.month, day.day) + timedelta(days=1))
        return start.astimezone(pytz.utc), end.astimezone(pytz.utc)

    def _range_bounds(
        self, start_date: Optional[date], end_date: Optional[date]
    ) -> Tuple[Optional[datetime], Optional[datetime]]:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date must be on or before end_date")
        start = self._day_bounds(start_date)[0] if start_date else None
        end = self._day_bounds(end_date)[1] if end_date else None
        return start, end

    def _local_date(self, value: datetime) -> date:
        return ensure_aware(value).astimezone(local_tz(self.settings.TIMEZONE)).date()

    def get_user_totals(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> List[UserTotals]:
        """사용자별 게임 수/획득 포인트 (획득 포인트 내림차순)"""
        start, end = self._range_bounds(start_date, end_date)
        games: Dict[int, int] = defaultdict(int)
        points: Dict[int, int] = defaultdict(int)
        for row in self.result_repo.report_rows(start=start, end=end):
            games[row.user_id] += 1
            points[row.user_id] += extract_points(row.result_label)

        users = {u.id: u for u in self.user_repo.get_users_by_ids(list(games))}
        totals = [
            UserTotals(
                user_id=user_id,
                username=users[user_id].username,
                name=users[user_id].name,
                total_games=games[user_id],
                total_points=points[user_id],
            )
            for user_id in games
            if user_id in users
        ]
        totals.sort(key=lambda t: (-t.total_points, -t.total_games, t.user_id))
        return totals

    def get_user_report(self, user_id: int) -> UserReport:
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")

        rows = self.result_repo.report_rows(user_id=user_id)
        prizes = []
        total_points = 0
        for row in rows:
            value = extract_points(row.result_label)
            total_points += value
            if value > 0:
                prizes.append(
                    PrizeHistoryItem(
                        result_id=row.id,
                        result_label=row.result_label,
                        points=value,
                        played_on=self._local_date(row.created_at),
                    )
                )
        prizes.reverse()
        return UserReport(
            user_id=user.id,
            username=user.username,
            name=user.name,
            total_games=len(rows),
            total_points=total_points,
            prizes=prizes,
        )

    def get_daily_summary(self, day: Optional[date] = None) -> DailySummary:
        day = day or self._local_date(self.clock())
        start, end = self._day_bounds(day)
        rows = self.result_repo.report_rows(start=start, end=end)
        total_points = sum(extract_points(row.result_label) for row in rows)
        total_games = len(rows)
        return DailySummary(
            day=day,
            total_games=total_games,
            unique_players=len({row.user_id for row in rows}),
            total_points_awarded=total_points,
            avg_points_per_game=round(total_points / total_games, 2) if total_games else 0.0,
        )

    def get_distribution(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> DistributionReport:
        """결과 라벨별 빈도/비율"""
        start, end = self._range_bounds(start_date, end_date)
        counts: "OrderedDict[str, int]" = OrderedDict()
        for row in self.result_repo.report_rows(start=start, end=end):
            counts[row.result_label] = counts.get(row.result_label, 0) + 1

        total = sum(counts.values())
        items = [
            DistributionItem(
                result_label=label,
                points_value=extract_points(label),
                frequency=frequency,
                percentage=round(frequency * 100 / total, 2),
            )
            for label, frequency in counts.items()
        ]
        items.sort(key=lambda item: (-item.frequency, -item.points_value, item.result_label))
        return DistributionReport(
            total_results=total, items=items, start_date=start_date, end_date=end_date
        )
