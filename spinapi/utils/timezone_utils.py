"""
타임존 유틸리티

DB 에는 항상 UTC 로 저장하고, 일/주/월 경계만 설정된 로컬 타임존(기본 Asia/Phnom_Penh)으로 계산한다.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytz

from spinapi.config import settings

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """현재 UTC 시간을 반환합니다."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """naive datetime 은 UTC 로 간주합니다 (SQLite 는 tzinfo 를 보존하지 않음)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_tz(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or settings.TIMEZONE)


def start_of_local_day(now: datetime, tz_name: Optional[str] = None) -> datetime:
    """now 가 속한 로컬 날짜의 00:00 을 UTC 로 반환합니다."""
    tz = local_tz(tz_name)
    local_now = ensure_aware(now).astimezone(tz)
    midnight = tz.localize(datetime(local_now.year, local_now.month, local_now.day))
    return midnight.astimezone(timezone.utc)


def window_start(timeframe: str, now: datetime, tz_name: Optional[str] = None) -> Optional[datetime]:
    """
    리더보드/통계 기간의 시작 시각 (UTC)

    Args:
        timeframe: all | today | week | month
        now: 기준 시각

    Returns:
        datetime | None: "all" 이면 None
    """
    if timeframe == "today":
        return start_of_local_day(now, tz_name)
    if timeframe == "week":
        return ensure_aware(now) - timedelta(days=7)
    if timeframe == "month":
        return ensure_aware(now) - timedelta(days=30)
    return None
