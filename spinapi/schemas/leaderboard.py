from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import Dict, List


class Timeframe(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    username: str
    name: str
    points: int
    lifetime_points: int


class LeaderboardResponse(BaseModel):
    timeframe: Timeframe
    limit: int
    entries: List[LeaderboardEntry]


class LeaderboardSnapshot(BaseModel):
    """LeaderboardChanged 이벤트에 실리는 기간별 순위"""

    boards: Dict[str, List[LeaderboardEntry]]
    generated_at: datetime


class RealtimeStats(BaseModel):
    total_users_with_points: int = Field(..., description="포인트 보유 사용자 수")
    total_points_in_system: int = Field(..., description="시스템 전체 사용 가능 포인트")
    today_spins: int
    today_points_earned: int
    average_points_per_user: float
    generated_at: datetime
