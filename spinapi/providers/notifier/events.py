from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field

from spinapi.schemas.leaderboard import LeaderboardEntry
from spinapi.utils.timezone_utils import utc_now


class DomainEvent(BaseModel):
    occurred_at: datetime = Field(default_factory=utc_now)

    @property
    def event_type(self) -> str:
        return type(self).__name__.removesuffix("Event")


class PointsCreditedEvent(DomainEvent):
    user_id: int
    username: str
    delta: int
    new_total: int
    lifetime_total: int
    result_id: int


class LeaderboardChangedEvent(DomainEvent):
    boards: Dict[str, List[LeaderboardEntry]]
