from pydantic import BaseModel
from datetime import date
from typing import List, Optional


class UserTotals(BaseModel):
    user_id: int
    username: str
    name: str
    total_games: int
    total_points: int


class PrizeHistoryItem(BaseModel):
    result_id: int
    result_label: str
    points: int
    played_on: date


class UserReport(UserTotals):
    prizes: List[PrizeHistoryItem] = []


class DailySummary(BaseModel):
    day: date
    total_games: int
    unique_players: int
    total_points_awarded: int
    avg_points_per_game: float


class DistributionItem(BaseModel):
    result_label: str
    points_value: int
    frequency: int
    percentage: float


class DistributionReport(BaseModel):
    total_results: int
    items: List[DistributionItem]
    start_date: Optional[date] = None
    end_date: Optional[date] = None
