from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class CreditOutcome(BaseModel):
    """결과 1건 적립 처리 결과"""

    result_id: int = Field(..., description="결과 ID")
    user_id: Optional[int] = Field(None, description="소유자 ID (게스트면 None)")
    points_credited: int = Field(0, ge=0, description="이번에 적립된 포인트")
    current_points: Optional[int] = Field(None, description="적립 후 사용 가능 포인트")
    lifetime_points: Optional[int] = Field(None, description="적립 후 누적 포인트")
    skipped_reason: Optional[str] = Field(
        None, description="guest_result | already_processed | no_points"
    )

    @property
    def credited(self) -> bool:
        return self.points_credited > 0


class RecalculateResponse(BaseModel):
    """미처리 결과 일괄 적립 응답"""

    user_id: Optional[int] = None
    processed_results: int = Field(..., description="적립 처리된 결과 수")
    points_added: int = Field(..., description="적립된 포인트 합계")
    users_processed: int = Field(1, description="처리된 사용자 수")


class UserPointsStatus(BaseModel):
    """사용자 포인트 현황"""

    user_id: int
    username: str
    current_points: int
    lifetime_points: int
    today_points: int
    week_points: int
    month_points: int
    rank: int = Field(..., description="현재 포인트 기준 순위 (더 많은 사용자 수 + 1)")
    last_updated: datetime
