from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from spinapi.models.game_result import ResultStatusEnum
from spinapi.schemas.pagination import PageMeta


class GameResultResponse(BaseModel):
    """저장된 스핀 결과"""

    id: int
    user_id: Optional[int] = None
    game_type: str
    game_code: Optional[str] = None
    result_label: str
    result_khmer: Optional[str] = None
    result_color: Optional[str] = None
    segment_index: Optional[int] = None
    spin_angle: Optional[float] = None
    status: ResultStatusEnum
    points_calculated: bool
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SpinResultCreate(BaseModel):
    """스핀 결과 제출 요청"""

    result_label: str = Field(..., min_length=1, max_length=255, description="결과 라벨 (예: 'ពិន្ទុ ២៥')")
    result_khmer: Optional[str] = Field(None, max_length=255)
    result_color: Optional[str] = Field(None, max_length=20)
    segment_index: Optional[int] = Field(None, ge=0)
    spin_angle: Optional[float] = None
    game_code: Optional[str] = Field(None, max_length=32)
    user_id: Optional[int] = Field(
        None, description="토큰이 없을 때만 사용되는 클라이언트 제공 사용자 ID"
    )


class SpinResultResponse(BaseModel):
    """스핀 결과 제출 응답"""

    success: bool = True
    result: GameResultResponse
    points_earned: int = 0
    current_points: Optional[int] = None
    lifetime_points: Optional[int] = None


class GameResultListResponse(BaseModel):
    results: List[GameResultResponse]
    meta: PageMeta
