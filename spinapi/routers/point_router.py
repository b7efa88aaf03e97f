"""
포인트 API 라우터

- GET  /points/me: 내 포인트 현황 (잔액, 기간별 획득, 순위)
- POST /points/recalculate: 내 미처리 결과 일괄 적립
"""

from fastapi import APIRouter, Depends

from spinapi.core.auth_middleware import verify_bearer_token
from spinapi.deps import get_point_service
from spinapi.schemas.points import RecalculateResponse, UserPointsStatus
from spinapi.schemas.user import User as UserSchema
from spinapi.services.point_service import PointService

router = APIRouter(prefix="/points", tags=["points"])


@router.get("/me", response_model=UserPointsStatus)
async def get_my_points(
    current_user: UserSchema = Depends(verify_bearer_token),
    point_service: PointService = Depends(get_point_service),
) -> UserPointsStatus:
    return point_service.get_user_points_status(current_user.id)


@router.post("/recalculate", response_model=RecalculateResponse)
async def recalculate_my_points(
    current_user: UserSchema = Depends(verify_bearer_token),
    point_service: PointService = Depends(get_point_service),
) -> RecalculateResponse:
    """적립되지 않은 completed 결과를 다시 적립 (이미 처리된 결과는 건너뜀)"""
    return point_service.calculate_user_points(current_user.id)
