import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from spinapi.core.auth_middleware import get_bearer_token, get_current_user_optional
from spinapi.deps import get_auth_service, get_result_service
from spinapi.schemas.pagination import PaginationLimits
from spinapi.schemas.results import (
    GameResultListResponse,
    SpinResultCreate,
    SpinResultResponse,
)
from spinapi.schemas.user import User as UserSchema
from spinapi.services.auth_service import AuthService
from spinapi.services.result_service import ResultService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/spin", tags=["spin"])


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("/result", response_model=SpinResultResponse)
async def submit_result(
    payload: SpinResultCreate,
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
    result_service: ResultService = Depends(get_result_service),
) -> SpinResultResponse:
    """스핀 결과 저장 (토큰의 사용자 > body 의 user_id > 게스트)"""
    user_id = auth_service.resolve_user_id(token, payload.user_id)
    return result_service.record_spin(
        payload,
        user_id=user_id,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.get("/results", response_model=GameResultListResponse)
async def list_results(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int = Query(
        PaginationLimits.RESULTS_HISTORY["default"],
        ge=PaginationLimits.RESULTS_HISTORY["min"],
        le=PaginationLimits.RESULTS_HISTORY["max"],
    ),
    current_user: Optional[UserSchema] = Depends(get_current_user_optional),
    result_service: ResultService = Depends(get_result_service),
) -> GameResultListResponse:
    user_id = current_user.id if current_user else None
    return result_service.list_results(user_id, _client_ip(request), page=page, per_page=per_page)
