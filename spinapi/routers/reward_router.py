"""
리워드 API 라우터

- GET  /rewards/available: 교환 가능 상품 (로그인 시 내 포인트 포함)
- POST /rewards/claim: 상품 교환
- POST /rewards/use: 교환한 리워드 사용
- GET  /rewards/history: 교환 내역 (status 필터, 페이지)
- GET  /rewards/recent: 최근 교환 내역
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from spinapi.core.auth_middleware import get_current_user_optional, verify_bearer_token
from spinapi.deps import get_reward_service
from spinapi.schemas.pagination import PaginationLimits
from spinapi.schemas.rewards import (
    AvailableProductsResponse,
    RewardClaimRequest,
    RewardClaimResponse,
    RewardHistoryResponse,
    RewardResponse,
    RewardUseRequest,
)
from spinapi.schemas.user import User as UserSchema
from spinapi.services.reward_service import RewardService

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("/available", response_model=AvailableProductsResponse)
async def get_available_products(
    current_user: Optional[UserSchema] = Depends(get_current_user_optional),
    reward_service: RewardService = Depends(get_reward_service),
) -> AvailableProductsResponse:
    return reward_service.list_available_products(current_user.id if current_user else None)


@router.post("/claim", response_model=RewardClaimResponse)
async def claim_reward(
    payload: RewardClaimRequest,
    current_user: UserSchema = Depends(verify_bearer_token),
    reward_service: RewardService = Depends(get_reward_service),
) -> RewardClaimResponse:
    """포인트로 상품 교환

    실패 응답: 404(상품 없음), 409 details.reason(product_inactive/out_of_stock),
    400 details.required/available(잔액 부족), 409 CONFLICT_002(경합, 재시도 가능)
    """
    return reward_service.claim(current_user.id, payload.product_id)


@router.post("/use", response_model=RewardResponse)
async def use_reward(
    payload: RewardUseRequest,
    current_user: UserSchema = Depends(verify_bearer_token),
    reward_service: RewardService = Depends(get_reward_service),
) -> RewardResponse:
    return reward_service.use(payload.reward_id, current_user.id)


@router.get("/history", response_model=RewardHistoryResponse)
async def get_reward_history(
    status: Optional[str] = Query(None, description="claimed | used | expired"),
    page: int = Query(1, ge=1),
    per_page: int = Query(
        PaginationLimits.REWARDS_HISTORY["default"],
        ge=PaginationLimits.REWARDS_HISTORY["min"],
        le=PaginationLimits.REWARDS_HISTORY["max"],
    ),
    current_user: UserSchema = Depends(verify_bearer_token),
    reward_service: RewardService = Depends(get_reward_service),
) -> RewardHistoryResponse:
    return reward_service.get_reward_history(current_user.id, status=status, page=page, per_page=per_page)


@router.get("/recent", response_model=List[RewardResponse])
async def get_recent_rewards(
    limit: int = Query(
        PaginationLimits.RECENT_REWARDS["default"],
        ge=PaginationLimits.RECENT_REWARDS["min"],
        le=PaginationLimits.RECENT_REWARDS["max"],
    ),
    current_user: UserSchema = Depends(verify_bearer_token),
    reward_service: RewardService = Depends(get_reward_service),
) -> List[RewardResponse]:
    return reward_service.get_recent_rewards(current_user.id, limit=limit)
