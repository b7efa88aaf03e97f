from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from spinapi.models.rewards import RewardStatusEnum
from spinapi.schemas.pagination import PageMeta


class ProductResponse(BaseModel):
    """교환 가능 상품"""

    id: int
    name: str
    code: str
    description: Optional[str] = None
    point_cost: int
    icon: Optional[str] = None
    stock: int = Field(..., description="-1 이면 무제한")
    is_active: bool

    class Config:
        from_attributes = True


class RewardResponse(BaseModel):
    id: int
    user_id: int
    product_id: int
    points_spent: int
    status: RewardStatusEnum
    claimed_at: datetime
    used_at: Optional[datetime] = None
    expires_at: datetime
    notes: Optional[str] = None
    product: Optional[ProductResponse] = None

    class Config:
        from_attributes = True


class RewardClaimRequest(BaseModel):
    product_id: int = Field(..., gt=0)


class RewardClaimResponse(BaseModel):
    success: bool = True
    message: str
    reward: RewardResponse
    remaining_points: int


class RewardUseRequest(BaseModel):
    reward_id: int = Field(..., gt=0)


class AvailableProductsResponse(BaseModel):
    products: List[ProductResponse]
    user_points: Optional[int] = None


class RewardHistoryResponse(BaseModel):
    rewards: List[RewardResponse]
    meta: PageMeta
