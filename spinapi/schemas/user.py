from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class User(BaseModel):
    id: int
    username: str
    name: str
    email: Optional[str] = None
    is_active: bool = True
    current_points: int = 0
    lifetime_points: int = 0
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserBalance(BaseModel):
    """사용자 포인트 잔액"""

    user_id: int = Field(..., description="사용자 ID")
    current_points: int = Field(..., ge=0, description="사용 가능 포인트")
    lifetime_points: int = Field(..., ge=0, description="누적 획득 포인트")
