from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class GameLoginRequest(BaseModel):
    """에이전트 키 기반 게임 로그인 요청"""

    username: str = Field(..., min_length=1, max_length=100)
    agent_key: str = Field(..., min_length=1, max_length=64)


class GameLoginResponse(BaseModel):
    success: bool = True
    login_url: str
    token: str
    token_identifier: str
    expires_in: int = Field(..., description="rolling window 길이 (초)")
    session_type: str = Field(..., description="new | extended")
    user_id: int
    username: str


class TokenValidationRequest(BaseModel):
    token: str = Field(..., min_length=1)


class TokenValidationResponse(BaseModel):
    valid: bool
    user_id: Optional[int] = None
    username: Optional[str] = None


class TokenInfo(BaseModel):
    """토큰 메타데이터 (secret 제외)"""

    id: int
    user_id: int
    name: str
    unique_identifier: str
    device_type: str
    device_info: Optional[str] = None
    session_id: Optional[str] = None
    created_at: datetime
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    expires_in_seconds: Optional[int] = None

    class Config:
        from_attributes = True


class IssuedToken(BaseModel):
    """발급 직후 1회만 평문 secret 을 포함"""

    secret: str
    token: TokenInfo


class TokenListResponse(BaseModel):
    tokens: List[TokenInfo]
    total_count: int


class LogoutResponse(BaseModel):
    success: bool = True
    revoked: int = 0
    message: str = "Logged out"


class AgentKeyInfo(BaseModel):
    id: int
    key_value: str
    name: str
    agent_host: Optional[str] = None
    user_id: Optional[int] = None
    is_active: bool
    expires_at: datetime
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AgentKeyValidateRequest(BaseModel):
    key: str = Field(..., min_length=1, max_length=64)


class AgentKeyValidateResponse(BaseModel):
    valid: bool
    name: Optional[str] = None
    user_id: Optional[int] = None
    expires_at: Optional[datetime] = None
