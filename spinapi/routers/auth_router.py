"""
인증 API 라우터

- POST /auth/login-game: 에이전트 키로 게임 로그인 (토큰 + 로그인 링크)
- POST /auth/validate-token: 토큰 유효성 확인
- GET  /auth/me: 현재 사용자
- POST /auth/extend: 현재 토큰의 rolling window 갱신
- POST /auth/logout: 현재 토큰 폐기
- POST /auth/logout-all: 모든 토큰 폐기
- GET  /auth/tokens: 활성 토큰 목록
- DELETE /auth/tokens/{identifier}: 특정 토큰 폐기
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Request

from spinapi.config import settings
from spinapi.core.auth_middleware import get_bearer_token, verify_bearer_token
from spinapi.core.exceptions import AuthenticationError
from spinapi.deps import get_auth_service, get_token_service
from spinapi.schemas.auth import (
    GameLoginRequest,
    GameLoginResponse,
    LogoutResponse,
    TokenInfo,
    TokenListResponse,
    TokenValidationRequest,
    TokenValidationResponse,
)
from spinapi.schemas.user import User as UserSchema
from spinapi.services.auth_service import AuthService
from spinapi.services.token_service import TokenService
from spinapi.utils.device import DeviceInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _device_from_request(request: Request) -> DeviceInfo:
    return DeviceInfo.from_user_agent(
        request.headers.get("user-agent"),
        request.headers.get(settings.SESSION_HEADER_NAME),
    )


@router.post("/login-game", response_model=GameLoginResponse)
async def login_game(
    payload: GameLoginRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> GameLoginResponse:
    """에이전트 키 기반 게임 로그인

    같은 기기 세션(X-Session-ID)에 활성 토큰이 있으면 extended, 없으면 new.
    """
    return auth_service.login_game(payload.username, payload.agent_key, _device_from_request(request))


@router.post("/validate-token", response_model=TokenValidationResponse)
async def validate_token(
    payload: TokenValidationRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenValidationResponse:
    user = auth_service.get_current_user(payload.token)
    if user is None:
        return TokenValidationResponse(valid=False)
    return TokenValidationResponse(valid=True, user_id=user.id, username=user.username)


@router.get("/me", response_model=UserSchema)
async def get_me(current_user: UserSchema = Depends(verify_bearer_token)) -> UserSchema:
    return current_user


def _current_token(token: Optional[str], token_service: TokenService) -> TokenInfo:
    current = token_service.get_token_by_secret(token) if token else None
    if current is None:
        raise AuthenticationError("Invalid or expired token")
    return current


@router.post("/extend", response_model=TokenInfo)
async def extend_session(
    current_user: UserSchema = Depends(verify_bearer_token),
    token: Optional[str] = Depends(get_bearer_token),
    token_service: TokenService = Depends(get_token_service),
) -> TokenInfo:
    """현재 토큰의 만료 시각을 지금부터 다시 계산"""
    return token_service.extend(_current_token(token, token_service).id)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    current_user: UserSchema = Depends(verify_bearer_token),
    token: Optional[str] = Depends(get_bearer_token),
    token_service: TokenService = Depends(get_token_service),
) -> LogoutResponse:
    current = _current_token(token, token_service)
    revoked = token_service.revoke(current.unique_identifier, user_id=current_user.id)
    return LogoutResponse(revoked=int(revoked))


@router.post("/logout-all", response_model=LogoutResponse)
async def logout_all(
    current_user: UserSchema = Depends(verify_bearer_token),
    token_service: TokenService = Depends(get_token_service),
) -> LogoutResponse:
    revoked = token_service.revoke_all(current_user.id)
    return LogoutResponse(revoked=revoked, message="Logged out from all devices")


@router.get("/tokens", response_model=TokenListResponse)
async def list_tokens(
    current_user: UserSchema = Depends(verify_bearer_token),
    token_service: TokenService = Depends(get_token_service),
) -> TokenListResponse:
    tokens = token_service.list_active_tokens(current_user.id)
    return TokenListResponse(tokens=tokens, total_count=len(tokens))


@router.delete("/tokens/{identifier}", response_model=LogoutResponse)
async def revoke_token(
    identifier: str = Path(..., min_length=1, max_length=64),
    current_user: UserSchema = Depends(verify_bearer_token),
    token_service: TokenService = Depends(get_token_service),
) -> LogoutResponse:
    """identifier 로 본인 토큰 폐기 (이미 없으면 revoked=0)"""
    revoked = token_service.revoke(identifier, user_id=current_user.id)
    return LogoutResponse(revoked=int(revoked), message="Token revoked" if revoked else "Token not found")
