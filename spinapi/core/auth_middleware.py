from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from spinapi.core.exceptions import AuthenticationError
from spinapi.deps import get_auth_service
from spinapi.schemas.user import User as UserSchema
from spinapi.services.auth_service import AuthService

# Bearer 토큰 스킴 (토큰 없이도 통과, 필수 여부는 의존성에서 판단)
security = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Authorization 헤더의 Bearer 토큰 (없으면 None)"""
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials.strip()


def get_current_user_optional(
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[UserSchema]:
    """선택적 사용자 인증 - 토큰이 없거나 유효하지 않으면 None"""
    if not token:
        return None
    return auth_service.get_current_user(token)


def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserSchema:
    """필수 사용자 인증 - 유효한 토큰이 필요함"""
    if not token:
        raise AuthenticationError("Authentication required")

    user = auth_service.get_current_user(token)
    if user is None:
        raise AuthenticationError("Invalid or expired token")
    return user


verify_bearer_token = get_current_user
verify_bearer_token_optional = get_current_user_optional
