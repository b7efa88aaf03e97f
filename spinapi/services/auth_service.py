import logging
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from spinapi.config import Settings, settings as default_settings
from spinapi.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
)
from spinapi.repositories.user_repository import UserRepository
from spinapi.schemas.auth import GameLoginResponse
from spinapi.schemas.user import User as UserSchema
from spinapi.services.agent_key_service import AgentKeyService
from spinapi.services.token_service import TokenService
from spinapi.utils.device import DeviceInfo
from spinapi.utils.timezone_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class AuthService:
    """게임 로그인 및 요청 주체 확인"""

    def __init__(self, db: Session, settings: Settings = default_settings, clock: Clock = utc_now):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.token_service = TokenService(db, settings=settings, clock=clock)
        self.agent_key_service = AgentKeyService(db, settings=settings, clock=clock)

    def login_game(self, username: str, agent_key: str, device: DeviceInfo) -> GameLoginResponse:
        """에이전트 키로 게임 로그인

        같은 기기 세션(session_hint)에 활성 토큰이 있으면 그 행의 secret 을 교체하고
        window 를 갱신(extended), 없으면 새 토큰을 발급(new)한다.

        Raises:
            AuthenticationError: 키가 무효/만료이거나 사용자가 없음/비활성
            AuthorizationError: 다른 사용자 전용 키
        """
        key = self.agent_key_service.validate_key(agent_key)
        if key is None:
            raise AuthenticationError("Invalid or expired agent key")

        user = self.user_repo.get_by_username(username)
        if user is None or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        if key.user_id is not None and key.user_id != user.id:
            logger.warning(f"Agent key {key.id} is scoped to user {key.user_id}, not {user.id}")
            raise AuthorizationError("Agent key is not valid for this user")

        self.token_service.cleanup_expired(user.id)

        issued = None
        session_type = "new"
        existing = self.token_service.find_active_for_user(user.id, device.session_hint)
        if existing is not None:
            try:
                issued = self.token_service.reissue(existing.id)
                session_type = "extended"
            except (InvalidStateError, NotFoundError):
                # 조회와 갱신 사이에 로그아웃/만료됨
                issued = None
        if issued is None:
            issued = self.token_service.issue(user.id, device)

        self.user_repo.update_last_login(user.id, self.clock())

        logger.info(f"Game login for {user.username} via agent key {key.id} ({session_type})")
        return GameLoginResponse(
            login_url=self.build_login_url(issued.secret, user.username),
            token=issued.secret,
            token_identifier=issued.token.unique_identifier,
            expires_in=self.settings.TOKEN_TTL_MINUTES * 60,
            session_type=session_type,
            user_id=user.id,
            username=user.username,
        )

    def build_login_url(self, secret: str, username: str) -> str:
        params = {
            "token": secret,
            "expiresIn": self.settings.TOKEN_TTL_MINUTES * 60,
            "memberLogin": username,
            "currency": self.settings.DEFAULT_CURRENCY,
            "lng": self.settings.DEFAULT_LANGUAGE,
            "hideBar": "true",
        }
        return f"{self.settings.FRONTEND_BASE_URL}?{urlencode(params)}"

    def get_current_user(self, token: Optional[str]) -> Optional[UserSchema]:
        """토큰이 유효하고 사용자가 활성이면 사용자, 아니면 None"""
        user_id = self.token_service.validate(token)
        if user_id is None:
            return None
        user = self.user_repo.get_by_id(user_id)
        if user is None or not user.is_active:
            return None
        return user

    def resolve_user_id(
        self, token: Optional[str], claimed_user_id: Optional[int] = None
    ) -> Optional[int]:
        """요청 주체 결정

        - 토큰이 있으면 토큰의 사용자만 인정 (클라이언트가 보낸 user_id 는 무시)
        - 토큰이 있는데 무효면 게스트(None), claimed_user_id 로 대체하지 않음
        - 토큰이 없을 때만 claimed_user_id 사용
        """
        if token:
            user = self.get_current_user(token)
            if user is None:
                logger.info("Presented token is invalid; treating request as guest")
                return None
            if claimed_user_id is not None and claimed_user_id != user.id:
                logger.warning(
                    f"Ignoring client-supplied user_id {claimed_user_id} for token user {user.id}"
                )
            return user.id
        return claimed_user_id
