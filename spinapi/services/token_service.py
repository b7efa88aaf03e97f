import hashlib
import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spinapi.config import Settings, settings as default_settings
from spinapi.core.exceptions import InvalidStateError, NotFoundError
from spinapi.repositories.token_repository import AccessTokenRepository
from spinapi.repositories.user_repository import UserRepository
from spinapi.schemas.auth import IssuedToken, TokenInfo
from spinapi.utils.device import DeviceInfo
from spinapi.utils.timezone_utils import Clock, ensure_aware, utc_now

logger = logging.getLogger(__name__)

_ALPHABET = string.ascii_letters + string.digits


def random_string(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def hash_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


class TokenService:
    """Opaque bearer 토큰 관리 (rolling window 만료)

    토큰은 ``created_at + TOKEN_TTL_MINUTES`` 시각까지 활성이며, ``expires_at``
    이 있으면 추가 상한으로 적용된다. ``extend`` 는 새 행을 만들지 않고
    created_at 을 갱신한다.
    """

    def __init__(self, db: Session, settings: Settings = default_settings, clock: Clock = utc_now):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.ttl = timedelta(minutes=settings.TOKEN_TTL_MINUTES)
        self.token_repo = AccessTokenRepository(db)
        self.user_repo = UserRepository(db)

    # ------------------------------------------------------------------
    # 상태 계산
    # ------------------------------------------------------------------

    def _deadline(self, token: TokenInfo) -> datetime:
        deadline = ensure_aware(token.created_at) + self.ttl
        hard = ensure_aware(token.expires_at)
        if hard is not None and hard < deadline:
            return hard
        return deadline

    def is_active(self, token: TokenInfo, now: Optional[datetime] = None) -> bool:
        now = ensure_aware(now or self.clock())
        # 경계 시각(정확히 created_at + TTL)까지 포함
        return now <= self._deadline(token)

    def _with_remaining(self, token: TokenInfo, now: datetime) -> TokenInfo:
        remaining = int((self._deadline(token) - ensure_aware(now)).total_seconds())
        return token.model_copy(update={"expires_in_seconds": max(0, remaining)})

    def _new_identifier(self, now: datetime) -> str:
        return f"token_{int(now.timestamp())}_{random_string(16)}"

    # ------------------------------------------------------------------
    # 발급 / 갱신
    # ------------------------------------------------------------------

    def issue(self, user_id: int, device: DeviceInfo, name: str = "game-session") -> IssuedToken:
        """새 토큰 발급. 평문 secret 은 반환값에만 존재한다.

        사용자 행을 잠가 revoke_all 과 직렬화한다.
        """
        now = self.clock()
        try:
            if self.user_repo.lock_user(user_id) is None:
                raise NotFoundError(f"User not found: {user_id}")

            secret = random_string(self.settings.TOKEN_SECRET_LENGTH)
            expires_at = None
            if self.settings.TOKEN_ABSOLUTE_LIFETIME_HOURS:
                expires_at = now + timedelta(hours=self.settings.TOKEN_ABSOLUTE_LIFETIME_HOURS)

            token = self.token_repo.create(
                commit=False,
                user_id=user_id,
                name=name,
                secret_hash=hash_secret(secret),
                unique_identifier=self._new_identifier(now),
                device_type=device.type,
                device_info=device.raw_user_agent,
                session_id=device.session_hint,
                created_at=now,
                last_used_at=now,
                expires_at=expires_at,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Issued token {token.unique_identifier} for user {user_id} ({device.type})")
        return IssuedToken(secret=secret, token=self._with_remaining(token, now))

    def find_active_for_user(
        self, user_id: int, session_id: Optional[str] = None
    ) -> Optional[TokenInfo]:
        """가장 최근에 생성된 활성 토큰 (session_id 가 있으면 해당 기기 세션만)"""
        now = self.clock()
        candidates = self.token_repo.find_latest_for_user(user_id, now - self.ttl, session_id)
        for token in candidates:
            if self.is_active(token, now):
                return self._with_remaining(token, now)
        return None

    def _get_active(self, token_id: int, now: datetime) -> TokenInfo:
        token = self.token_repo.get_by_id(token_id)
        if token is None:
            raise NotFoundError(f"Token not found: {token_id}")
        if not self.is_active(token, now):
            raise InvalidStateError("token_expired", "Token has expired")
        return token

    def _renew(self, token_id: int, now: datetime, secret_hash: Optional[str] = None) -> None:
        """조건부 갱신. 읽은 뒤 폐기/만료된 토큰이면 InvalidStateError."""
        try:
            renewed = self.token_repo.renew(
                token_id, now, window_cutoff=now - self.ttl, secret_hash=secret_hash
            )
            if not renewed:
                self.db.rollback()
                logger.info(f"Token {token_id} was revoked or expired before renewal")
                raise InvalidStateError("token_revoked", "Token was revoked or has expired")
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def extend(self, token_id: int) -> TokenInfo:
        """활성 토큰의 rolling window 를 now 부터 다시 시작"""
        now = self.clock()
        token = self._get_active(token_id, now)
        self._renew(token_id, now)
        logger.info(f"Extended token {token_id}")
        renewed = token.model_copy(update={"created_at": now, "last_used_at": now})
        return self._with_remaining(renewed, now)

    def reissue(self, token_id: int) -> IssuedToken:
        """같은 행을 유지한 채 secret 을 교체하고 window 를 갱신

        평문 secret 은 저장하지 않으므로 재로그인 시 기존 secret 을 돌려줄 수 없다.
        """
        now = self.clock()
        token = self._get_active(token_id, now)
        secret = random_string(self.settings.TOKEN_SECRET_LENGTH)
        self._renew(token_id, now, secret_hash=hash_secret(secret))
        logger.info(f"Reissued token {token_id}")
        renewed = token.model_copy(update={"created_at": now, "last_used_at": now})
        return IssuedToken(secret=secret, token=self._with_remaining(renewed, now))

    # ------------------------------------------------------------------
    # 검증
    # ------------------------------------------------------------------

    def validate(self, secret: Optional[str]) -> Optional[int]:
        """secret 이 활성 토큰이면 user_id, 아니면 None (조회 오류도 None)"""
        if not secret:
            return None
        now = self.clock()
        try:
            token = self.token_repo.find_by_secret_hash(hash_secret(secret))
            if token is None or not self.is_active(token, now):
                return None
            self.token_repo.touch(token.id, now)
            self.db.commit()
            return token.user_id
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Token validation failed closed: {str(e)}")
            return None

    def get_token_by_secret(self, secret: str) -> Optional[TokenInfo]:
        token = self.token_repo.find_by_secret_hash(hash_secret(secret))
        if token is None or not self.is_active(token):
            return None
        return token

    # ------------------------------------------------------------------
    # 폐기 / 정리
    # ------------------------------------------------------------------

    def revoke(self, identifier: str, user_id: Optional[int] = None) -> bool:
        """identifier 로 폐기. 이미 없으면 False (오류 아님)."""
        try:
            deleted = self.token_repo.delete_by_identifier(identifier, user_id=user_id)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        if deleted:
            logger.info(f"Revoked token {identifier}")
        return deleted > 0

    def revoke_all(self, user_id: int) -> int:
        """사용자의 모든 토큰 삭제 (사용자 행 잠금 후 단일 DELETE)"""
        try:
            self.user_repo.lock_user(user_id)
            deleted = self.token_repo.delete_all_for_user(user_id)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info(f"Revoked {deleted} tokens for user {user_id}")
        return deleted

    def cleanup_expired(self, user_id: int) -> int:
        now = self.clock()
        try:
            deleted = self.token_repo.delete_expired(user_id, now - self.ttl, now)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        if deleted:
            logger.info(f"Cleaned up {deleted} expired tokens for user {user_id}")
        return deleted

    def list_active_tokens(self, user_id: int) -> List[TokenInfo]:
        now = self.clock()
        return [
            self._with_remaining(token, now)
            for token in self.token_repo.list_for_user(user_id)
            if self.is_active(token, now)
        ]
