import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from spinapi.config import Settings, settings as default_settings
from spinapi.core.exceptions import ConflictError, NotFoundError
from spinapi.repositories.agent_key_repository import AgentKeyRepository
from spinapi.repositories.user_repository import UserRepository
from spinapi.schemas.auth import AgentKeyInfo
from spinapi.services.token_service import random_string
from spinapi.utils.timezone_utils import Clock, ensure_aware, utc_now

logger = logging.getLogger(__name__)

MAX_KEY_ATTEMPTS = 5


class AgentKeyService:
    """게임 연동 에이전트 키 발급/검증"""

    def __init__(self, db: Session, settings: Settings = default_settings, clock: Clock = utc_now):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.repo = AgentKeyRepository(db)
        self.user_repo = UserRepository(db)

    def generate_key(
        self,
        name: str,
        agent_host: Optional[str] = None,
        user_id: Optional[int] = None,
        valid_hours: Optional[int] = None,
    ) -> AgentKeyInfo:
        """AK_ 접두어 키 생성. user_id 를 주면 해당 사용자 전용 키가 된다."""
        if user_id is not None and self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError(f"User not found: {user_id}")

        for _ in range(MAX_KEY_ATTEMPTS):
            candidate = f"{self.settings.AGENT_KEY_PREFIX}{random_string(16)}"
            if not self.repo.exists_value(candidate):
                break
        else:
            raise ConflictError("Could not generate a unique agent key")

        hours = valid_hours or self.settings.AGENT_KEY_VALID_HOURS
        key = self.repo.create(
            key_value=candidate,
            name=name,
            agent_host=agent_host,
            user_id=user_id,
            is_active=True,
            expires_at=self.clock() + timedelta(hours=hours),
        )
        logger.info(f"Generated agent key for '{name}' (user_id={user_id}, valid {hours}h)")
        return key

    def validate_key(self, key_value: str) -> Optional[AgentKeyInfo]:
        """활성 + 미만료 키면 키 정보, 아니면 None"""
        if not key_value:
            return None
        key = self.repo.get_by_value(key_value)
        if key is None or not key.is_active:
            return None
        if ensure_aware(key.expires_at) <= self.clock():
            return None
        return key

    def deactivate_key(self, key_value: str) -> bool:
        deactivated = self.repo.deactivate(key_value)
        if deactivated:
            logger.info(f"Deactivated agent key {key_value[:6]}***")
        return deactivated

    def list_active_keys(self) -> List[AgentKeyInfo]:
        return self.repo.list_active(self.clock())
