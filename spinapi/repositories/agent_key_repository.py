from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from spinapi.models.agent_key import AgentKey as AgentKeyModel
from spinapi.schemas.auth import AgentKeyInfo
from spinapi.repositories.base import BaseRepository


class AgentKeyRepository(BaseRepository[AgentKeyModel, AgentKeyInfo]):
    """에이전트 키 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(AgentKeyModel, AgentKeyInfo, db)

    def get_by_value(self, key_value: str):
        return self.get_by_field("key_value", key_value)

    def exists_value(self, key_value: str) -> bool:
        return (
            self.db.query(AgentKeyModel.id)
            .filter(AgentKeyModel.key_value == key_value)
            .first()
            is not None
        )

    def deactivate(self, key_value: str) -> bool:
        updated = (
            self.db.query(AgentKeyModel)
            .filter(AgentKeyModel.key_value == key_value)
            .update({AgentKeyModel.is_active: False}, synchronize_session=False)
        )
        self.db.commit()
        return updated == 1

    def list_active(self, now: datetime) -> List[AgentKeyInfo]:
        models = (
            self.db.query(AgentKeyModel)
            .filter(AgentKeyModel.is_active.is_(True), AgentKeyModel.expires_at > now)
            .order_by(AgentKeyModel.created_at.desc(), AgentKeyModel.id.desc())
            .populate_existing()
            .all()
        )
        return self._to_schemas(models)
