from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from spinapi.models.access_token import AccessToken as AccessTokenModel
from spinapi.schemas.auth import TokenInfo
from spinapi.repositories.base import BaseRepository


class AccessTokenRepository(BaseRepository[AccessTokenModel, TokenInfo]):
    """액세스 토큰 리포지토리 (secret 해시로만 조회)"""

    def __init__(self, db: Session):
        super().__init__(AccessTokenModel, TokenInfo, db)

    def find_by_secret_hash(self, secret_hash: str) -> Optional[TokenInfo]:
        return self.get_by_field("secret_hash", secret_hash)

    def find_latest_for_user(
        self,
        user_id: int,
        created_after: datetime,
        session_id: Optional[str] = None,
    ) -> List[TokenInfo]:
        """rolling window 안에서 생성된 토큰을 최신순으로 조회"""
        query = self.db.query(AccessTokenModel).filter(
            AccessTokenModel.user_id == user_id,
            AccessTokenModel.created_at >= created_after,
        )
        if session_id is not None:
            query = query.filter(AccessTokenModel.session_id == session_id)
        models = query.order_by(
            AccessTokenModel.created_at.desc(), AccessTokenModel.id.desc()
        ).populate_existing().all()
        return self._to_schemas(models)

    def list_for_user(self, user_id: int) -> List[TokenInfo]:
        models = (
            self.db.query(AccessTokenModel)
            .filter(AccessTokenModel.user_id == user_id)
            .order_by(AccessTokenModel.created_at.desc(), AccessTokenModel.id.desc())
            .populate_existing()
            .all()
        )
        return self._to_schemas(models)

    def renew(
        self,
        token_id: int,
        now: datetime,
        window_cutoff: datetime,
        secret_hash: Optional[str] = None,
    ) -> bool:
        """활성 토큰의 created_at(rolling window 기준점)을 now 로 갱신. secret_hash 가 있으면 교체.

        행이 이미 삭제(폐기)되었거나 window/hard expiry 를 벗어났으면 False.
        """
        values = {
            AccessTokenModel.created_at: now,
            AccessTokenModel.last_used_at: now,
        }
        if secret_hash is not None:
            values[AccessTokenModel.secret_hash] = secret_hash
        updated = (
            self.db.query(AccessTokenModel)
            .filter(
                AccessTokenModel.id == token_id,
                AccessTokenModel.created_at >= window_cutoff,
                or_(AccessTokenModel.expires_at.is_(None), AccessTokenModel.expires_at >= now),
            )
            .update(values, synchronize_session=False)
        )
        return updated == 1

    def touch(self, token_id: int, now: datetime) -> None:
        self.db.query(AccessTokenModel).filter(AccessTokenModel.id == token_id).update(
            {AccessTokenModel.last_used_at: now}, synchronize_session=False
        )

    def delete_by_identifier(self, unique_identifier: str, user_id: Optional[int] = None) -> int:
        query = self.db.query(AccessTokenModel).filter(
            AccessTokenModel.unique_identifier == unique_identifier
        )
        if user_id is not None:
            query = query.filter(AccessTokenModel.user_id == user_id)
        return query.delete(synchronize_session=False)

    def delete_all_for_user(self, user_id: int) -> int:
        return (
            self.db.query(AccessTokenModel)
            .filter(AccessTokenModel.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def delete_expired(self, user_id: int, window_cutoff: datetime, now: datetime) -> int:
        """rolling window 또는 hard expiry 가 지난 토큰 삭제"""
        return (
            self.db.query(AccessTokenModel)
            .filter(
                AccessTokenModel.user_id == user_id,
                or_(
                    AccessTokenModel.created_at < window_cutoff,
                    AccessTokenModel.expires_at < now,
                ),
            )
            .delete(synchronize_session=False)
        )
