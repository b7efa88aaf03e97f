from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from spinapi.models.base import BaseModel


class AccessToken(BaseModel):
    """Opaque bearer token. 평문 secret 은 저장하지 않고 sha256 해시만 보관."""

    __tablename__ = "access_tokens"
    __table_args__ = (
        Index("idx_access_tokens_user_created", "user_id", "created_at"),
        Index("idx_access_tokens_user_session", "user_id", "session_id"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), default="game-session", nullable=False)
    secret_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    unique_identifier: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    device_type: Mapped[str] = mapped_column(String(20), default="unknown", nullable=False)
    device_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # created_at 은 rolling window 의 기준점 (extend 시 갱신)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self):
        return f"<AccessToken(id={self.id}, user_id={self.user_id}, identifier={self.unique_identifier})>"
