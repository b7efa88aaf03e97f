from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from spinapi.models.base import BaseModel


class User(BaseModel):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("current_points >= 0", name="ck_users_current_points_non_negative"),
        CheckConstraint("lifetime_points >= 0", name="ck_users_lifetime_points_non_negative"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # 잔액: 현재 사용 가능 포인트 / 누적 획득 포인트 (증가만 함)
    current_points: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    lifetime_points: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @validates("username")
    def _normalize_username(self, key, value: str) -> str:
        return value.strip().lower() if value else value

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, points={self.current_points})>"
