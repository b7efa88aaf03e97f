import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from spinapi.models.base import BaseModel


class ResultStatusEnum(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class GameResult(BaseModel):
    """스핀 결과. points_calculated 가 true 가 된 결과는 다시 적립되지 않는다."""

    __tablename__ = "results"
    __table_args__ = (
        Index("idx_results_user_created", "user_id", "created_at"),
        Index("idx_results_status_calculated", "status", "points_calculated"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("users.id"),
        nullable=True,
    )  # NULL = guest
    game_type: Mapped[str] = mapped_column(String(50), default="spin_wheel", nullable=False)
    game_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    result_label: Mapped[str] = mapped_column(Text, nullable=False)
    result_khmer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    result_color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    segment_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    spin_angle: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    status: Mapped[ResultStatusEnum] = mapped_column(
        Enum(ResultStatusEnum, values_callable=lambda e: [m.value for m in e]),
        default=ResultStatusEnum.COMPLETED,
        nullable=False,
    )
    points_calculated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self):
        return (
            f"<GameResult(id={self.id}, user_id={self.user_id}, label={self.result_label!r}, "
            f"calculated={self.points_calculated})>"
        )
