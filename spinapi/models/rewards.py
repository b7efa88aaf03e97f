import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from spinapi.models.base import BaseModel

UNLIMITED_STOCK = -1


class RewardStatusEnum(str, enum.Enum):
    CLAIMED = "claimed"
    USED = "used"
    EXPIRED = "expired"


class Product(BaseModel):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= -1", name="ck_products_stock"),
        CheckConstraint("point_cost >= 0", name="ck_products_point_cost"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    point_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    stock: Mapped[int] = mapped_column(Integer, default=UNLIMITED_STOCK, nullable=False)  # -1 = unlimited
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def is_unlimited(self) -> bool:
        return self.stock == UNLIMITED_STOCK

    @property
    def in_stock(self) -> bool:
        return self.stock == UNLIMITED_STOCK or self.stock > 0


class Reward(BaseModel):
    """교환된 리워드. points_spent 는 교환 시점의 가격 스냅샷."""

    __tablename__ = "rewards"
    __table_args__ = (Index("idx_rewards_user_status", "user_id", "status"),)

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), ForeignKey("users.id"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), ForeignKey("products.id"), nullable=False
    )
    points_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[RewardStatusEnum] = mapped_column(
        Enum(RewardStatusEnum, values_callable=lambda e: [m.value for m in e]),
        default=RewardStatusEnum.CLAIMED,
        nullable=False,
    )
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
