from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from spinapi.models.rewards import (
    Product as ProductModel,
    Reward as RewardModel,
    RewardStatusEnum,
    UNLIMITED_STOCK,
)
from spinapi.schemas.rewards import ProductResponse, RewardResponse
from spinapi.repositories.base import BaseRepository


class ProductRepository(BaseRepository[ProductModel, ProductResponse]):
    """교환 상품 리포지토리 - 재고 차감의 유일한 경로"""

    def __init__(self, db: Session):
        super().__init__(ProductModel, ProductResponse, db)

    def list_available(self) -> List[ProductResponse]:
        """활성 + 재고 있는 상품 (가격 오름차순)"""
        models = (
            self.db.query(ProductModel)
            .filter(
                ProductModel.is_active.is_(True),
                or_(ProductModel.stock == UNLIMITED_STOCK, ProductModel.stock > 0),
            )
            .order_by(ProductModel.point_cost.asc(), ProductModel.id.asc())
            .populate_existing()
            .all()
        )
        return self._to_schemas(models)

    def decrement_stock(self, product_id: int) -> bool:
        """재고 1 감소 (stock > 0 일 때만). 무제한(-1) 상품은 호출하지 않는다.

        커밋은 호출자 책임.
        """
        updated = (
            self.db.query(ProductModel)
            .filter(ProductModel.id == product_id, ProductModel.stock > 0)
            .update({ProductModel.stock: ProductModel.stock - 1}, synchronize_session=False)
        )
        return updated == 1


class RewardsRepository(BaseRepository[RewardModel, RewardResponse]):
    """리워드(교환 내역) 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(RewardModel, RewardResponse, db)

    def _with_product(self, model: Optional[RewardModel]) -> Optional[RewardResponse]:
        if model is None:
            return None
        reward = self._to_schema(model)
        product = (
            self.db.query(ProductModel)
            .filter(ProductModel.id == model.product_id)
            .populate_existing()
            .first()
        )
        if product is not None:
            reward.product = ProductResponse.model_validate(product)
        return reward

    def get_for_user(self, reward_id: int, user_id: int) -> Optional[RewardModel]:
        return (
            self.db.query(RewardModel)
            .filter(RewardModel.id == reward_id, RewardModel.user_id == user_id)
            .populate_existing()
            .first()
        )

    def transition_status(
        self,
        reward_id: int,
        to_status: RewardStatusEnum,
        used_at: Optional[datetime] = None,
    ) -> bool:
        """claimed 상태에서만 전이 (상태는 되돌아가지 않음). 커밋은 호출자 책임."""
        values = {RewardModel.status: to_status}
        if used_at is not None:
            values[RewardModel.used_at] = used_at
        updated = (
            self.db.query(RewardModel)
            .filter(
                RewardModel.id == reward_id,
                RewardModel.status == RewardStatusEnum.CLAIMED,
            )
            .update(values, synchronize_session=False)
        )
        return updated == 1

    def get_response(self, reward_id: int) -> Optional[RewardResponse]:
        return self._with_product(self.get_model(reward_id, fresh=True))

    def get_history(
        self,
        user_id: int,
        status: Optional[RewardStatusEnum],
        offset: int,
        limit: int,
    ) -> Tuple[List[RewardResponse], int]:
        query = self.db.query(RewardModel).filter(RewardModel.user_id == user_id)
        if status is not None:
            query = query.filter(RewardModel.status == status)
        total = query.count()
        models = (
            query.order_by(RewardModel.claimed_at.desc(), RewardModel.id.desc())
            .offset(offset)
            .limit(limit)
            .populate_existing()
            .all()
        )
        return [self._with_product(m) for m in models], total

    def get_recent(self, user_id: int, limit: int) -> List[RewardResponse]:
        models = (
            self.db.query(RewardModel)
            .filter(RewardModel.user_id == user_id)
            .order_by(RewardModel.claimed_at.desc(), RewardModel.id.desc())
            .limit(limit)
            .populate_existing()
            .all()
        )
        return [self._with_product(m) for m in models]
