import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from spinapi.config import Settings, settings as default_settings
from spinapi.core.exceptions import (
    BaseAPIException,
    ConcurrencyConflictError,
    InsufficientBalanceError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from spinapi.models.rewards import RewardStatusEnum
from spinapi.repositories.rewards_repository import ProductRepository, RewardsRepository
from spinapi.repositories.user_repository import UserRepository
from spinapi.schemas.pagination import PageMeta
from spinapi.schemas.rewards import (
    AvailableProductsResponse,
    RewardClaimResponse,
    RewardHistoryResponse,
    RewardResponse,
)
from spinapi.services.leaderboard_service import LeaderboardCache
from spinapi.utils.timezone_utils import Clock, ensure_aware, utc_now

logger = logging.getLogger(__name__)

CLAIM_ATTEMPTS = 2


class _ClaimRaceLost(Exception):
    """조건부 UPDATE 가 경합으로 실패했지만 잔액/재고는 여전히 충분한 경우"""


class RewardService:
    """리워드 교환 원장 - 포인트 차감 + 재고 차감 + 리워드 생성을 한 트랜잭션으로"""

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        cache: Optional[LeaderboardCache] = None,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.settings = settings
        self.cache = cache
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.product_repo = ProductRepository(db)
        self.rewards_repo = RewardsRepository(db)

    def claim(self, user_id: int, product_id: int) -> RewardClaimResponse:
        """상품 교환

        사전 검사 순서: 상품 활성 -> 재고 -> 잔액. 트랜잭션 안에서 잔액/재고를
        조건부 UPDATE 로 다시 확인하며, 경합으로 실패하면 1회 재시도한다.

        Args:
            user_id: 사용자 ID
            product_id: 상품 ID

        Returns:
            RewardClaimResponse: 생성된 리워드와 남은 포인트

        Raises:
            NotFoundError: 사용자/상품 없음
            InvalidStateError: product_inactive | out_of_stock
            InsufficientBalanceError: 잔액 부족 (required/available 포함)
            ConcurrencyConflictError: 재시도 후에도 경합
        """
        for attempt in range(1, CLAIM_ATTEMPTS + 1):
            try:
                return self._claim_once(user_id, product_id)
            except _ClaimRaceLost:
                logger.warning(
                    f"Claim race lost for user {user_id}, product {product_id} (attempt {attempt})"
                )

        raise ConcurrencyConflictError(details={"product_id": product_id})

    def _precheck(self, user_id: int, product_id: int):
        product = self.product_repo.get_model(product_id, fresh=True)
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}")

        balance = self.user_repo.get_balance(user_id)
        if balance is None:
            raise NotFoundError(f"User not found: {user_id}")

        if not product.is_active:
            raise InvalidStateError("product_inactive", "This reward is not available")
        if not product.in_stock:
            raise InvalidStateError("out_of_stock", "This reward is out of stock")
        if balance.current_points < product.point_cost:
            raise InsufficientBalanceError(
                required=product.point_cost, available=balance.current_points
            )
        return product

    def _claim_once(self, user_id: int, product_id: int) -> RewardClaimResponse:
        product = self._precheck(user_id, product_id)
        cost = product.point_cost
        unlimited = product.is_unlimited
        now = self.clock()

        try:
            if not self.user_repo.debit_points(user_id, cost):
                self.db.rollback()
                self._precheck(user_id, product_id)
                raise _ClaimRaceLost()

            if not unlimited and not self.product_repo.decrement_stock(product_id):
                self.db.rollback()
                self._precheck(user_id, product_id)
                raise _ClaimRaceLost()

            reward = self.rewards_repo.create(
                commit=False,
                user_id=user_id,
                product_id=product_id,
                points_spent=cost,
                status=RewardStatusEnum.CLAIMED,
                claimed_at=now,
                expires_at=now + timedelta(days=self.settings.REWARD_EXPIRY_DAYS),
            )
            self.db.commit()
        except OperationalError as e:
            self.db.rollback()
            logger.warning(f"Claim for user {user_id} hit a lock/timeout: {str(e)}")
            raise _ClaimRaceLost() from e
        except (_ClaimRaceLost, BaseAPIException):
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to claim product {product_id} for user {user_id}: {str(e)}")
            raise

        if self.cache is not None:
            self.cache.invalidate()

        balance = self.user_repo.get_balance(user_id)
        logger.info(
            f"User {user_id} claimed product {product_id} for {cost} points "
            f"(reward {reward.id}, remaining {balance.current_points})"
        )
        return RewardClaimResponse(
            message="Reward claimed successfully",
            reward=self.rewards_repo.get_response(reward.id),
            remaining_points=balance.current_points,
        )

    def use(self, reward_id: int, user_id: int) -> RewardResponse:
        """claimed 리워드를 used 로 전환. 만료된 리워드는 expired 로 전환 후 실패."""
        reward = self.rewards_repo.get_for_user(reward_id, user_id)
        if reward is None:
            raise NotFoundError(f"Reward not found: {reward_id}")

        if reward.status != RewardStatusEnum.CLAIMED:
            raise InvalidStateError(
                "reward_not_claimable",
                f"Reward is already {reward.status.value}",
                details={"status": reward.status.value},
            )

        now = self.clock()
        try:
            if ensure_aware(reward.expires_at) <= now:
                self.rewards_repo.transition_status(reward_id, RewardStatusEnum.EXPIRED)
                self.db.commit()
                logger.info(f"Reward {reward_id} expired on use attempt")
                raise InvalidStateError("reward_expired", "This reward has expired")

            if not self.rewards_repo.transition_status(
                reward_id, RewardStatusEnum.USED, used_at=now
            ):
                self.db.rollback()
                raise InvalidStateError("reward_not_claimable", "Reward is no longer claimable")
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(f"Reward {reward_id} used by user {user_id}")
        return self.rewards_repo.get_response(reward_id)

    def list_available_products(self, user_id: Optional[int] = None) -> AvailableProductsResponse:
        products = self.product_repo.list_available()
        user_points = None
        if user_id is not None:
            balance = self.user_repo.get_balance(user_id)
            user_points = balance.current_points if balance else None
        return AvailableProductsResponse(products=products, user_points=user_points)

    def get_reward_history(
        self,
        user_id: int,
        status: Optional[str] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> RewardHistoryResponse:
        """교환 내역 (status: claimed | used | expired)"""
        status_enum = None
        if status:
            try:
                status_enum = RewardStatusEnum(status)
            except ValueError:
                raise ValidationError(
                    f"Invalid status: {status}",
                    details={"allowed": [s.value for s in RewardStatusEnum]},
                )

        page = max(1, page)
        per_page = max(1, min(per_page, self.settings.REWARD_HISTORY_MAX_PER_PAGE))
        rewards, total = self.rewards_repo.get_history(
            user_id, status_enum, offset=(page - 1) * per_page, limit=per_page
        )
        return RewardHistoryResponse(
            rewards=rewards, meta=PageMeta.build(page=page, per_page=per_page, total=total)
        )

    def get_recent_rewards(self, user_id: int, limit: int = 5):
        return self.rewards_repo.get_recent(user_id, max(1, min(limit, 20)))
