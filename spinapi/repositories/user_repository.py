from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime

from spinapi.models.user import User as UserModel
from spinapi.schemas.user import User as UserSchema, UserBalance
from spinapi.repositories.base import BaseRepository


class UserRepository(BaseRepository[UserModel, UserSchema]):
    """사용자 리포지토리 - 포인트 잔액의 유일한 변경 경로"""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserSchema, db)

    def get_by_username(self, username: str) -> Optional[UserSchema]:
        """username 으로 조회 (대소문자 무시, 저장은 소문자)"""
        return self.get_by_field("username", (username or "").strip().lower())

    def lock_user(self, user_id: int) -> Optional[UserModel]:
        """사용자 행 잠금 (토큰 발급/전체 폐기 직렬화용)"""
        return self.get_model(user_id, for_update=True)

    def credit_points(self, user_id: int, delta: int) -> bool:
        """current/lifetime 포인트를 함께 증가. 커밋은 호출자 책임.

        Returns:
            bool: 대상 사용자가 존재해 갱신되었는지 여부
        """
        if delta <= 0:
            raise ValueError(f"credit delta must be positive, got {delta}")

        updated = (
            self.db.query(UserModel)
            .filter(UserModel.id == user_id)
            .update(
                {
                    UserModel.current_points: UserModel.current_points + delta,
                    UserModel.lifetime_points: UserModel.lifetime_points + delta,
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    def debit_points(self, user_id: int, amount: int) -> bool:
        """잔액이 충분할 때만 차감 (compare-and-swap). 커밋은 호출자 책임.

        Returns:
            bool: 차감 성공 여부 (잔액 부족/사용자 없음이면 False)
        """
        if amount < 0:
            raise ValueError(f"debit amount must be non-negative, got {amount}")

        updated = (
            self.db.query(UserModel)
            .filter(UserModel.id == user_id, UserModel.current_points >= amount)
            .update(
                {UserModel.current_points: UserModel.current_points - amount},
                synchronize_session=False,
            )
        )
        return updated == 1

    def get_balance(self, user_id: int) -> Optional[UserBalance]:
        row = (
            self.db.query(UserModel.id, UserModel.current_points, UserModel.lifetime_points)
            .filter(UserModel.id == user_id)
            .first()
        )
        if row is None:
            return None
        return UserBalance(
            user_id=row.id, current_points=row.current_points, lifetime_points=row.lifetime_points
        )

    def update_last_login(self, user_id: int, login_time: datetime) -> Optional[UserSchema]:
        """마지막 로그인 시간 업데이트"""
        return self.update(user_id, last_login_at=login_time)

    def count_with_more_points(self, points: int) -> int:
        return (
            self.db.query(func.count(UserModel.id))
            .filter(UserModel.current_points > points)
            .scalar()
            or 0
        )

    def get_points_totals(self) -> tuple:
        """(포인트 보유 사용자 수, 전체 사용 가능 포인트)"""
        row = (
            self.db.query(
                func.count(UserModel.id), func.coalesce(func.sum(UserModel.current_points), 0)
            )
            .filter(UserModel.current_points > 0)
            .first()
        )
        return int(row[0] or 0), int(row[1] or 0)

    def list_all_ids(self) -> List[int]:
        return [row[0] for row in self.db.query(UserModel.id).order_by(UserModel.id).all()]

    def get_users_by_ids(self, user_ids: List[int]) -> List[UserSchema]:
        if not user_ids:
            return []
        models = (
            self.db.query(UserModel)
            .filter(UserModel.id.in_(user_ids))
            .populate_existing()
            .all()
        )
        return self._to_schemas(models)

    def get_ranked(self, limit: int, activity, require_activity: bool) -> List[tuple]:
        """current_points 내림차순 순위 (동점: 마지막 활동이 빠른 순, 그다음 id).

        Args:
            activity: (user_id, last_activity) 서브쿼리
            require_activity: True 면 기간 내 결과가 있는 사용자만

        Returns:
            List[(UserModel, last_activity)]
        """
        query = self.db.query(UserModel, activity.c.last_activity).filter(
            UserModel.current_points > 0
        )
        if require_activity:
            query = query.join(activity, activity.c.user_id == UserModel.id)
        else:
            query = query.outerjoin(activity, activity.c.user_id == UserModel.id)
        return (
            query.order_by(
                UserModel.current_points.desc(),
                activity.c.last_activity.asc().nulls_last(),
                UserModel.id.asc(),
            )
            .limit(limit)
            .populate_existing()
            .all()
        )
