from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from spinapi.models.game_result import GameResult as GameResultModel, ResultStatusEnum
from spinapi.schemas.results import GameResultResponse
from spinapi.repositories.base import BaseRepository


class ResultRepository(BaseRepository[GameResultModel, GameResultResponse]):
    """스핀 결과 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(GameResultModel, GameResultResponse, db)

    def mark_points_calculated(self, result_id: int) -> bool:
        """points_calculated 를 false -> true 로 전환 (조건부 UPDATE).

        동시에 여러 요청이 같은 결과를 처리해도 한 요청만 True 를 받는다.
        커밋은 호출자 책임.
        """
        updated = (
            self.db.query(GameResultModel)
            .filter(
                GameResultModel.id == result_id,
                GameResultModel.points_calculated.is_(False),
            )
            .update(
                {GameResultModel.points_calculated: True},
                synchronize_session=False,
            )
        )
        return updated == 1

    def get_unprocessed_ids(self, user_id: Optional[int] = None) -> List[int]:
        """적립 대기 중인 completed 결과 ID (user_id 가 없으면 회원 결과 전체)"""
        query = self.db.query(GameResultModel.id).filter(
            GameResultModel.status == ResultStatusEnum.COMPLETED,
            GameResultModel.points_calculated.is_(False),
        )
        if user_id is not None:
            query = query.filter(GameResultModel.user_id == user_id)
        else:
            query = query.filter(GameResultModel.user_id.isnot(None))
        return [row[0] for row in query.order_by(GameResultModel.id).all()]

    def get_credited_labels(
        self, user_id: int, since: Optional[datetime] = None
    ) -> List[str]:
        """적립 완료된 결과의 라벨 목록 (기간 포인트 합산용)"""
        query = self.db.query(GameResultModel.result_label).filter(
            GameResultModel.user_id == user_id,
            GameResultModel.points_calculated.is_(True),
        )
        if since is not None:
            query = query.filter(GameResultModel.created_at >= since)
        return [row[0] for row in query.all()]

    def list_for_user(
        self, user_id: int, offset: int, limit: int
    ) -> Tuple[List[GameResultResponse], int]:
        query = self.db.query(GameResultModel).filter(GameResultModel.user_id == user_id)
        total = query.count()
        items = (
            query.order_by(GameResultModel.created_at.desc(), GameResultModel.id.desc())
            .offset(offset)
            .limit(limit)
            .populate_existing()
            .all()
        )
        return self._to_schemas(items), total

    def list_for_guest(
        self, ip_address: str, since: datetime, offset: int, limit: int
    ) -> Tuple[List[GameResultResponse], int]:
        query = self.db.query(GameResultModel).filter(
            GameResultModel.user_id.is_(None),
            GameResultModel.ip_address == ip_address,
            GameResultModel.created_at >= since,
        )
        total = query.count()
        items = (
            query.order_by(GameResultModel.created_at.desc(), GameResultModel.id.desc())
            .offset(offset)
            .limit(limit)
            .populate_existing()
            .all()
        )
        return self._to_schemas(items), total

    def count_since(self, since: datetime) -> int:
        return (
            self.db.query(func.count(GameResultModel.id))
            .filter(
                GameResultModel.status == ResultStatusEnum.COMPLETED,
                GameResultModel.created_at >= since,
            )
            .scalar()
            or 0
        )

    def get_labels_since(self, since: datetime, credited_only: bool = True) -> List[str]:
        query = self.db.query(GameResultModel.result_label).filter(
            GameResultModel.created_at >= since
        )
        if credited_only:
            query = query.filter(GameResultModel.points_calculated.is_(True))
        return [row[0] for row in query.all()]

    def get_active_user_ids_since(self, since: datetime) -> List[int]:
        rows = (
            self.db.query(GameResultModel.user_id)
            .filter(
                GameResultModel.user_id.isnot(None),
                GameResultModel.created_at >= since,
            )
            .distinct()
            .all()
        )
        return [row[0] for row in rows]

    def last_activity_subquery(self, since: Optional[datetime] = None):
        """사용자별 마지막 결과 시각 서브쿼리 (리더보드 동점 처리/기간 필터용)"""
        query = self.db.query(
            GameResultModel.user_id.label("user_id"),
            func.max(GameResultModel.created_at).label("last_activity"),
        ).filter(GameResultModel.user_id.isnot(None))
        if since is not None:
            query = query.filter(GameResultModel.created_at >= since)
        return query.group_by(GameResultModel.user_id).subquery()

    def report_rows(
        self,
        user_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[GameResultModel]:
        """리포트 집계용 completed 결과 (회원 결과만)"""
        query = self.db.query(GameResultModel).filter(
            GameResultModel.status == ResultStatusEnum.COMPLETED,
            GameResultModel.user_id.isnot(None),
        )
        if user_id is not None:
            query = query.filter(GameResultModel.user_id == user_id)
        if start is not None:
            query = query.filter(GameResultModel.created_at >= start)
        if end is not None:
            query = query.filter(GameResultModel.created_at < end)
        return query.order_by(GameResultModel.created_at, GameResultModel.id).all()
