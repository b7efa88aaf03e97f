from pydantic import BaseModel
from typing import Optional


class PageMeta(BaseModel):
    """페이지 기반 페이지네이션 메타 정보"""

    current_page: int
    per_page: int
    total: int
    last_page: int
    has_next: Optional[bool] = None

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "PageMeta":
        last_page = max(1, -(-total // per_page))
        return cls(
            current_page=page,
            per_page=per_page,
            total=total,
            last_page=last_page,
            has_next=page < last_page,
        )


# 엔드포인트별 페이지네이션 제한
class PaginationLimits:
    RESULTS_HISTORY = {"min": 1, "max": 50, "default": 20}
    REWARDS_HISTORY = {"min": 1, "max": 50, "default": 10}
    RECENT_REWARDS = {"min": 1, "max": 20, "default": 5}
    LEADERBOARD = {"min": 1, "max": 50, "default": 10}
    REPORT_ROWS = {"min": 1, "max": 500, "default": 100}
