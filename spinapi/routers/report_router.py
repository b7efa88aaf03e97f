from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from spinapi.core.auth_middleware import verify_bearer_token
from spinapi.deps import get_report_service
from spinapi.schemas.pagination import PaginationLimits
from spinapi.schemas.reports import DailySummary, DistributionReport, UserReport, UserTotals
from spinapi.schemas.user import User as UserSchema
from spinapi.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/users", response_model=List[UserTotals])
async def get_user_totals(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(
        PaginationLimits.REPORT_ROWS["default"],
        ge=PaginationLimits.REPORT_ROWS["min"],
        le=PaginationLimits.REPORT_ROWS["max"],
    ),
    current_user: UserSchema = Depends(verify_bearer_token),
    report_service: ReportService = Depends(get_report_service),
) -> List[UserTotals]:
    """사용자별 게임 수/획득 포인트 (획득 포인트 순)"""
    return report_service.get_user_totals(start_date, end_date)[:limit]


@router.get("/users/{user_id}", response_model=UserReport)
async def get_user_report(
    user_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(verify_bearer_token),
    report_service: ReportService = Depends(get_report_service),
) -> UserReport:
    return report_service.get_user_report(user_id)


@router.get("/daily", response_model=DailySummary)
async def get_daily_summary(
    day: Optional[date] = Query(None, description="로컬 날짜 (기본: 오늘)"),
    current_user: UserSchema = Depends(verify_bearer_token),
    report_service: ReportService = Depends(get_report_service),
) -> DailySummary:
    return report_service.get_daily_summary(day)


@router.get("/distribution", response_model=DistributionReport)
async def get_distribution(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: UserSchema = Depends(verify_bearer_token),
    report_service: ReportService = Depends(get_report_service),
) -> DistributionReport:
    return report_service.get_distribution(start_date, end_date)
