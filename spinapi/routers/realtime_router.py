from fastapi import APIRouter, Depends, Query

from spinapi.deps import get_leaderboard_service
from spinapi.schemas.leaderboard import LeaderboardResponse, RealtimeStats, Timeframe
from spinapi.schemas.pagination import PaginationLimits
from spinapi.services.leaderboard_service import LeaderboardService

router = APIRouter(prefix="/realtime", tags=["realtime"])


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: int = Query(
        PaginationLimits.LEADERBOARD["default"],
        ge=PaginationLimits.LEADERBOARD["min"],
        le=PaginationLimits.LEADERBOARD["max"],
    ),
    timeframe: Timeframe = Query(Timeframe.ALL),
    leaderboard_service: LeaderboardService = Depends(get_leaderboard_service),
) -> LeaderboardResponse:
    """기간별 리더보드 (최대 1 TTL 만큼 지연될 수 있음)"""
    entries = leaderboard_service.get_leaderboard(limit=limit, timeframe=timeframe)
    return LeaderboardResponse(timeframe=timeframe, limit=limit, entries=entries)


@router.get("/stats", response_model=RealtimeStats)
async def get_realtime_stats(
    leaderboard_service: LeaderboardService = Depends(get_leaderboard_service),
) -> RealtimeStats:
    return leaderboard_service.get_realtime_stats()
