from fastapi import Depends, Request
from sqlalchemy.orm import Session

from spinapi.database.session import get_db

# Services
from spinapi.services.agent_key_service import AgentKeyService
from spinapi.services.auth_service import AuthService
from spinapi.services.leaderboard_service import LeaderboardService
from spinapi.services.point_service import PointService
from spinapi.services.report_service import ReportService
from spinapi.services.result_service import ResultService
from spinapi.services.reward_service import RewardService
from spinapi.services.token_service import TokenService


def _services(request: Request):
    return request.app.container.services


def get_point_service(request: Request, db: Session = Depends(get_db)) -> PointService:
    return _services(request).point_service(db=db)


def get_result_service(request: Request, db: Session = Depends(get_db)) -> ResultService:
    return _services(request).result_service(db=db)


def get_leaderboard_service(request: Request, db: Session = Depends(get_db)) -> LeaderboardService:
    return _services(request).leaderboard_service(db=db)


def get_reward_service(request: Request, db: Session = Depends(get_db)) -> RewardService:
    return _services(request).reward_service(db=db)


def get_token_service(request: Request, db: Session = Depends(get_db)) -> TokenService:
    return _services(request).token_service(db=db)


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthService:
    return _services(request).auth_service(db=db)


def get_agent_key_service(request: Request, db: Session = Depends(get_db)) -> AgentKeyService:
    return _services(request).agent_key_service(db=db)


def get_report_service(request: Request, db: Session = Depends(get_db)) -> ReportService:
    return _services(request).report_service(db=db)
