import pytest
from datetime import datetime, timedelta, timezone
from typing import Optional

import fakeredis
from sqlalchemy.orm import sessionmaker

from spinapi.config import Settings
from spinapi.database.connection import build_engine
from spinapi.database.init_db import create_tables
from spinapi.models.agent_key import AgentKey
from spinapi.models.game_result import GameResult, ResultStatusEnum
from spinapi.models.rewards import Product
from spinapi.models.user import User
from spinapi.services.leaderboard_service import LeaderboardCache, build_stats_cache
from spinapi.services.redis_service import RedisService


class FakeClock:
    """테스트용 시계 - advance() 로 시간을 직접 진행"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        TIMEZONE="Asia/Phnom_Penh",
        TOKEN_TTL_MINUTES=60,
        NOTIFIER_BACKEND="log",
        REDIS_ENABLED=False,
    )


@pytest.fixture
def clock():
    # 2025-01-15 10:00 (Asia/Phnom_Penh, UTC+7)
    return FakeClock(datetime(2025, 1, 15, 3, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def redis_client():
    """테스트마다 독립된 in-memory Redis 서버"""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def redis_service(test_settings, redis_client):
    return RedisService(test_settings, client=redis_client)


@pytest.fixture
def leaderboard_cache(test_settings, clock, redis_service):
    return LeaderboardCache.from_settings(test_settings, clock, redis_service=redis_service)


@pytest.fixture
def stats_cache(test_settings, clock, redis_service):
    return build_stats_cache(test_settings, clock, redis_service=redis_service)


@pytest.fixture
def engine(tmp_path):
    """스레드 간 공유 가능한 파일 기반 SQLite"""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    def _make(username: str, points: int = 0, lifetime: Optional[int] = None, **kwargs) -> User:
        user = User(
            username=username,
            name=kwargs.pop("name", username.title()),
            current_points=points,
            lifetime_points=points if lifetime is None else lifetime,
            **kwargs,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_product(db):
    def _make(code: str, point_cost: int, stock: int = 10, is_active: bool = True) -> Product:
        product = Product(
            name=code.replace("_", " ").title(),
            code=code,
            point_cost=point_cost,
            stock=stock,
            is_active=is_active,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def make_result(db, clock):
    def _make(
        label: str,
        user_id: Optional[int] = None,
        status: ResultStatusEnum = ResultStatusEnum.COMPLETED,
        created_at: Optional[datetime] = None,
        points_calculated: bool = False,
        ip_address: Optional[str] = None,
    ) -> GameResult:
        result = GameResult(
            user_id=user_id,
            result_label=label,
            status=status,
            points_calculated=points_calculated,
            ip_address=ip_address,
            created_at=created_at or clock(),
        )
        db.add(result)
        db.commit()
        return result

    return _make


@pytest.fixture
def make_agent_key(db, clock):
    def _make(key_value: str = "AK_testkey", user_id: Optional[int] = None, hours: int = 24,
              is_active: bool = True) -> AgentKey:
        key = AgentKey(
            key_value=key_value,
            name="test-agent",
            user_id=user_id,
            is_active=is_active,
            expires_at=clock() + timedelta(hours=hours),
        )
        db.add(key)
        db.commit()
        return key

    return _make


@pytest.fixture
def app(redis_service):
    """의존성 오버라이드용 FastAPI 앱 (캐시는 fakeredis)"""
    from dependency_injector import providers

    from spinapi.main import create_app

    app = create_app()
    app.container.core.redis_service.override(providers.Object(redis_service))
    yield app
    app.container.core.redis_service.reset_override()
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def current_user():
    from spinapi.schemas.user import User as UserSchema

    return UserSchema(
        id=1, username="player01", name="Player One", current_points=100, lifetime_points=150
    )


@pytest.fixture
def authenticated(app, current_user):
    """verify_bearer_token / 선택 인증 모두 current_user 로 고정"""
    from spinapi.core.auth_middleware import get_current_user, get_current_user_optional

    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_current_user_optional] = lambda: current_user
    return current_user


@pytest.fixture
def override_service(app):
    """override_service(get_x_service) -> 해당 의존성을 대체하는 Mock"""
    from unittest.mock import Mock

    def _override(dependency):
        service = Mock()
        app.dependency_overrides[dependency] = lambda: service
        return service

    return _override
