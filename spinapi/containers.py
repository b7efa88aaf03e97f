from dependency_injector import containers, providers

from spinapi.config import settings
from spinapi.providers.notifier.factory import build_event_notifier
from spinapi.services.agent_key_service import AgentKeyService
from spinapi.services.auth_service import AuthService
from spinapi.services.leaderboard_service import (
    LeaderboardCache,
    LeaderboardService,
    build_stats_cache,
)
from spinapi.services.point_service import PointService
from spinapi.services.redis_service import RedisService
from spinapi.services.report_service import ReportService
from spinapi.services.result_service import ResultService
from spinapi.services.reward_service import RewardService
from spinapi.services.token_service import TokenService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Object(settings)


class CoreModule(containers.DeclarativeContainer):
    """Shared infrastructure: Redis-backed caches and the event notifier."""

    config = providers.DependenciesContainer()

    redis_service = providers.Singleton(RedisService, settings=config.config)
    leaderboard_cache = providers.Singleton(
        LeaderboardCache.from_settings, settings=config.config, redis_service=redis_service
    )
    stats_cache = providers.Singleton(
        build_stats_cache, settings=config.config, redis_service=redis_service
    )
    event_notifier = providers.Singleton(build_event_notifier, settings=config.config)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies. The request-scoped ``db`` session is passed at call time."""

    config = providers.DependenciesContainer()
    core = providers.DependenciesContainer()

    point_service = providers.Factory(
        PointService,
        settings=config.config,
        cache=core.leaderboard_cache,
        notifier=core.event_notifier,
        stats_cache=core.stats_cache,
    )
    result_service = providers.Factory(
        ResultService,
        settings=config.config,
        cache=core.leaderboard_cache,
        notifier=core.event_notifier,
        stats_cache=core.stats_cache,
    )
    leaderboard_service = providers.Factory(
        LeaderboardService,
        settings=config.config,
        cache=core.leaderboard_cache,
        stats_cache=core.stats_cache,
    )
    reward_service = providers.Factory(
        RewardService, settings=config.config, cache=core.leaderboard_cache
    )
    token_service = providers.Factory(TokenService, settings=config.config)
    auth_service = providers.Factory(AuthService, settings=config.config)
    agent_key_service = providers.Factory(AgentKeyService, settings=config.config)
    report_service = providers.Factory(ReportService, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    config = providers.Container(ConfigModule)
    core = providers.Container(CoreModule, config=config)
    services = providers.Container(ServiceModule, config=config, core=core)
