from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="spinapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Spin Wheel API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["*"]

    # Database
    DATABASE_URL: str = "sqlite:///./spinwheel.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_BUSY_TIMEOUT_SECONDS: int = 30

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    # Timezone (일/주/월 리더보드 경계 계산용)
    TIMEZONE: str = "Asia/Phnom_Penh"

    # Access tokens
    TOKEN_TTL_MINUTES: int = 60  # rolling window
    TOKEN_SECRET_LENGTH: int = 40
    TOKEN_ABSOLUTE_LIFETIME_HOURS: Optional[int] = None  # hard ceiling (None = 없음)
    SESSION_HEADER_NAME: str = "X-Session-ID"

    # Agent keys
    AGENT_KEY_PREFIX: str = "AK_"
    AGENT_KEY_VALID_HOURS: int = 24

    # Points
    POINTS_MARKER_WORD: str = "ពិន្ទុ"

    # Rewards
    REWARD_EXPIRY_DAYS: int = 30
    REWARD_HISTORY_MAX_PER_PAGE: int = 50

    # Redis (리더보드/통계 캐시, 워커 간 공유)
    REDIS_ENABLED: bool = True
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # Leaderboard / realtime
    LEADERBOARD_CACHE_TTL_SECONDS: int = 60
    LEADERBOARD_DEFAULT_LIMIT: int = 10
    LEADERBOARD_MAX_LIMIT: int = 50
    STATS_CACHE_TTL_SECONDS: int = 30

    # Event notifier: "log" | "sqs"
    NOTIFIER_BACKEND: str = "log"
    SQS_EVENTS_QUEUE_URL: Optional[str] = None

    # AWS
    AWS_REGION: str = "ap-southeast-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    SQS_ENDPOINT_URL: Optional[str] = None

    # Game front-end login link
    FRONTEND_BASE_URL: str = "http://localhost:3000/login"
    DEFAULT_CURRENCY: str = "USD"
    DEFAULT_LANGUAGE: str = "km"


settings = Settings()
