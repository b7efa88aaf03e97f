# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .user_repository import UserRepository
from .result_repository import ResultRepository
from .token_repository import AccessTokenRepository
from .agent_key_repository import AgentKeyRepository
from .rewards_repository import ProductRepository, RewardsRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ResultRepository",
    "AccessTokenRepository",
    "AgentKeyRepository",
    "ProductRepository",
    "RewardsRepository",
]
