from sqlalchemy.engine import Engine

from spinapi.models.base import Base

# create_all 전에 모든 모델이 metadata 에 등록되어 있어야 함
from spinapi.models import access_token, agent_key, game_result, rewards, user  # noqa: F401


def create_tables(bind: Engine) -> None:
    Base.metadata.create_all(bind=bind)


def drop_tables(bind: Engine) -> None:
    Base.metadata.drop_all(bind=bind)
