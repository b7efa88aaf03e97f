import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy.orm import Session

from spinapi.database.connection import SessionLocal

logger = logging.getLogger(__name__)


def get_db() -> Iterator[Session]:
    """요청 단위 세션. 서비스가 커밋을 관리하고, 처리되지 않은 예외면 열린 트랜잭션을 되돌린다."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            logger.warning("Rolling back open transaction after request error")
            db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context(session_factory: Callable[[], Session] = SessionLocal) -> Iterator[Session]:
    """스크립트(시드/초기화)용 세션. 블록이 끝나면 커밋."""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
