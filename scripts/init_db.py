import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from spinapi.config import settings
from spinapi.database.connection import engine
from spinapi.database.init_db import create_tables


def init_db():
    """데이터베이스 초기화 (테이블 생성)"""
    try:
        create_tables(engine)
        print(f"Database initialized successfully: {settings.database_url}")
    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
