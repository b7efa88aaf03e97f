"""
기본 데이터 시드 스크립트
교환 상품, 테스트 회원, 에이전트 키를 초기 데이터로 설정
"""

import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from spinapi.database.session import get_db_context
from spinapi.models.rewards import UNLIMITED_STOCK, Product
from spinapi.models.user import User
from spinapi.services.agent_key_service import AgentKeyService


def seed_products_data():
    """기본 교환 상품 시드"""

    default_products = [
        {
            "code": "COFFEE_VOUCHER",
            "name": "កាហ្វេ Voucher",
            "point_cost": 50,
            "stock": 100,
            "icon": "☕",
        },
        {
            "code": "MOBILE_TOPUP_1USD",
            "name": "Mobile Top-up $1",
            "point_cost": 100,
            "stock": UNLIMITED_STOCK,
            "icon": "📱",
        },
        {
            "code": "T_SHIRT",
            "name": "អាវយឺត",
            "point_cost": 500,
            "stock": 20,
            "icon": "👕",
        },
        {
            "code": "SMART_WATCH",
            "name": "Smart Watch",
            "point_cost": 5000,
            "stock": 1,
            "icon": "⌚",
        },
    ]

    with get_db_context() as db:
        created = 0
        for data in default_products:
            if db.query(Product).filter(Product.code == data["code"]).first():
                continue
            db.add(Product(is_active=True, **data))
            created += 1

    print(f"✅ 상품 시드 데이터 생성 완료: {created}개 (전체 {len(default_products)}개)")


def seed_users_data():
    """테스트 회원 시드"""

    default_users = [
        ("player01", "Player One"),
        ("player02", "Player Two"),
        ("player03", "Player Three"),
    ]

    with get_db_context() as db:
        created = 0
        for username, name in default_users:
            if db.query(User).filter(User.username == username).first():
                continue
            db.add(User(username=username, name=name, current_points=0, lifetime_points=0))
            created += 1

    print(f"✅ 회원 시드 데이터 생성 완료: {created}개")


def seed_agent_keys():
    """공용 에이전트 키 1개 발급"""
    with get_db_context() as db:
        key = AgentKeyService(db).generate_key(name="seed-agent", agent_host="localhost")

    print(f"🔑 에이전트 키 발급: {key.key_value} (만료 {key.expires_at.isoformat()})")


if __name__ == "__main__":
    seed_products_data()
    seed_users_data()
    seed_agent_keys()
