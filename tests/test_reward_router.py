from datetime import datetime, timezone

from spinapi.core.exceptions import InsufficientBalanceError, InvalidStateError
from spinapi.core.auth_middleware import get_current_user_optional
from spinapi.deps import get_auth_service, get_reward_service
from spinapi.models.rewards import RewardStatusEnum
from spinapi.schemas.pagination import PageMeta
from spinapi.schemas.rewards import (
    AvailableProductsResponse,
    ProductResponse,
    RewardClaimResponse,
    RewardHistoryResponse,
    RewardResponse,
)

NOW = datetime(2025, 1, 15, 3, 0, tzinfo=timezone.utc)


def _product():
    return ProductResponse(
        id=3, name="Coffee", code="COFFEE", point_cost=30, stock=5, is_active=True
    )


def _reward(status=RewardStatusEnum.CLAIMED):
    return RewardResponse(
        id=11,
        user_id=1,
        product_id=3,
        points_spent=30,
        status=status,
        claimed_at=NOW,
        expires_at=NOW,
        product=_product(),
    )


class TestRewardRoutes:
    """리워드 라우터 테스트"""

    def test_available_products_as_guest(self, app, client, override_service):
        # Given
        override_service(get_auth_service)
        app.dependency_overrides[get_current_user_optional] = lambda: None
        reward_service = override_service(get_reward_service)
        reward_service.list_available_products.return_value = AvailableProductsResponse(
            products=[_product()]
        )

        # When
        response = client.get("/api/v1/rewards/available")

        # Then
        assert response.status_code == 200
        assert response.json()["products"][0]["code"] == "COFFEE"
        reward_service.list_available_products.assert_called_once_with(None)

    def test_claim(self, client, authenticated, override_service):
        reward_service = override_service(get_reward_service)
        reward_service.claim.return_value = RewardClaimResponse(
            message="Reward claimed successfully", reward=_reward(), remaining_points=70
        )

        response = client.post("/api/v1/rewards/claim", json={"product_id": 3})

        assert response.status_code == 200
        assert response.json()["remaining_points"] == 70
        reward_service.claim.assert_called_once_with(1, 3)

    def test_claim_insufficient_balance(self, client, authenticated, override_service):
        reward_service = override_service(get_reward_service)
        reward_service.claim.side_effect = InsufficientBalanceError(required=30, available=10)

        response = client.post("/api/v1/rewards/claim", json={"product_id": 3})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "BALANCE_001"
        assert error["details"] == {"required": 30, "available": 10}

    def test_claim_out_of_stock(self, client, authenticated, override_service):
        reward_service = override_service(get_reward_service)
        reward_service.claim.side_effect = InvalidStateError("out_of_stock")

        response = client.post("/api/v1/rewards/claim", json={"product_id": 3})

        assert response.status_code == 409
        assert response.json()["error"]["details"]["reason"] == "out_of_stock"

    def test_claim_requires_authentication(self, client, override_service):
        auth_service = override_service(get_auth_service)
        override_service(get_reward_service)

        response = client.post("/api/v1/rewards/claim", json={"product_id": 3})

        assert response.status_code == 401
        auth_service.get_current_user.assert_not_called()

    def test_use(self, client, authenticated, override_service):
        reward_service = override_service(get_reward_service)
        reward_service.use.return_value = _reward(RewardStatusEnum.USED)

        response = client.post("/api/v1/rewards/use", json={"reward_id": 11})

        assert response.json()["status"] == "used"
        reward_service.use.assert_called_once_with(11, 1)

    def test_history(self, client, authenticated, override_service):
        reward_service = override_service(get_reward_service)
        reward_service.get_reward_history.return_value = RewardHistoryResponse(
            rewards=[_reward()], meta=PageMeta.build(page=2, per_page=1, total=3)
        )

        response = client.get("/api/v1/rewards/history?status=claimed&page=2&per_page=1")

        assert response.status_code == 200
        assert response.json()["meta"]["has_next"] is True
        reward_service.get_reward_history.assert_called_once_with(
            1, status="claimed", page=2, per_page=1
        )

    def test_recent(self, client, authenticated, override_service):
        reward_service = override_service(get_reward_service)
        reward_service.get_recent_rewards.return_value = [_reward()]

        response = client.get("/api/v1/rewards/recent?limit=3")

        assert len(response.json()) == 1
        reward_service.get_recent_rewards.assert_called_once_with(1, limit=3)
