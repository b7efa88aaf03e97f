from datetime import datetime, timezone

from spinapi.deps import get_auth_service, get_result_service
from spinapi.models.game_result import ResultStatusEnum
from spinapi.schemas.pagination import PageMeta
from spinapi.schemas.results import (
    GameResultListResponse,
    GameResultResponse,
    SpinResultResponse,
)


def _result(**overrides):
    data = dict(
        id=10,
        user_id=7,
        game_type="spin_wheel",
        game_code="ABCD1234",
        result_label="ពិន្ទុ ២៥",
        status=ResultStatusEnum.COMPLETED,
        points_calculated=True,
        created_at=datetime(2025, 1, 15, 3, 0, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return GameResultResponse(**data)


class TestSpinRoutes:
    """스핀 라우터 테스트"""

    def test_submit_result_uses_resolved_user(self, client, override_service):
        # Given
        auth_service = override_service(get_auth_service)
        result_service = override_service(get_result_service)
        auth_service.resolve_user_id.return_value = 7
        result_service.record_spin.return_value = SpinResultResponse(
            result=_result(), points_earned=25, current_points=25, lifetime_points=25
        )

        # When
        response = client.post(
            "/api/v1/spin/result",
            json={"result_label": "ពិន្ទុ ២៥", "user_id": 99},
            headers={
                "Authorization": "Bearer abc",
                "X-Forwarded-For": "203.0.113.5, 10.0.0.1",
                "User-Agent": "Mozilla/5.0 (iPhone)",
            },
        )

        # Then
        assert response.status_code == 200
        assert response.json()["points_earned"] == 25
        auth_service.resolve_user_id.assert_called_once_with("abc", 99)
        kwargs = result_service.record_spin.call_args.kwargs
        assert kwargs["user_id"] == 7
        assert kwargs["ip_address"] == "203.0.113.5"
        assert kwargs["user_agent"] == "Mozilla/5.0 (iPhone)"

    def test_submit_result_as_guest(self, client, override_service):
        auth_service = override_service(get_auth_service)
        result_service = override_service(get_result_service)
        auth_service.resolve_user_id.return_value = None
        result_service.record_spin.return_value = SpinResultResponse(
            result=_result(user_id=None, points_calculated=False)
        )

        response = client.post("/api/v1/spin/result", json={"result_label": "Try again"})

        assert response.status_code == 200
        auth_service.resolve_user_id.assert_called_once_with(None, None)
        assert result_service.record_spin.call_args.kwargs["user_id"] is None

    def test_submit_result_rejects_empty_label(self, client, override_service):
        override_service(get_auth_service)
        override_service(get_result_service)

        response = client.post("/api/v1/spin/result", json={"result_label": ""})

        assert response.status_code == 422

    def test_list_results_for_member(self, client, authenticated, override_service):
        result_service = override_service(get_result_service)
        result_service.list_results.return_value = GameResultListResponse(
            results=[_result()], meta=PageMeta.build(page=1, per_page=20, total=1)
        )

        response = client.get("/api/v1/spin/results?page=1&per_page=20")

        assert response.status_code == 200
        assert response.json()["meta"]["total"] == 1
        args, kwargs = result_service.list_results.call_args
        assert args[0] == 1
        assert kwargs == {"page": 1, "per_page": 20}
