from datetime import timedelta

import pytest

from spinapi.core.exceptions import NotFoundError, ValidationError
from spinapi.schemas.results import SpinResultCreate
from spinapi.services.result_service import ResultService
from spinapi.utils.points_extractor import format_points_label


@pytest.fixture
def result_service(db, test_settings, clock):
    return ResultService(db, settings=test_settings, clock=clock)


def _spin(label=None, **kwargs):
    return SpinResultCreate(result_label=label or format_points_label(25), **kwargs)


class TestRecordSpin:
    """스핀 결과 저장 테스트"""

    def test_member_spin_is_credited_immediately(self, result_service, make_user):
        user = make_user("player01", points=5)

        response = result_service.record_spin(_spin(segment_index=3), user_id=user.id,
                                              ip_address="10.0.0.1", user_agent="ua")

        assert response.points_earned == 25
        assert response.current_points == 30
        assert response.result.points_calculated is True
        assert response.result.user_id == user.id
        assert response.result.game_code

    def test_guest_spin_is_stored_without_credit(self, result_service):
        response = result_service.record_spin(_spin(), user_id=None, ip_address="10.0.0.1")

        assert response.points_earned == 0
        assert response.current_points is None
        assert response.result.user_id is None
        assert response.result.points_calculated is False

    def test_unknown_user_is_rejected(self, result_service):
        with pytest.raises(NotFoundError):
            result_service.record_spin(_spin(), user_id=404)


class TestListResults:
    def test_member_sees_own_results(self, result_service, make_user):
        user = make_user("player01")
        other = make_user("player02")
        result_service.record_spin(_spin(), user_id=user.id)
        result_service.record_spin(_spin(), user_id=other.id)

        listing = result_service.list_results(user.id)

        assert listing.meta.total == 1
        assert listing.results[0].user_id == user.id

    def test_guest_sees_last_day_from_same_address(self, result_service, clock):
        result_service.record_spin(_spin(), user_id=None, ip_address="10.0.0.1")
        clock.advance(hours=25)
        result_service.record_spin(_spin(), user_id=None, ip_address="10.0.0.1")
        result_service.record_spin(_spin(), user_id=None, ip_address="10.0.0.2")

        listing = result_service.list_results(None, ip_address="10.0.0.1")

        assert listing.meta.total == 1

    def test_guest_without_address_is_rejected(self, result_service):
        with pytest.raises(ValidationError):
            result_service.list_results(None)
