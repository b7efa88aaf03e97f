from unittest.mock import Mock, patch

import pytest

from spinapi.config import Settings
from spinapi.providers.notifier.base import EventNotifier, LoggingEventNotifier
from spinapi.providers.notifier.events import PointsCreditedEvent
from spinapi.providers.notifier.factory import build_event_notifier
from spinapi.providers.notifier.sqs import SqsEventNotifier


@pytest.fixture
def event():
    return PointsCreditedEvent(
        user_id=1, username="player01", delta=25, new_total=25, lifetime_total=25, result_id=10
    )


class FailingNotifier(EventNotifier):
    def publish(self, event):
        raise TimeoutError("socket closed")


def test_event_type_name(event):
    assert event.event_type == "PointsCredited"


def test_failed_delivery_is_logged_not_raised(event):
    with patch("spinapi.providers.notifier.base.logger") as mock_logger:
        delivered = FailingNotifier().notify(event)

    assert delivered is False
    message = mock_logger.warning.call_args.args[0]
    assert "PointsCredited delivery failed" in message


def test_logging_notifier_delivers(event):
    assert LoggingEventNotifier().notify(event) is True


def test_sqs_notifier_sends_json_body(event):
    client = Mock()
    client.send_message.return_value = {"MessageId": "m-1"}
    settings = Settings(SQS_EVENTS_QUEUE_URL="https://sqs.local/queue/events")

    assert SqsEventNotifier(settings, client=client).notify(event) is True

    kwargs = client.send_message.call_args.kwargs
    assert kwargs["QueueUrl"] == "https://sqs.local/queue/events"
    assert '"delta":25' in kwargs["MessageBody"]
    assert kwargs["MessageAttributes"]["event_type"]["StringValue"] == "PointsCredited"


def test_sqs_notifier_requires_queue_url():
    with pytest.raises(ValueError):
        SqsEventNotifier(Settings(SQS_EVENTS_QUEUE_URL=None), client=Mock())


def test_factory_backends():
    assert isinstance(build_event_notifier(Settings(NOTIFIER_BACKEND="log")), LoggingEventNotifier)
    with pytest.raises(ValueError):
        build_event_notifier(Settings(NOTIFIER_BACKEND="kafka"))
