import logging

import boto3

from spinapi.config import Settings
from spinapi.providers.notifier.base import EventNotifier
from spinapi.providers.notifier.events import DomainEvent

logger = logging.getLogger(__name__)


class SqsEventNotifier(EventNotifier):
    """이벤트를 SQS 큐로 전달 (브로드캐스트 워커가 소비)"""

    def __init__(self, settings: Settings, client=None):
        if not settings.SQS_EVENTS_QUEUE_URL:
            raise ValueError("SQS_EVENTS_QUEUE_URL is required for the sqs notifier")
        self.queue_url = settings.SQS_EVENTS_QUEUE_URL
        self.sqs = client or boto3.client(
            "sqs",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            endpoint_url=settings.SQS_ENDPOINT_URL,
        )

    def publish(self, event: DomainEvent) -> None:
        response = self.sqs.send_message(
            QueueUrl=self.queue_url,
            MessageBody=event.model_dump_json(),
            MessageAttributes={
                "event_type": {"DataType": "String", "StringValue": event.event_type}
            },
        )
        logger.debug(f"SQS event sent: {event.event_type} ({response.get('MessageId')})")
