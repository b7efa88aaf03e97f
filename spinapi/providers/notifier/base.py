import logging
from abc import ABC, abstractmethod

from spinapi.core.exceptions import TransportFailure
from spinapi.providers.notifier.events import DomainEvent

logger = logging.getLogger(__name__)


class EventNotifier(ABC):
    """도메인 이벤트 전달자. notify() 는 실패해도 예외를 던지지 않는다."""

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """전송 구현. 실패 시 예외를 던지면 된다."""

    def notify(self, event: DomainEvent) -> bool:
        try:
            self.publish(event)
            return True
        except Exception as e:
            failure = TransportFailure(f"{event.event_type} delivery failed: {e}")
            logger.warning(f"{failure}", exc_info=True)
            return False


class LoggingEventNotifier(EventNotifier):
    """로컬/테스트용: 이벤트를 로그로만 남김"""

    def publish(self, event: DomainEvent) -> None:
        logger.info(f"[event] {event.event_type}: {event.model_dump_json()}")
