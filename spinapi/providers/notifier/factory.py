from spinapi.config import Settings
from spinapi.providers.notifier.base import EventNotifier, LoggingEventNotifier


def build_event_notifier(settings: Settings) -> EventNotifier:
    """NOTIFIER_BACKEND 설정에 맞는 notifier 생성 (log | sqs)"""
    backend = (settings.NOTIFIER_BACKEND or "log").lower()
    if backend == "sqs":
        from spinapi.providers.notifier.sqs import SqsEventNotifier

        return SqsEventNotifier(settings)
    if backend != "log":
        raise ValueError(f"Unknown NOTIFIER_BACKEND: {settings.NOTIFIER_BACKEND}")
    return LoggingEventNotifier()
