"""Event publisher - fans domain events out to the notification emitter."""
from datetime import date, datetime, time
from decimal import Decimal
import logging
from typing import Any, Dict, Optional, Protocol

from ..monitoring.prometheus_metrics import prometheus_metrics
from ..notifications.emitter import LoggingNotificationEmitter, NotificationEmitter

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    event_type: Any

    def recipients(self) -> list:
        ...

    def to_dict(self) -> Dict[str, Any]:
        ...


def _json_safe(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Convert datetimes and decimals so the payload can be serialized as JSON."""
    result: Dict[str, Any] = {}
    for key, value in payload.items():
        if isinstance(value, (datetime, date, time)):
            result[key] = value.isoformat()
        elif isinstance(value, Decimal):
            result[key] = float(value)
        else:
            result[key] = value
    return result


class EventPublisher:
    """
    Delivers domain events to every recipient, fire-and-forget.

    Must only be called after the state change has been committed. A failing
    emitter is logged and counted, never raised: notification delivery can
    not undo a committed transition.
    """

    def __init__(self, emitter: Optional[NotificationEmitter] = None):
        self.emitter = emitter or LoggingNotificationEmitter()

    def publish(self, event: Event) -> None:
        event_type = getattr(event.event_type, "value", str(event.event_type))
        payload = _json_safe(event.to_dict())

        for user_id in event.recipients():
            try:
                self.emitter.notify(user_id, event_type, payload)
                prometheus_metrics.record_notification(event_type, "sent")
            except Exception as e:
                prometheus_metrics.record_notification(event_type, "failed")
                logger.error(f"Failed to notify {user_id} of {event_type}: {str(e)}")
