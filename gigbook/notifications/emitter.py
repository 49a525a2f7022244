"""
Outbound notification interface.

Delivery (websocket, push, email) lives outside the engine. The engine
only needs ``notify(user_id, event_type, payload)``, which is best effort:
callers invoke it after commit and never let a failure roll back state.
"""

import logging
from typing import Any, Dict, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationEmitter(Protocol):
    """Anything that can push an event to a user's real-time channel."""

    def notify(self, user_id: str, event_type: str, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotificationEmitter:
    """Default emitter: records the notification in the log and does nothing else."""

    def notify(self, user_id: str, event_type: str, payload: Dict[str, Any]) -> None:
        logger.info(f"Notify {user_id}: {event_type} {payload.get('request_id', '')}")
