# gigbook/services/event_lifecycle.py
"""
Event lifecycle guards.

An accepted booking's event moves none -> started -> completed, and can be
cancelled from none or started. Whether a transition is allowed depends on
wall-clock time relative to the scheduled slot; every such rule lives in
``can_start`` and ``can_complete`` below so all callers apply the same
windows.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from ..core.config import settings
from ..core.enums import EventStatus, RequestStatus
from ..core.timezone_utils import combine_local, ensure_aware
from ..models.booking_request import BookingRequest


@dataclass(frozen=True)
class LifecycleWindows:
    """Minute offsets that shape the start and completion windows."""

    start_early_minutes: int = 15
    start_late_minutes: int = 60
    min_runtime_minutes: int = 2

    @classmethod
    def from_settings(cls) -> "LifecycleWindows":
        return cls(
            start_early_minutes=settings.event_start_early_minutes,
            start_late_minutes=settings.event_start_late_minutes,
            min_runtime_minutes=settings.event_min_runtime_minutes,
        )


@dataclass(frozen=True)
class EventWindow:
    """Snapshot of the fields the guards read, with times as aware UTC datetimes."""

    request_status: str
    event_status: str
    scheduled_start: datetime
    scheduled_end: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_request(cls, request: BookingRequest, tz_name: Optional[str] = None) -> "EventWindow":
        return cls(
            request_status=request.status,
            event_status=request.event_status,
            scheduled_start=combine_local(request.event_date, request.start_time, tz_name=tz_name),
            scheduled_end=combine_local(
                request.event_date, request.end_time, is_end_time=True, tz_name=tz_name
            ),
            started_at=ensure_aware(request.started_at) if request.started_at else None,
            completed_at=ensure_aware(request.completed_at) if request.completed_at else None,
        )


def start_window(
    window: EventWindow, windows: Optional[LifecycleWindows] = None
) -> Tuple[datetime, datetime]:
    """Inclusive (opens, closes) bounds during which the event may start."""
    windows = windows or LifecycleWindows.from_settings()
    return (
        window.scheduled_start - timedelta(minutes=windows.start_early_minutes),
        window.scheduled_start + timedelta(minutes=windows.start_late_minutes),
    )


def can_start(
    window: EventWindow, now: datetime, windows: Optional[LifecycleWindows] = None
) -> bool:
    if window.event_status != EventStatus.NONE:
        return False
    if window.request_status != RequestStatus.ACCEPTED:
        return False
    opens, closes = start_window(window, windows)
    return opens <= ensure_aware(now) <= closes


def can_complete(
    window: EventWindow, now: datetime, windows: Optional[LifecycleWindows] = None
) -> bool:
    """
    Whether the leader may mark the event completed.

    Completion is always allowed once the scheduled slot has ended, even if
    the event was never started.
    """
    windows = windows or LifecycleWindows.from_settings()
    min_runtime = timedelta(minutes=windows.min_runtime_minutes)
    now = ensure_aware(now)

    if window.event_status in (EventStatus.COMPLETED, EventStatus.CANCELLED):
        return False
    if window.request_status != RequestStatus.ACCEPTED:
        return False
    if now < window.scheduled_start:
        return False
    if window.event_status == EventStatus.STARTED and window.started_at is not None:
        if now >= window.started_at + min_runtime:
            return True
    elif now >= window.scheduled_start + min_runtime:
        return True
    return now >= window.scheduled_end


def start_denial_reason(
    window: EventWindow, now: datetime, windows: Optional[LifecycleWindows] = None
) -> str:
    """Human-readable reason ``can_start`` is false."""
    if window.event_status != EventStatus.NONE:
        return f"Event cannot be started - current event status: {window.event_status}"
    if window.request_status != RequestStatus.ACCEPTED:
        return f"Event cannot be started - request status: {window.request_status}"
    opens, closes = start_window(window, windows)
    if ensure_aware(now) < opens:
        return f"Event can only be started from {opens.isoformat()}"
    return f"The start window closed at {closes.isoformat()}"


def complete_denial_reason(window: EventWindow, now: datetime) -> str:
    """Human-readable reason ``can_complete`` is false."""
    if window.event_status in (EventStatus.COMPLETED, EventStatus.CANCELLED):
        return f"Event cannot be completed - current event status: {window.event_status}"
    if window.request_status != RequestStatus.ACCEPTED:
        return f"Event cannot be completed - request status: {window.request_status}"
    if ensure_aware(now) < window.scheduled_start:
        return "Event has not started yet"
    return "Event must run for a few minutes before it can be completed"
