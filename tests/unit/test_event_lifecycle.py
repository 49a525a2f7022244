"""Tests for the event start/complete guards."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from types import SimpleNamespace

from gigbook.core.enums import EventStatus, RequestStatus
from gigbook.services.event_lifecycle import (
    EventWindow,
    LifecycleWindows,
    can_complete,
    can_start,
    complete_denial_reason,
    start_denial_reason,
    start_window,
)

START = datetime(2030, 6, 16, 0, 0, tzinfo=timezone.utc)
END = START + timedelta(hours=2)
WINDOWS = LifecycleWindows()


def _window(
    event_status: EventStatus = EventStatus.NONE,
    request_status: RequestStatus = RequestStatus.ACCEPTED,
    started_at=None,
) -> EventWindow:
    return EventWindow(
        request_status=request_status.value,
        event_status=event_status.value,
        scheduled_start=START,
        scheduled_end=END,
        started_at=started_at,
    )


class TestCanStart:
    def test_window_opens_fifteen_minutes_early(self) -> None:
        assert can_start(_window(), START - timedelta(minutes=15), WINDOWS) is True
        assert can_start(_window(), START - timedelta(minutes=16), WINDOWS) is False

    def test_window_closes_an_hour_late(self) -> None:
        assert can_start(_window(), START + timedelta(minutes=60), WINDOWS) is True
        assert can_start(_window(), START + timedelta(minutes=61), WINDOWS) is False

    def test_cannot_start_twice(self) -> None:
        window = _window(EventStatus.STARTED, started_at=START)
        assert can_start(window, START, WINDOWS) is False
        assert "started" in start_denial_reason(window, START, WINDOWS)

    def test_requires_accepted_request(self) -> None:
        assert can_start(_window(request_status=RequestStatus.ACTIVE), START, WINDOWS) is False
        assert can_start(_window(request_status=RequestStatus.CANCELLED), START, WINDOWS) is False

    def test_denial_reason_mentions_window(self) -> None:
        window = _window()
        opens, closes = start_window(window, WINDOWS)
        too_early = start_denial_reason(window, opens - timedelta(minutes=1), WINDOWS)
        too_late = start_denial_reason(window, closes + timedelta(minutes=1), WINDOWS)
        assert opens.isoformat() in too_early
        assert closes.isoformat() in too_late


class TestCanComplete:
    def test_allowed_at_scheduled_end_without_start(self) -> None:
        assert can_complete(_window(), END, WINDOWS) is True

    def test_not_before_scheduled_start(self) -> None:
        window = _window(EventStatus.STARTED, started_at=START - timedelta(minutes=15))
        assert can_complete(window, START - timedelta(minutes=1), WINDOWS) is False
        reason = complete_denial_reason(window, START - timedelta(minutes=1))
        assert reason == "Event has not started yet"

    def test_started_event_needs_minimum_runtime(self) -> None:
        started = START + timedelta(minutes=5)
        window = _window(EventStatus.STARTED, started_at=started)
        assert can_complete(window, started + timedelta(minutes=1), WINDOWS) is False
        assert can_complete(window, started + timedelta(minutes=2), WINDOWS) is True

    def test_unstarted_event_completable_shortly_after_start(self) -> None:
        assert can_complete(_window(), START + timedelta(minutes=1), WINDOWS) is False
        assert can_complete(_window(), START + timedelta(minutes=2), WINDOWS) is True

    def test_terminal_event_cannot_complete(self) -> None:
        assert can_complete(_window(EventStatus.COMPLETED), END, WINDOWS) is False
        assert can_complete(_window(EventStatus.CANCELLED), END, WINDOWS) is False


def test_window_from_request_handles_midnight_end() -> None:
    request = SimpleNamespace(
        status="accepted",
        event_status="none",
        event_date=date(2030, 6, 15),
        start_time=time(22, 0),
        end_time=time(0, 0),
        started_at=None,
        completed_at=None,
    )
    window = EventWindow.from_request(request, tz_name="America/Santo_Domingo")
    assert window.scheduled_start == datetime(2030, 6, 16, 2, 0, tzinfo=timezone.utc)
    assert window.scheduled_end == datetime(2030, 6, 16, 4, 0, tzinfo=timezone.utc)
