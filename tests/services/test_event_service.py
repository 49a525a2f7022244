"""Tests for EventService start/complete transitions."""
from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from gigbook.core.enums import EventStatus, RequestStatus
from gigbook.core.exceptions import ForbiddenException, InvalidTransitionException
from gigbook.core.timezone_utils import combine_local
from gigbook.services.event_service import EventService

EVENT_DATE = date(2030, 6, 15)
START = combine_local(EVENT_DATE, time(20, 0))
END = combine_local(EVENT_DATE, time(22, 0), is_end_time=True)


@pytest.fixture
def service(unit_db, emitter) -> EventService:
    return EventService(unit_db, emitter)


@pytest.fixture
def booking(make_request, musician):
    return make_request(
        start=time(20, 0), end=time(22, 0), status=RequestStatus.ACCEPTED, musician_id=musician.id
    )


class TestStartEvent:
    def test_starts_inside_the_window(self, service, emitter, booking, musician, leader) -> None:
        started = service.start_event(booking.id, musician.id, now=START - timedelta(minutes=15))

        assert started.event_status == EventStatus.STARTED
        assert started.started_at is not None
        assert started.status == RequestStatus.ACCEPTED
        assert emitter.recipients_of("event_started") == [leader.id]

    def test_too_early(self, service, booking, musician) -> None:
        with pytest.raises(InvalidTransitionException):
            service.start_event(booking.id, musician.id, now=START - timedelta(minutes=16))

    def test_too_late(self, service, booking, musician) -> None:
        with pytest.raises(InvalidTransitionException):
            service.start_event(booking.id, musician.id, now=START + timedelta(minutes=61))

    def test_cannot_start_twice(self, service, booking, musician) -> None:
        service.start_event(booking.id, musician.id, now=START)
        with pytest.raises(InvalidTransitionException):
            service.start_event(booking.id, musician.id, now=START + timedelta(minutes=1))

    def test_only_the_booked_musician(self, service, booking, make_user, leader) -> None:
        with pytest.raises(ForbiddenException) as exc_info:
            service.start_event(booking.id, make_user().id, now=START)
        assert exc_info.value.code == "NOT_BOOKED_MUSICIAN"

        with pytest.raises(ForbiddenException):
            service.start_event(booking.id, leader.id, now=START)

    def test_unaccepted_request_cannot_start(self, service, make_request, musician) -> None:
        open_request = make_request()
        with pytest.raises(ForbiddenException):
            service.start_event(open_request.id, musician.id, now=START)


class TestCompleteEvent:
    def test_complete_at_scheduled_end_without_start(
        self, service, emitter, booking, leader, musician
    ) -> None:
        completed = service.complete_event(booking.id, leader.id, now=END)

        assert completed.status == RequestStatus.COMPLETED
        assert completed.event_status == EventStatus.COMPLETED
        assert completed.completed_at is not None
        assert emitter.recipients_of("event_completed") == [musician.id]

    def test_complete_after_minimum_runtime(self, service, booking, leader, musician) -> None:
        service.start_event(booking.id, musician.id, now=START)

        with pytest.raises(InvalidTransitionException):
            service.complete_event(booking.id, leader.id, now=START + timedelta(minutes=1))

        completed = service.complete_event(booking.id, leader.id, now=START + timedelta(minutes=2))
        assert completed.event_status == EventStatus.COMPLETED

    def test_not_before_start(self, service, booking, leader) -> None:
        with pytest.raises(InvalidTransitionException):
            service.complete_event(booking.id, leader.id, now=START - timedelta(minutes=5))

    def test_only_the_leader(self, service, booking, musician) -> None:
        with pytest.raises(ForbiddenException) as exc_info:
            service.complete_event(booking.id, musician.id, now=END)
        assert exc_info.value.code == "NOT_REQUEST_LEADER"

    def test_cannot_complete_twice(self, service, booking, leader) -> None:
        service.complete_event(booking.id, leader.id, now=END)
        with pytest.raises(InvalidTransitionException):
            service.complete_event(booking.id, leader.id, now=END + timedelta(minutes=5))


class TestEventStatus:
    def test_reports_windows_and_permissions(self, service, booking, musician, leader) -> None:
        status = service.get_event_status(booking.id, musician.id, now=START - timedelta(minutes=5))

        assert status.event_status == EventStatus.NONE
        assert status.scheduled_start == START
        assert status.scheduled_end == END
        assert status.start_window_opens == START - timedelta(minutes=15)
        assert status.start_window_closes == START + timedelta(minutes=60)
        assert status.can_start is True
        assert status.can_complete is False

        leader_view = service.get_event_status(booking.id, leader.id, now=END)
        assert leader_view.can_start is False
        assert leader_view.can_complete is True

    def test_outsiders_are_refused(self, service, booking, make_user) -> None:
        with pytest.raises(ForbiddenException):
            service.get_event_status(booking.id, make_user().id, now=START)
