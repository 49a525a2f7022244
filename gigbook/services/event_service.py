# gigbook/services/event_service.py
"""
Event Service

Start and completion of an accepted booking's event, gated by the guards
in ``event_lifecycle``. The assigned musician starts the event; the leader
completes it, which also makes the request terminal.
"""

from datetime import datetime
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import ForbiddenException, InvalidTransitionException, NotFoundException
from ..core.timezone_utils import ensure_aware, utc_now
from ..events.booking_events import EventCompleted, EventStarted
from ..models.booking_request import BookingRequest
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..notifications.emitter import NotificationEmitter
from ..repositories import RepositoryFactory
from ..schemas.event_status import EventStatusResponse
from .base import BaseService
from .event_lifecycle import (
    EventWindow,
    can_complete,
    can_start,
    complete_denial_reason,
    start_denial_reason,
    start_window,
)

logger = logging.getLogger(__name__)


class EventService(BaseService):
    def __init__(self, db: Session, notifier: Optional[NotificationEmitter] = None):
        super().__init__(db, notifier)
        self.logger = logging.getLogger(__name__)
        self.request_repository = RepositoryFactory.create_booking_request_repository(db)
        self.offer_repository = RepositoryFactory.create_offer_repository(db)

    @BaseService.measure_operation("start_event")
    def start_event(
        self, request_id: str, musician_id: str, now: Optional[datetime] = None
    ) -> BookingRequest:
        """
        Mark the event as started.

        Args:
            request_id: Booking request
            musician_id: Caller; must hold the selected offer or the direct acceptance
            now: Evaluation time (defaults to the current time)

        Raises:
            ForbiddenException: Caller is not the booked musician
            InvalidTransitionException: Outside the start window or already started
        """
        now = ensure_aware(now) if now else utc_now()
        request = self._get_request(request_id)
        if not self._is_booked_musician(request, musician_id):
            raise ForbiddenException(
                "Only the booked musician can start this event",
                code="NOT_BOOKED_MUSICIAN",
                details={"request_id": request.id},
            )

        with self.transaction():
            request = self._lock_request(request.id)
            window = EventWindow.from_request(request)
            if not can_start(window, now):
                raise InvalidTransitionException(
                    start_denial_reason(window, now),
                    details={"request_id": request.id, "event_status": request.event_status},
                )
            if not self.request_repository.start_if_pending(request.id, now):
                raise InvalidTransitionException(
                    "Event was already started", details={"request_id": request.id}
                )

        self.logger.info(f"Event for request {request.id} started by {musician_id}")
        prometheus_metrics.inc_booking_transition("event_started")
        self._publish_after_commit(
            EventStarted(
                request_id=request.id,
                leader_id=request.leader_id,
                musician_id=musician_id,
                started_at=now,
            )
        )
        return request

    @BaseService.measure_operation("complete_event")
    def complete_event(
        self, request_id: str, leader_id: str, now: Optional[datetime] = None
    ) -> BookingRequest:
        """
        Mark the event, and with it the request, as completed.

        Raises:
            ForbiddenException: Caller is not the request's leader
            InvalidTransitionException: Completion not yet allowed or already terminal
        """
        now = ensure_aware(now) if now else utc_now()
        request = self._get_request(request_id)
        if request.leader_id != leader_id:
            raise ForbiddenException(
                "Only the request's leader can complete this event",
                code="NOT_REQUEST_LEADER",
                details={"request_id": request.id},
            )

        with self.transaction():
            request = self._lock_request(request.id)
            window = EventWindow.from_request(request)
            if not can_complete(window, now):
                raise InvalidTransitionException(
                    complete_denial_reason(window, now),
                    details={"request_id": request.id, "event_status": request.event_status},
                )
            if not self.request_repository.complete_if_open(request.id, now):
                raise InvalidTransitionException(
                    "Event was already completed", details={"request_id": request.id}
                )

        self.logger.info(f"Event for request {request.id} completed by leader {leader_id}")
        prometheus_metrics.inc_booking_transition("event_completed")
        if request.musician_id:
            self._publish_after_commit(
                EventCompleted(
                    request_id=request.id,
                    leader_id=request.leader_id,
                    musician_id=request.musician_id,
                    completed_at=now,
                )
            )
        return request

    @BaseService.measure_operation("get_event_status")
    def get_event_status(
        self, request_id: str, user_id: str, now: Optional[datetime] = None
    ) -> EventStatusResponse:
        """Current lifecycle state plus what the caller may do next."""
        now = ensure_aware(now) if now else utc_now()
        request = self._get_request(request_id)
        if request.leader_id != user_id and not request.is_assigned_to(user_id):
            raise ForbiddenException(
                "You are not a participant of this event",
                code="NOT_PARTICIPANT",
                details={"request_id": request.id},
            )

        window = EventWindow.from_request(request)
        opens, closes = start_window(window)
        return EventStatusResponse(
            request_id=request.id,
            status=request.status,
            event_status=request.event_status,
            scheduled_start=window.scheduled_start,
            scheduled_end=window.scheduled_end,
            start_window_opens=opens,
            start_window_closes=closes,
            can_start=can_start(window, now),
            can_complete=can_complete(window, now),
            started_at=window.started_at,
            completed_at=window.completed_at,
            checked_at=now,
        )

    def _is_booked_musician(self, request: BookingRequest, musician_id: str) -> bool:
        if request.is_assigned_to(musician_id):
            return True
        selected = self.offer_repository.get_selected_for_request(request.id)
        return selected is not None and selected.musician_id == musician_id

    def _get_request(self, request_id: str) -> BookingRequest:
        request = self.request_repository.get_by_id(request_id)
        if request is None:
            raise NotFoundException(
                "Request not found", code="REQUEST_NOT_FOUND", details={"request_id": request_id}
            )
        return request

    def _lock_request(self, request_id: str) -> BookingRequest:
        request = self.request_repository.get_for_update(request_id)
        if request is None:
            raise NotFoundException(
                "Request not found", code="REQUEST_NOT_FOUND", details={"request_id": request_id}
            )
        return request
