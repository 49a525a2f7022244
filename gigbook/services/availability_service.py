# gigbook/services/availability_service.py
"""
Availability Service for the booking engine.

Decides whether a musician can be committed to a time slot. Only committed
bookings count: busy availability blocks plus accepted/completed requests
assigned to the musician. Pending offers never block anyone.

Two windows conflict when they are closer than the travel buffer:
existing [s1, e1) and candidate [s2, e2) conflict iff
``s2 < e1 + B and s1 < e2 + B``.
"""

from datetime import date, datetime, time
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityBlock
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..notifications.emitter import NotificationEmitter
from ..repositories import RepositoryFactory
from ..schemas.availability import AvailabilityCheckResult, CommittedSlot
from ..utils.time_utils import (
    DateLike,
    TimeLike,
    parse_calendar_date,
    time_to_minutes,
    validate_time_range,
)
from .base import BaseService

logger = logging.getLogger(__name__)

AVAILABILITY_ERROR_REASON = "Error checking availability"


def windows_conflict(
    existing: Tuple[int, int], candidate: Tuple[int, int], buffer_minutes: int
) -> bool:
    """
    Whether two minute-of-day windows are too close together.

    Args:
        existing: (start, end) of the committed booking
        candidate: (start, end) of the slot being evaluated
        buffer_minutes: Required idle time between the two
    """
    existing_start, existing_end = existing
    candidate_start, candidate_end = candidate
    return (
        candidate_start < existing_end + buffer_minutes
        and existing_start < candidate_end + buffer_minutes
    )


def _slot_minutes(start: time, end: time) -> Tuple[int, int]:
    return time_to_minutes(start), time_to_minutes(end, is_end_time=True)


class AvailabilityService(BaseService):
    """Availability checks and calendar blocks for musicians."""

    def __init__(self, db: Session, notifier: Optional[NotificationEmitter] = None):
        super().__init__(db, notifier)
        self.logger = logging.getLogger(__name__)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.request_repository = RepositoryFactory.create_booking_request_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("check_availability")
    def check_availability(
        self,
        musician_id: str,
        event_date: DateLike,
        start_time: TimeLike,
        end_time: TimeLike,
        exclude_request_id: Optional[str] = None,
    ) -> AvailabilityCheckResult:
        """
        Check whether a musician is free for a window on a date.

        Storage failures fail closed: the musician is reported unavailable.

        Args:
            musician_id: Musician to check
            event_date: Calendar date of the slot
            start_time: Slot start (time-of-day)
            end_time: Slot end (time-of-day, 00:00 means midnight)
            exclude_request_id: Request being evaluated, ignored as a conflict source

        Returns:
            AvailabilityCheckResult

        Raises:
            InvalidTimeRangeException: If the window is empty or inverted
        """
        slot_date = parse_calendar_date(event_date)
        start, end = validate_time_range(start_time, end_time)
        candidate = _slot_minutes(start, end)

        try:
            committed = self._committed_slots(musician_id, slot_date, exclude_request_id)
        except (RepositoryException, SQLAlchemyError) as e:
            self.logger.error(
                f"Availability check failed for musician {musician_id} on {slot_date}: {str(e)}"
            )
            prometheus_metrics.inc_availability_check("error")
            return AvailabilityCheckResult(is_available=False, reason=AVAILABILITY_ERROR_REASON)

        buffer_minutes = settings.travel_buffer_minutes
        conflicting_ids = [
            slot.request_id
            for slot in committed
            if windows_conflict(
                _slot_minutes(slot.start_time, slot.end_time), candidate, buffer_minutes
            )
        ]

        if conflicting_ids:
            self.logger.info(
                f"Musician {musician_id} has {len(conflicting_ids)} conflicting bookings "
                f"on {slot_date} for {start}-{end}"
            )
            prometheus_metrics.inc_availability_check("conflict")
            return AvailabilityCheckResult(
                is_available=False,
                conflicting_count=len(conflicting_ids),
                conflicting_request_ids=conflicting_ids,
                reason=(
                    "Musician has another booking within "
                    f"{buffer_minutes} minutes of this time slot"
                ),
            )

        prometheus_metrics.inc_availability_check("available")
        return AvailabilityCheckResult(is_available=True)

    @BaseService.measure_operation("get_musician_availability")
    def get_musician_availability(
        self, musician_id: str, event_date: DateLike
    ) -> List[CommittedSlot]:
        """Committed slots occupying a musician's calendar on a date."""
        return self._committed_slots(musician_id, parse_calendar_date(event_date))

    @BaseService.measure_operation("get_available_musicians")
    def get_available_musicians(
        self,
        event_date: DateLike,
        start_time: TimeLike,
        end_time: TimeLike,
        instrument: str,
    ) -> List[User]:
        """Active musicians playing ``instrument`` who are free for the window."""
        musicians = self.user_repository.get_active_musicians_for_instrument(instrument)
        return [
            musician
            for musician in musicians
            if self.check_availability(musician.id, event_date, start_time, end_time).is_available
        ]

    def block_availability(
        self,
        musician_id: str,
        event_date: date,
        start_time: time,
        end_time: time,
        request_id: str,
    ) -> AvailabilityBlock:
        """
        Reserve the musician's calendar for a confirmed booking.

        Runs inside the caller's transaction; does not commit.
        """
        block = self.availability_repository.create_block(
            musician_id, event_date, start_time, end_time, request_id
        )
        self.logger.info(
            f"Blocked {musician_id} on {event_date} {start_time}-{end_time} "
            f"for request {request_id}"
        )
        return block

    def release_availability(self, request_id: str, released_at: datetime) -> int:
        """Release the blocks of a cancelled booking. Does not commit."""
        released = self.availability_repository.release_for_request(request_id, released_at)
        if released:
            self.logger.info(f"Released {released} availability blocks for request {request_id}")
        return released

    def _committed_slots(
        self, musician_id: str, slot_date: date, exclude_request_id: Optional[str] = None
    ) -> List[CommittedSlot]:
        slots: Dict[str, CommittedSlot] = {}
        for block in self.availability_repository.get_busy_blocks(
            musician_id, slot_date, exclude_request_id
        ):
            slots[block.request_id] = CommittedSlot(
                request_id=block.request_id,
                event_date=block.date,
                start_time=block.start_time,
                end_time=block.end_time,
                source="block",
            )
        # Committed requests whose block is missing still count
        for request in self.request_repository.get_committed_for_musician(
            musician_id, slot_date, exclude_request_id
        ):
            slots.setdefault(
                request.id,
                CommittedSlot(
                    request_id=request.id,
                    event_date=request.event_date,
                    start_time=request.start_time,
                    end_time=request.end_time,
                    source="booking",
                ),
            )
        return sorted(slots.values(), key=lambda slot: slot.start_time)
