# gigbook/repositories/booking_request_repository.py
"""
BookingRequest Repository

Reads plus the compare-and-swap transitions that move a request through
its lifecycle. Each transition states the status it expects; a zero-row
update means another caller got there first.
"""

from datetime import date, datetime
import logging
from typing import Any, Dict, List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import EventStatus, RequestStatus
from ..core.exceptions import RepositoryException
from ..models.booking_request import BookingRequest
from ..schemas.request import RequestFilters
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

COMMITTED_STATUSES = [RequestStatus.ACCEPTED.value, RequestStatus.COMPLETED.value]


class BookingRequestRepository(BaseRepository[BookingRequest]):
    def __init__(self, db: Session):
        super().__init__(db, BookingRequest)
        self.logger = logging.getLogger(__name__)

    def get_committed_for_musician(
        self, musician_id: str, event_date: date, exclude_request_id: Optional[str] = None
    ) -> List[BookingRequest]:
        """
        Requests the musician is committed to on a date.

        Args:
            musician_id: The musician to check
            event_date: Calendar date of the candidate slot
            exclude_request_id: Request being evaluated, never its own conflict

        Returns:
            Accepted or completed requests ordered by start time
        """
        try:
            query = self.db.query(BookingRequest).filter(
                BookingRequest.musician_id == musician_id,
                BookingRequest.event_date == event_date,
                BookingRequest.status.in_(COMMITTED_STATUSES),
            )
            if exclude_request_id:
                query = query.filter(BookingRequest.id != exclude_request_id)
            return cast(List[BookingRequest], query.order_by(BookingRequest.start_time).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting committed bookings for {musician_id}: {str(e)}")
            raise RepositoryException(f"Failed to get committed bookings: {str(e)}")

    def list_requests(self, filters: RequestFilters) -> List[BookingRequest]:
        query = self._build_query()
        if filters.leader_id:
            query = query.filter(BookingRequest.leader_id == filters.leader_id)
        if filters.musician_id:
            query = query.filter(BookingRequest.musician_id == filters.musician_id)
        if filters.status:
            query = query.filter(BookingRequest.status == filters.status.value)
        if filters.event_status:
            query = query.filter(BookingRequest.event_status == filters.event_status.value)
        if filters.instrument:
            query = query.filter(
                BookingRequest.required_instrument == filters.instrument.strip().lower()
            )
        if filters.date_from:
            query = query.filter(BookingRequest.event_date >= filters.date_from)
        if filters.date_to:
            query = query.filter(BookingRequest.event_date <= filters.date_to)
        query = query.order_by(BookingRequest.event_date, BookingRequest.start_time)
        return self._execute_query(query)

    # Lifecycle transitions

    def accept_if_active(self, request_id: str, musician_id: str, accepted_at: datetime) -> bool:
        """active -> accepted, assigning the musician exactly once."""
        return self.compare_and_swap(
            request_id,
            expected={"status": RequestStatus.ACTIVE.value, "musician_id": None},
            values={
                "status": RequestStatus.ACCEPTED.value,
                "musician_id": musician_id,
                "accepted_by_musician_id": musician_id,
                "accepted_at": accepted_at,
                "version": BookingRequest.version + 1,
            },
        )

    def start_if_pending(self, request_id: str, started_at: datetime) -> bool:
        """event none -> started on an accepted request."""
        return self.compare_and_swap(
            request_id,
            expected={
                "status": RequestStatus.ACCEPTED.value,
                "event_status": EventStatus.NONE.value,
            },
            values={
                "event_status": EventStatus.STARTED.value,
                "started_at": started_at,
                "version": BookingRequest.version + 1,
            },
        )

    def complete_if_open(self, request_id: str, completed_at: datetime) -> bool:
        """event none|started -> completed; the request becomes terminal."""
        return self.compare_and_swap(
            request_id,
            expected={
                "status": RequestStatus.ACCEPTED.value,
                "event_status": (EventStatus.NONE.value, EventStatus.STARTED.value),
            },
            values={
                "status": RequestStatus.COMPLETED.value,
                "event_status": EventStatus.COMPLETED.value,
                "completed_at": completed_at,
                "version": BookingRequest.version + 1,
            },
        )

    def cancel_if_open(self, request_id: str, values: Dict[str, Any]) -> bool:
        """active|accepted -> cancelled, with the caller's cancellation fields."""
        return self.compare_and_swap(
            request_id,
            expected={
                "status": (RequestStatus.ACTIVE.value, RequestStatus.ACCEPTED.value),
                "event_status": (EventStatus.NONE.value, EventStatus.STARTED.value),
            },
            values={
                **values,
                "status": RequestStatus.CANCELLED.value,
                "event_status": EventStatus.CANCELLED.value,
                "version": BookingRequest.version + 1,
            },
        )
