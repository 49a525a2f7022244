# gigbook/services/request_service.py
"""
Request Service

Posting booking requests, direct acceptance by a musician, and the read
side a musician or leader uses to follow a request.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import MusicianRequestStatus, OfferStatus, RequestStatus, RoleName
from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    RepositoryException,
    RequestNotActiveException,
)
from ..core.timezone_utils import utc_now
from ..events.booking_events import OfferRejected, RequestAccepted, RequestCreated
from ..models.booking_request import BookingRequest
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..notifications.emitter import NotificationEmitter
from ..repositories import RepositoryFactory
from ..schemas.request import RequestCreate, RequestFilters
from ..utils.time_utils import validate_time_range
from .base import BaseService
from .offer_service import OfferService
from .pricing_service import PricingService

logger = logging.getLogger(__name__)


class RequestService(BaseService):
    def __init__(self, db: Session, notifier: Optional[NotificationEmitter] = None):
        super().__init__(db, notifier)
        self.logger = logging.getLogger(__name__)
        self.request_repository = RepositoryFactory.create_booking_request_repository(db)
        self.offer_repository = RepositoryFactory.create_offer_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.offer_service = OfferService(db)
        self.pricing_service = PricingService(db)

    @BaseService.measure_operation("create_request")
    def create_request(self, leader_id: str, data: RequestCreate) -> BookingRequest:
        """
        Post a new active request and broadcast it to matching musicians.

        Raises:
            NotFoundException: Unknown leader
            ForbiddenException: User may not post requests
            InvalidTimeRangeException: End is not after start
        """
        leader = self.user_repository.get_by_id(leader_id)
        if leader is None:
            raise NotFoundException(
                "User not found", code="USER_NOT_FOUND", details={"user_id": leader_id}
            )
        if leader.role not in (RoleName.LEADER, RoleName.ADMIN) or not leader.is_active:
            raise ForbiddenException(
                "Only active leaders can post requests",
                code="ROLE_NOT_ALLOWED",
                details={"user_id": leader.id, "role": leader.role, "status": leader.status},
            )
        start_time, end_time = validate_time_range(data.start_time, data.end_time)

        with self.transaction():
            request = self.request_repository.create(
                leader_id=leader.id,
                event_date=data.event_date,
                start_time=start_time,
                end_time=end_time,
                location=data.location.strip(),
                required_instrument=data.required_instrument,
                description=data.description,
                extra_amount=data.extra_amount,
                status=RequestStatus.ACTIVE.value,
            )

        self.logger.info(
            f"Request {request.id} created by {leader.id} for {request.required_instrument} "
            f"on {request.event_date} {start_time}-{end_time}"
        )
        prometheus_metrics.inc_booking_transition("request_created")

        try:
            musicians = self.user_repository.get_active_musicians_for_instrument(
                request.required_instrument
            )
        except RepositoryException as e:
            self.logger.error(f"Could not load musicians to notify for {request.id}: {str(e)}")
            musicians = []

        self._publish_after_commit(
            RequestCreated(
                request_id=request.id,
                leader_id=request.leader_id,
                event_date=request.event_date,
                start_time=request.start_time,
                end_time=request.end_time,
                location=request.location,
                required_instrument=request.required_instrument,
                musician_ids=[musician.id for musician in musicians],
            )
        )
        return request

    @BaseService.measure_operation("accept_request")
    def accept_request(self, request_id: str, musician_id: str) -> BookingRequest:
        """
        Commit a musician to a request without going through an offer.

        Applies the same cascade as offer selection. The earning is the
        musician's share of the window priced at the active configuration. A
        pending offer the musician already made on the request is selected.

        Raises:
            RequestNotActiveException: Request no longer active
            ForbiddenException / MusicianInactiveException: Musician not eligible
            MusicianUnavailableException: Musician committed too close to the slot
        """
        request = self.get_request(request_id)
        if not request.is_active:
            raise RequestNotActiveException(request.id, request.status)
        musician = self.offer_service.get_eligible_musician(musician_id)
        price = self.pricing_service.calculate_price(request.start_time, request.end_time)

        now = utc_now()
        with self.transaction():
            request = self.request_repository.get_for_update(request.id)
            if request is None or not request.is_active:
                raise RequestNotActiveException(
                    request_id, request.status if request else "deleted"
                )
            own_offer = self.offer_repository.get_by_request_and_musician(request.id, musician.id)
            if own_offer is not None and not own_offer.is_pending:
                own_offer = None
            rejected = self.offer_service.confirm_musician(
                request,
                musician.id,
                earning_amount=price.musician_earnings,
                currency=price.currency,
                now=now,
                offer_id=own_offer.id if own_offer else None,
            )
            # The accepting musician's own pending offer wins with the request
            if own_offer is not None:
                self.offer_repository.mark_selected(own_offer.id, now)

        self.logger.info(f"Request {request.id} accepted directly by {musician.id}")
        prometheus_metrics.inc_booking_transition("request_accepted")
        self._publish_after_commit(
            RequestAccepted(
                request_id=request.id,
                leader_id=request.leader_id,
                musician_id=musician.id,
                accepted_at=now,
            ),
            *[
                OfferRejected(
                    offer_id=offer.id, request_id=request.id, musician_id=offer.musician_id
                )
                for offer in rejected
                if offer.musician_id != musician.id
            ],
        )
        return request

    @BaseService.measure_operation("get_musician_request_status")
    def get_musician_request_status(
        self, request_id: str, musician_id: str
    ) -> MusicianRequestStatus:
        """Where a musician stands on a request: none, pending, accepted or rejected."""
        request = self.get_request(request_id)
        if request.is_assigned_to(musician_id):
            return MusicianRequestStatus.ACCEPTED

        offer = self.offer_repository.get_by_request_and_musician(request.id, musician_id)
        if offer is None:
            return MusicianRequestStatus.NONE
        if offer.status == OfferStatus.SELECTED:
            return MusicianRequestStatus.ACCEPTED
        if offer.status == OfferStatus.REJECTED:
            return MusicianRequestStatus.REJECTED
        return MusicianRequestStatus.PENDING

    def get_request(self, request_id: str) -> BookingRequest:
        request = self.request_repository.get_by_id(request_id)
        if request is None:
            raise NotFoundException(
                "Request not found", code="REQUEST_NOT_FOUND", details={"request_id": request_id}
            )
        return request

    @BaseService.measure_operation("list_requests")
    def list_requests(self, filters: Optional[RequestFilters] = None) -> List[BookingRequest]:
        return self.request_repository.list_requests(filters or RequestFilters())
