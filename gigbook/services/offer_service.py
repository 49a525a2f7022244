# gigbook/services/offer_service.py
"""
Offer Service for the booking engine.

Offers move pending -> selected | rejected and only this service moves
them. Selecting an offer is winner-take-all: in one transaction the offer
is selected, every sibling is rejected, the request is accepted for the
offer's musician, the musician's calendar is blocked and the earning is
posted to the ledger. Notifications go out after the commit.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import (
    DuplicateOfferException,
    ForbiddenException,
    InvalidTransitionException,
    MusicianInactiveException,
    MusicianUnavailableException,
    NotFoundException,
    RequestNotActiveException,
    UnauthorizedActionException,
    ValidationException,
)
from ..core.timezone_utils import utc_now
from ..events.booking_events import OfferCreated, OfferRejected, OfferSelected
from ..models.booking_request import BookingRequest
from ..models.offer import Offer
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..notifications.emitter import NotificationEmitter
from ..repositories import RepositoryFactory
from ..repositories.offer_repository import DuplicateOfferRecord
from ..schemas.offer import OfferFilters
from .availability_service import AvailabilityService
from .balance_service import BalanceService
from .base import BaseService
from .pricing_service import PricingService, split_amount

logger = logging.getLogger(__name__)


class OfferService(BaseService):
    """Offer lifecycle and the selection cascade."""

    def __init__(self, db: Session, notifier: Optional[NotificationEmitter] = None):
        super().__init__(db, notifier)
        self.logger = logging.getLogger(__name__)
        self.offer_repository = RepositoryFactory.create_offer_repository(db)
        self.request_repository = RepositoryFactory.create_booking_request_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.availability_service = AvailabilityService(db)
        self.pricing_service = PricingService(db)
        self.balance_service = BalanceService(db)

    @BaseService.measure_operation("create_offer")
    def create_offer(
        self,
        request_id: str,
        musician_id: str,
        proposed_price: Any,
        message: Optional[str] = None,
    ) -> Offer:
        """
        Make an offer on an active request.

        Args:
            request_id: Request to bid on
            musician_id: Musician making the offer
            proposed_price: Price the musician asks for
            message: Optional note to the leader

        Returns:
            The pending offer

        Raises:
            NotFoundException: Unknown request or musician
            RequestNotActiveException: Request no longer accepts offers
            ValidationException: Price is not a positive amount
            ForbiddenException: User may not make offers
            MusicianInactiveException: Musician account is not active
            DuplicateOfferException: Musician already has an offer on the request
            MusicianUnavailableException: Musician is committed too close to the slot
        """
        request = self._get_request(request_id)
        if not request.is_active:
            raise RequestNotActiveException(request.id, request.status)

        price = self._parse_price(proposed_price)
        musician = self.get_eligible_musician(musician_id)

        if self.offer_repository.get_by_request_and_musician(request.id, musician.id):
            raise DuplicateOfferException(request.id, musician.id)

        availability = self.availability_service.check_availability(
            musician.id,
            request.event_date,
            request.start_time,
            request.end_time,
            exclude_request_id=request.id,
        )
        if not availability.is_available:
            raise MusicianUnavailableException(
                musician.id,
                availability.reason or "Musician is not available",
                details={"conflicting_request_ids": availability.conflicting_request_ids},
            )

        with self.transaction():
            locked = self.request_repository.get_for_update(request.id)
            if locked is None or not locked.is_active:
                raise RequestNotActiveException(request.id, locked.status if locked else "deleted")
            try:
                offer = self.offer_repository.create_offer(request.id, musician.id, price, message)
            except DuplicateOfferRecord:
                raise DuplicateOfferException(request.id, musician.id)

        self.logger.info(f"Offer {offer.id} created on request {request.id} by {musician.id}")
        prometheus_metrics.inc_booking_transition("offer_created")
        self._publish_after_commit(
            OfferCreated(
                offer_id=offer.id,
                request_id=request.id,
                musician_id=musician.id,
                leader_id=request.leader_id,
                proposed_price=price,
            )
        )
        return offer

    @BaseService.measure_operation("select_offer")
    def select_offer(self, offer_id: str, acting_leader_id: str) -> Offer:
        """
        Select the winning offer for a request.

        Selecting an offer that is already selected returns it unchanged
        without repeating any side effect.

        Raises:
            NotFoundException: Unknown offer
            UnauthorizedActionException: Actor is not the request's leader
            RequestNotActiveException: Request already left the active state
            InvalidTransitionException: Offer is no longer pending
            MusicianUnavailableException: Musician got committed elsewhere meanwhile
        """
        offer = self._get_offer(offer_id)
        request = self._get_request(offer.request_id)
        if request.leader_id != acting_leader_id:
            raise UnauthorizedActionException(
                "Only the request's leader can select an offer",
                details={"offer_id": offer.id, "request_id": request.id},
            )

        if offer.is_selected:
            self.logger.info(f"Offer {offer.id} already selected; nothing to do")
            return offer

        now = utc_now()
        with self.transaction():
            request = self._lock_active_request(request.id)
            offer = self._get_offer(offer_id)
            if not offer.is_pending:
                raise InvalidTransitionException(
                    f"Offer cannot be selected - current status: {offer.status}",
                    details={"offer_id": offer.id, "status": offer.status},
                )

            config = self.pricing_service.get_active_config()
            split = split_amount(offer.proposed_price, config)
            rejected = self.confirm_musician(
                request,
                offer.musician_id,
                earning_amount=split.musician_earnings,
                currency=config.currency,
                now=now,
                offer_id=offer.id,
            )
            if not self.offer_repository.mark_selected(offer.id, now):
                raise InvalidTransitionException(
                    "Offer is no longer pending", details={"offer_id": offer.id}
                )

        self.logger.info(
            f"Offer {offer.id} selected for request {request.id}; "
            f"{len(rejected)} sibling offers rejected"
        )
        prometheus_metrics.inc_booking_transition("offer_selected")
        self._publish_after_commit(
            OfferSelected(
                offer_id=offer.id,
                request_id=request.id,
                musician_id=offer.musician_id,
                leader_id=request.leader_id,
                earning_amount=split.musician_earnings,
                selected_at=now,
            ),
            *[
                OfferRejected(
                    offer_id=loser.id, request_id=request.id, musician_id=loser.musician_id
                )
                for loser in rejected
            ],
        )
        return offer

    @BaseService.measure_operation("reject_offer")
    def reject_offer(self, offer_id: str, acting_leader_id: str) -> Offer:
        """
        Reject a single pending offer. No other offer or request changes.

        Raises:
            UnauthorizedActionException: Actor is not the request's leader
            InvalidTransitionException: Offer is not pending
        """
        offer = self._get_offer(offer_id)
        request = self._get_request(offer.request_id)
        if request.leader_id != acting_leader_id:
            raise UnauthorizedActionException(
                "Only the request's leader can reject an offer",
                details={"offer_id": offer.id, "request_id": request.id},
            )
        if not offer.is_pending:
            raise InvalidTransitionException(
                f"Offer cannot be rejected - current status: {offer.status}",
                details={"offer_id": offer.id, "status": offer.status},
            )

        with self.transaction():
            if not self.offer_repository.mark_rejected(offer.id, utc_now()):
                raise InvalidTransitionException(
                    "Offer is no longer pending", details={"offer_id": offer.id}
                )

        prometheus_metrics.inc_booking_transition("offer_rejected")
        self._publish_after_commit(
            OfferRejected(offer_id=offer.id, request_id=request.id, musician_id=offer.musician_id)
        )
        return offer

    @BaseService.measure_operation("get_offer")
    def get_offer(self, offer_id: str) -> Offer:
        return self._get_offer(offer_id)

    @BaseService.measure_operation("list_offers")
    def list_offers(self, filters: Optional[OfferFilters] = None) -> List[Offer]:
        return self.offer_repository.list_offers(filters or OfferFilters())

    def confirm_musician(
        self,
        request: BookingRequest,
        musician_id: str,
        earning_amount: Decimal,
        currency: str,
        now: datetime,
        offer_id: Optional[str] = None,
    ) -> List[Offer]:
        """
        Commit a musician to a locked, active request.

        Must run inside the caller's transaction with the request row
        locked. Re-checks availability, moves the request to accepted,
        rejects the other pending offers, blocks the calendar and posts
        the earning (plus the leader's extra amount as a bonus).

        Returns:
            Offers rejected by the cascade
        """
        availability = self.availability_service.check_availability(
            musician_id,
            request.event_date,
            request.start_time,
            request.end_time,
            exclude_request_id=request.id,
        )
        if not availability.is_available:
            raise MusicianUnavailableException(
                musician_id,
                availability.reason or "Musician is not available",
                details={"conflicting_request_ids": availability.conflicting_request_ids},
            )

        if not self.request_repository.accept_if_active(request.id, musician_id, now):
            current = self.request_repository.get_by_id(request.id)
            raise RequestNotActiveException(request.id, current.status if current else "deleted")

        rejected = self.offer_repository.reject_pending_for_request(
            request.id, now, keep_offer_id=offer_id
        )
        self.availability_service.block_availability(
            musician_id, request.event_date, request.start_time, request.end_time, request.id
        )
        self.balance_service.post_earning(
            musician_id,
            request.id,
            earning_amount,
            currency,
            offer_id=offer_id,
            description=f"Earnings for request {request.id}",
        )
        if request.extra_amount:
            self.balance_service.post_bonus(
                musician_id,
                request.id,
                Decimal(str(request.extra_amount)),
                currency,
                description=f"Extra amount for request {request.id}",
            )
        return rejected

    # Helpers

    def _lock_active_request(self, request_id: str) -> BookingRequest:
        request = self.request_repository.get_for_update(request_id)
        if request is None:
            raise NotFoundException("Request not found", code="REQUEST_NOT_FOUND")
        if not request.is_active:
            raise RequestNotActiveException(request.id, request.status)
        return request

    def _get_request(self, request_id: str) -> BookingRequest:
        request = self.request_repository.get_by_id(request_id)
        if request is None:
            raise NotFoundException(
                "Request not found", code="REQUEST_NOT_FOUND", details={"request_id": request_id}
            )
        return request

    def _get_offer(self, offer_id: str) -> Offer:
        offer = self.offer_repository.get_by_id(offer_id)
        if offer is None:
            raise NotFoundException(
                "Offer not found", code="OFFER_NOT_FOUND", details={"offer_id": offer_id}
            )
        return offer

    def get_eligible_musician(self, musician_id: str) -> User:
        """Load a user who may make offers or accept requests, or raise."""
        musician = self.user_repository.get_by_id(musician_id)
        if musician is None:
            raise NotFoundException(
                "User not found", code="USER_NOT_FOUND", details={"user_id": musician_id}
            )
        if not musician.can_make_offers:
            raise ForbiddenException(
                "Only musicians can make offers or accept requests",
                code="ROLE_NOT_ALLOWED",
                details={"user_id": musician.id, "role": musician.role},
            )
        if not musician.is_active:
            raise MusicianInactiveException(musician.id, musician.status)
        return musician

    @staticmethod
    def _parse_price(value: Any) -> Decimal:
        try:
            price = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationException(
                "Proposed price must be a number",
                code="INVALID_PRICE",
                details={"proposed_price": str(value)},
            ) from exc
        if not price.is_finite() or price <= 0:
            raise ValidationException(
                "Proposed price must be greater than zero",
                code="INVALID_PRICE",
                details={"proposed_price": str(value)},
            )
        return price.quantize(Decimal("0.01"))
