# gigbook/services/cancellation_service.py
"""
Cancellation Service

A leader may cancel a request that is not yet terminal and whose slot has
not ended. The penalty tier is recorded for reporting; charging it is the
billing system's concern. Cancelling frees the musician's calendar and
closes any offers still pending. Income posted for the booking is
cancelled in the ledger.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import (
    AlreadyTerminalException,
    ForbiddenException,
    NotFoundException,
    RequestAlreadyFinishedException,
    ValidationException,
)
from ..core.timezone_utils import ensure_aware, utc_now
from ..events.booking_events import RequestCancelled
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..notifications.emitter import NotificationEmitter
from ..repositories import RepositoryFactory
from ..schemas.cancellation import CancellationResult
from .availability_service import AvailabilityService
from .balance_service import BalanceService
from .base import BaseService
from .cancellation_policy import compute_penalty
from .event_lifecycle import EventWindow

logger = logging.getLogger(__name__)


class CancellationService(BaseService):
    def __init__(self, db: Session, notifier: Optional[NotificationEmitter] = None):
        super().__init__(db, notifier)
        self.logger = logging.getLogger(__name__)
        self.request_repository = RepositoryFactory.create_booking_request_repository(db)
        self.offer_repository = RepositoryFactory.create_offer_repository(db)
        self.availability_service = AvailabilityService(db)
        self.balance_service = BalanceService(db)

    @BaseService.measure_operation("cancel_request")
    def cancel_request(
        self,
        request_id: str,
        leader_id: str,
        reason: str,
        now: Optional[datetime] = None,
    ) -> CancellationResult:
        """
        Cancel a request on behalf of its leader.

        Args:
            request_id: Request to cancel
            leader_id: Caller; must own the request
            reason: Free-text cancellation reason (required)
            now: Evaluation time (defaults to the current time)

        Returns:
            CancellationResult with the recorded penalty

        Raises:
            ForbiddenException: Caller is not the request's leader
            AlreadyTerminalException: Request is already cancelled or completed
            ValidationException: Reason is blank
            RequestAlreadyFinishedException: The scheduled slot has already ended
        """
        now = ensure_aware(now) if now else utc_now()
        request = self.request_repository.get_by_id(request_id)
        if request is None:
            raise NotFoundException(
                "Request not found", code="REQUEST_NOT_FOUND", details={"request_id": request_id}
            )
        if request.leader_id != leader_id:
            raise ForbiddenException(
                "Only the request's leader can cancel it",
                code="NOT_REQUEST_LEADER",
                details={"request_id": request.id},
            )
        if request.is_terminal:
            raise AlreadyTerminalException(request.id, request.status)
        if not reason or not reason.strip():
            raise ValidationException(
                "A cancellation reason is required",
                code="REASON_REQUIRED",
                details={"request_id": request.id},
            )

        window = EventWindow.from_request(request)
        if now > window.scheduled_end:
            raise RequestAlreadyFinishedException(request.id, window.scheduled_end.isoformat())

        penalty = compute_penalty(window.scheduled_start, now)

        with self.transaction():
            request = self.request_repository.get_for_update(request.id)
            pending_musicians = [
                offer.musician_id
                for offer in self.offer_repository.get_pending_for_request(request.id)
            ]
            swapped = self.request_repository.cancel_if_open(
                request.id,
                {
                    "cancelled_at": now,
                    "cancelled_by_id": leader_id,
                    "cancellation_reason": reason.strip(),
                    "penalty_percentage": penalty.percentage,
                    "penalty_reason": penalty.reason_tier,
                },
            )
            if not swapped:
                current = self.request_repository.get_by_id(request.id)
                raise AlreadyTerminalException(request.id, current.status if current else "deleted")

            self.offer_repository.reject_pending_for_request(request.id, now)
            released = self.availability_service.release_availability(request.id, now)
            self.balance_service.cancel_request_income(request.id)

        recipients = self._recipients(request.musician_id, pending_musicians)
        self.logger.info(
            f"Request {request.id} cancelled by {leader_id} with {penalty.percentage}% penalty "
            f"({penalty.reason_tier}); released {released} blocks"
        )
        prometheus_metrics.inc_booking_transition("request_cancelled")
        prometheus_metrics.inc_cancellation_penalty(str(penalty.reason_tier))
        self._publish_after_commit(
            RequestCancelled(
                request_id=request.id,
                leader_id=request.leader_id,
                reason=reason.strip(),
                penalty_percentage=penalty.percentage,
                cancelled_at=now,
                musician_ids=recipients,
                assigned_musician_id=request.musician_id,
            )
        )

        return CancellationResult(
            request_id=request.id,
            status=request.status,
            event_status=request.event_status,
            penalty=penalty,
            cancelled_at=now,
            released_blocks=released,
            notified_user_ids=recipients,
        )

    @staticmethod
    def _recipients(assigned_musician_id: Optional[str], pending_musicians: List[str]) -> List[str]:
        recipients: List[str] = []
        for user_id in [assigned_musician_id, *pending_musicians]:
            if user_id and user_id not in recipients:
                recipients.append(user_id)
        return recipients
