# gigbook/repositories/offer_repository.py
"""Offer data access, including the sibling rejection used by selection."""

from datetime import datetime
from decimal import Decimal
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import OfferStatus
from ..core.exceptions import RepositoryException
from ..models.offer import Offer
from ..schemas.offer import OfferFilters
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class DuplicateOfferRecord(RepositoryException):
    """The (request, musician) unique constraint rejected an insert."""


class OfferRepository(BaseRepository[Offer]):
    def __init__(self, db: Session):
        super().__init__(db, Offer)
        self.logger = logging.getLogger(__name__)

    def get_by_request_and_musician(self, request_id: str, musician_id: str) -> Optional[Offer]:
        return self.find_one_by(request_id=request_id, musician_id=musician_id)

    def get_selected_for_request(self, request_id: str) -> Optional[Offer]:
        return self.find_one_by(request_id=request_id, status=OfferStatus.SELECTED.value)

    def get_pending_for_request(self, request_id: str) -> List[Offer]:
        query = (
            self._build_query()
            .filter(Offer.request_id == request_id, Offer.status == OfferStatus.PENDING.value)
            .order_by(Offer.created_at)
        )
        return self._execute_query(query)

    def create_offer(
        self,
        request_id: str,
        musician_id: str,
        proposed_price: Decimal,
        message: Optional[str],
    ) -> Offer:
        """
        Insert a pending offer.

        Raises:
            DuplicateOfferRecord: If the musician already has an offer on the request
        """
        try:
            offer = Offer(
                request_id=request_id,
                musician_id=musician_id,
                proposed_price=proposed_price,
                message=message,
                status=OfferStatus.PENDING.value,
            )
            self.db.add(offer)
            self.db.flush()
            return offer
        except IntegrityError as exc:
            self.logger.warning(
                f"Duplicate offer insert for request {request_id} by musician {musician_id}"
            )
            raise DuplicateOfferRecord(str(exc)) from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating offer: {str(e)}")
            raise RepositoryException(f"Failed to create offer: {str(e)}")

    def mark_selected(self, offer_id: str, decided_at: datetime) -> bool:
        """pending -> selected."""
        return self.compare_and_swap(
            offer_id,
            expected={"status": OfferStatus.PENDING.value},
            values={"status": OfferStatus.SELECTED.value, "decided_at": decided_at},
        )

    def mark_rejected(self, offer_id: str, decided_at: datetime) -> bool:
        """pending -> rejected."""
        return self.compare_and_swap(
            offer_id,
            expected={"status": OfferStatus.PENDING.value},
            values={"status": OfferStatus.REJECTED.value, "decided_at": decided_at},
        )

    def reject_pending_for_request(
        self, request_id: str, decided_at: datetime, keep_offer_id: Optional[str] = None
    ) -> List[Offer]:
        """
        Reject every pending offer on a request except ``keep_offer_id``.

        Returns:
            The offers that were rejected
        """
        try:
            query = self.db.query(Offer).filter(
                Offer.request_id == request_id,
                Offer.status == OfferStatus.PENDING.value,
            )
            if keep_offer_id:
                query = query.filter(Offer.id != keep_offer_id)
            rejected = cast(List[Offer], query.all())
            for offer in rejected:
                offer.status = OfferStatus.REJECTED.value
                offer.decided_at = decided_at
            self.db.flush()
            return rejected
        except SQLAlchemyError as e:
            self.logger.error(f"Error rejecting offers for request {request_id}: {str(e)}")
            raise RepositoryException(f"Failed to reject offers: {str(e)}")

    def list_offers(self, filters: OfferFilters) -> List[Offer]:
        query = self._build_query()
        if filters.request_id:
            query = query.filter(Offer.request_id == filters.request_id)
        if filters.musician_id:
            query = query.filter(Offer.musician_id == filters.musician_id)
        if filters.status:
            query = query.filter(Offer.status == filters.status.value)
        return self._execute_query(query.order_by(Offer.created_at))
