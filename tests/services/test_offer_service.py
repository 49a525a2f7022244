"""Tests for OfferService: creation guards and the selection cascade."""
from __future__ import annotations

from datetime import time
from decimal import Decimal
from unittest.mock import patch

import pytest

from gigbook.core.enums import (
    AvailabilityBlockStatus,
    OfferStatus,
    RequestStatus,
    RoleName,
    TransactionType,
    UserStatus,
)
from gigbook.core.exceptions import (
    DuplicateOfferException,
    ForbiddenException,
    InvalidTransitionException,
    MusicianInactiveException,
    MusicianUnavailableException,
    RepositoryException,
    RequestNotActiveException,
    ServiceException,
    UnauthorizedActionException,
    ValidationException,
)
from gigbook.models.availability import AvailabilityBlock
from gigbook.models.offer import Offer
from gigbook.models.transaction import Transaction
from gigbook.schemas.offer import OfferFilters
from gigbook.services.offer_service import OfferService


@pytest.fixture
def service(unit_db, emitter) -> OfferService:
    return OfferService(unit_db, emitter)


@pytest.fixture
def request_(make_request):
    return make_request(start=time(20, 0), end=time(22, 0))


def _transactions(db, request_id: str):
    return db.query(Transaction).filter(Transaction.request_id == request_id).all()


class TestCreateOffer:
    def test_creates_pending_offer_and_notifies_leader(
        self, service, emitter, request_, musician, leader
    ) -> None:
        offer = service.create_offer(request_.id, musician.id, "1500", message="Available!")

        assert offer.status == OfferStatus.PENDING
        assert offer.proposed_price == Decimal("1500.00")
        assert emitter.recipients_of("new_offer") == [leader.id]

    def test_inactive_request_always_rejects(
        self, service, make_request, make_user, musician
    ) -> None:
        # The musician is also double-booked; the request state is reported first
        accepted = make_request(status=RequestStatus.ACCEPTED, musician_id=musician.id)

        with pytest.raises(RequestNotActiveException):
            service.create_offer(accepted.id, musician.id, 1000)
        with pytest.raises(RequestNotActiveException):
            service.create_offer(accepted.id, make_user().id, 1000)

    def test_duplicate_offer(self, service, request_, musician) -> None:
        service.create_offer(request_.id, musician.id, 1000)
        with pytest.raises(DuplicateOfferException):
            service.create_offer(request_.id, musician.id, 1200)

    def test_inactive_musician(self, service, request_, make_user) -> None:
        pending = make_user(status=UserStatus.PENDING)
        with pytest.raises(MusicianInactiveException):
            service.create_offer(request_.id, pending.id, 1000)

    def test_leaders_cannot_make_offers(self, service, request_, make_user) -> None:
        other_leader = make_user(role=RoleName.LEADER)
        with pytest.raises(ForbiddenException) as exc_info:
            service.create_offer(request_.id, other_leader.id, 1000)
        assert exc_info.value.code == "ROLE_NOT_ALLOWED"

    @pytest.mark.parametrize("price", ["abc", 0, "-10"])
    def test_invalid_price(self, service, request_, musician, price) -> None:
        with pytest.raises(ValidationException) as exc_info:
            service.create_offer(request_.id, musician.id, price)
        assert exc_info.value.code == "INVALID_PRICE"

    def test_unavailable_musician(self, service, request_, musician, make_request) -> None:
        make_request(
            start=time(18, 0),
            end=time(19, 0),
            status=RequestStatus.ACCEPTED,
            musician_id=musician.id,
        )
        with pytest.raises(MusicianUnavailableException):
            service.create_offer(request_.id, musician.id, 1000)


class TestSelectOffer:
    def test_winner_takes_all(self, service, unit_db, emitter, request_, leader, make_user) -> None:
        winner, loser_a, loser_b = make_user(), make_user(), make_user()
        chosen = service.create_offer(request_.id, winner.id, "1000")
        other_a = service.create_offer(request_.id, loser_a.id, "900")
        other_b = service.create_offer(request_.id, loser_b.id, "1100")

        selected = service.select_offer(chosen.id, leader.id)

        assert selected.status == OfferStatus.SELECTED
        unit_db.refresh(other_a)
        unit_db.refresh(other_b)
        assert other_a.status == OfferStatus.REJECTED
        assert other_b.status == OfferStatus.REJECTED

        unit_db.refresh(request_)
        assert request_.status == RequestStatus.ACCEPTED
        assert request_.musician_id == winner.id
        assert request_.accepted_at is not None

        blocks = unit_db.query(AvailabilityBlock).filter_by(request_id=request_.id).all()
        assert [(b.musician_id, b.status) for b in blocks] == [
            (winner.id, AvailabilityBlockStatus.BUSY)
        ]

        ledger = _transactions(unit_db, request_.id)
        assert len(ledger) == 1
        assert ledger[0].user_id == winner.id
        assert ledger[0].type == TransactionType.EARNING
        # 1000 - 150 commission - 100 fee - 180 tax
        assert ledger[0].amount == Decimal("570.00")

        assert emitter.recipients_of("offer_selected") == [winner.id]
        assert sorted(emitter.recipients_of("offer_rejected")) == sorted([loser_a.id, loser_b.id])

        selected_count = (
            unit_db.query(Offer)
            .filter_by(request_id=request_.id, status=OfferStatus.SELECTED.value)
            .count()
        )
        assert selected_count == 1

    def test_selecting_twice_has_no_extra_effect(
        self, service, unit_db, emitter, request_, leader, make_user
    ) -> None:
        winner, loser = make_user(), make_user()
        chosen = service.create_offer(request_.id, winner.id, "1000")
        service.create_offer(request_.id, loser.id, "800")

        service.select_offer(chosen.id, leader.id)
        again = service.select_offer(chosen.id, leader.id)

        assert again.status == OfferStatus.SELECTED
        assert len(_transactions(unit_db, request_.id)) == 1
        assert emitter.recipients_of("offer_rejected") == [loser.id]
        assert emitter.recipients_of("offer_selected") == [winner.id]

    def test_extra_amount_is_posted_as_bonus(
        self, service, unit_db, make_request, leader, musician
    ) -> None:
        request = make_request(extra_amount=Decimal("250"))
        offer = service.create_offer(request.id, musician.id, "1000")

        service.select_offer(offer.id, leader.id)

        ledger = {t.type: t.amount for t in _transactions(unit_db, request.id)}
        assert ledger == {
            TransactionType.EARNING.value: Decimal("570.00"),
            TransactionType.BONUS.value: Decimal("250.00"),
        }

    def test_second_offer_cannot_be_selected(
        self, service, request_, leader, make_user
    ) -> None:
        first = service.create_offer(request_.id, make_user().id, "1000")
        second = service.create_offer(request_.id, make_user().id, "1000")
        service.select_offer(first.id, leader.id)

        with pytest.raises(RequestNotActiveException):
            service.select_offer(second.id, leader.id)

    def test_only_the_leader_can_select(self, service, request_, musician, make_user) -> None:
        offer = service.create_offer(request_.id, musician.id, "1000")
        stranger = make_user(role=RoleName.LEADER)

        with pytest.raises(UnauthorizedActionException):
            service.select_offer(offer.id, stranger.id)

    def test_availability_is_rechecked_at_selection(
        self, service, unit_db, request_, leader, musician, make_request
    ) -> None:
        offer = service.create_offer(request_.id, musician.id, "1000")
        # Musician got booked elsewhere after offering
        make_request(
            start=time(18, 0),
            end=time(19, 0),
            status=RequestStatus.ACCEPTED,
            musician_id=musician.id,
        )

        with pytest.raises(MusicianUnavailableException):
            service.select_offer(offer.id, leader.id)

        unit_db.refresh(request_)
        unit_db.refresh(offer)
        assert request_.status == RequestStatus.ACTIVE
        assert offer.status == OfferStatus.PENDING
        assert _transactions(unit_db, request_.id) == []

    def test_ledger_failure_rolls_back_the_whole_cascade(
        self, service, unit_db, emitter, request_, leader, make_user
    ) -> None:
        winner, loser = make_user(), make_user()
        chosen = service.create_offer(request_.id, winner.id, "1000")
        other = service.create_offer(request_.id, loser.id, "900")
        sent_before = len(emitter.sent)

        with patch.object(
            service.balance_service.repository,
            "create",
            side_effect=RepositoryException("disk full"),
        ):
            with pytest.raises(ServiceException):
                service.select_offer(chosen.id, leader.id)

        unit_db.refresh(request_)
        unit_db.refresh(chosen)
        unit_db.refresh(other)
        assert request_.status == RequestStatus.ACTIVE
        assert request_.musician_id is None
        assert chosen.status == OfferStatus.PENDING
        assert other.status == OfferStatus.PENDING
        assert unit_db.query(AvailabilityBlock).filter_by(request_id=request_.id).count() == 0
        assert _transactions(unit_db, request_.id) == []
        assert len(emitter.sent) == sent_before

        # The request is still open for a clean selection
        service.select_offer(chosen.id, leader.id)
        unit_db.refresh(other)
        assert other.status == OfferStatus.REJECTED


class TestRejectOffer:
    def test_rejects_one_offer_only(
        self, service, unit_db, emitter, request_, leader, make_user
    ) -> None:
        target = make_user()
        offer = service.create_offer(request_.id, target.id, "1000")
        sibling = service.create_offer(request_.id, make_user().id, "1000")

        rejected = service.reject_offer(offer.id, leader.id)

        assert rejected.status == OfferStatus.REJECTED
        unit_db.refresh(sibling)
        unit_db.refresh(request_)
        assert sibling.status == OfferStatus.PENDING
        assert request_.status == RequestStatus.ACTIVE
        assert emitter.recipients_of("offer_rejected") == [target.id]

    def test_cannot_reject_twice(self, service, request_, leader, musician) -> None:
        offer = service.create_offer(request_.id, musician.id, "1000")
        service.reject_offer(offer.id, leader.id)

        with pytest.raises(InvalidTransitionException):
            service.reject_offer(offer.id, leader.id)

    def test_only_the_leader_can_reject(self, service, request_, musician) -> None:
        offer = service.create_offer(request_.id, musician.id, "1000")
        with pytest.raises(UnauthorizedActionException):
            service.reject_offer(offer.id, musician.id)


def test_list_offers_by_status(service, request_, leader, make_user) -> None:
    first = service.create_offer(request_.id, make_user().id, "1000")
    second = service.create_offer(request_.id, make_user().id, "1000")
    service.reject_offer(second.id, leader.id)

    pending = service.list_offers(OfferFilters(request_id=request_.id, status=OfferStatus.PENDING))

    assert [o.id for o in pending] == [first.id]
