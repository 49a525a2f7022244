"""Tests for CancellationService."""
from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal

import pytest

from gigbook.core.enums import (
    AvailabilityBlockStatus,
    EventStatus,
    OfferStatus,
    PenaltyTier,
    RequestStatus,
    RoleName,
    TransactionStatus,
)
from gigbook.core.exceptions import (
    AlreadyTerminalException,
    ForbiddenException,
    RequestAlreadyFinishedException,
    ValidationException,
)
from gigbook.core.timezone_utils import combine_local
from gigbook.models.availability import AvailabilityBlock
from gigbook.models.transaction import Transaction
from gigbook.services.availability_service import AvailabilityService
from gigbook.services.balance_service import BalanceService
from gigbook.services.cancellation_service import CancellationService
from gigbook.services.offer_service import OfferService

EVENT_DATE = date(2030, 6, 15)
START = combine_local(EVENT_DATE, time(20, 0))
END = combine_local(EVENT_DATE, time(22, 0), is_end_time=True)


@pytest.fixture
def service(unit_db, emitter) -> CancellationService:
    return CancellationService(unit_db, emitter)


def test_cancel_accepted_booking_releases_calendar(
    service, unit_db, emitter, make_request, leader, musician
) -> None:
    request = make_request()
    offers = OfferService(unit_db)
    offer = offers.create_offer(request.id, musician.id, "1000")
    offers.select_offer(offer.id, leader.id)

    result = service.cancel_request(
        request.id, leader.id, "Venue flooded", now=START - timedelta(hours=30)
    )

    assert result.status == RequestStatus.CANCELLED
    assert result.event_status == EventStatus.CANCELLED
    assert result.penalty.percentage == 25
    assert result.penalty.reason_tier == PenaltyTier.LESS_THAN_48H
    assert result.released_blocks == 1
    assert result.notified_user_ids == [musician.id]
    assert emitter.recipients_of("request_cancelled") == [musician.id]

    unit_db.refresh(request)
    assert request.cancellation_reason == "Venue flooded"
    assert request.cancelled_by_id == leader.id
    assert request.penalty_percentage == 25
    assert request.penalty_reason == PenaltyTier.LESS_THAN_48H

    block = unit_db.query(AvailabilityBlock).filter_by(request_id=request.id).one()
    assert block.status == AvailabilityBlockStatus.RELEASED
    freed = AvailabilityService(unit_db).check_availability(
        musician.id, EVENT_DATE, "20:00", "22:00"
    )
    assert freed.is_available is True


def test_cancel_accepted_booking_cancels_income(
    service, unit_db, make_request, leader, musician
) -> None:
    request = make_request(extra_amount=Decimal("250"))
    offers = OfferService(unit_db)
    offer = offers.create_offer(request.id, musician.id, "1000")
    offers.select_offer(offer.id, leader.id)
    balances = BalanceService(unit_db)
    assert balances.get_user_balance(musician.id).available_balance == Decimal("820.00")

    service.cancel_request(request.id, leader.id, "Venue closed", now=START - timedelta(days=14))

    ledger = unit_db.query(Transaction).filter_by(request_id=request.id).all()
    assert len(ledger) == 2
    assert {t.status for t in ledger} == {TransactionStatus.CANCELLED.value}
    balance = balances.get_user_balance(musician.id)
    assert balance.total_earnings == Decimal("0.00")
    assert balance.available_balance == Decimal("0.00")


def test_cancel_active_request_closes_pending_offers(
    service, unit_db, emitter, make_request, leader, make_user
) -> None:
    request = make_request()
    bidder_a, bidder_b = make_user(), make_user()
    offers = OfferService(unit_db)
    offer_a = offers.create_offer(request.id, bidder_a.id, "1000")
    offer_b = offers.create_offer(request.id, bidder_b.id, "1000")

    result = service.cancel_request(
        request.id, leader.id, "Plans changed", now=START - timedelta(hours=10)
    )

    assert result.penalty.percentage == 50
    assert result.released_blocks == 0
    assert sorted(result.notified_user_ids) == sorted([bidder_a.id, bidder_b.id])
    unit_db.refresh(offer_a)
    unit_db.refresh(offer_b)
    assert offer_a.status == OfferStatus.REJECTED
    assert offer_b.status == OfferStatus.REJECTED


def test_no_penalty_with_long_notice(service, make_request, leader) -> None:
    request = make_request()
    result = service.cancel_request(
        request.id, leader.id, "Rescheduled", now=START - timedelta(hours=72)
    )
    assert result.penalty.percentage == 0
    assert result.penalty.reason_tier == PenaltyTier.MORE_THAN_48H


def test_only_the_leader_can_cancel(service, make_request, make_user) -> None:
    request = make_request()
    with pytest.raises(ForbiddenException):
        service.cancel_request(
            request.id,
            make_user(role=RoleName.LEADER).id,
            "Mine now",
            now=START - timedelta(days=3),
        )


@pytest.mark.parametrize("reason", ["", "   "])
def test_reason_is_required(service, make_request, leader, reason) -> None:
    request = make_request()
    with pytest.raises(ValidationException) as exc_info:
        service.cancel_request(request.id, leader.id, reason, now=START - timedelta(days=3))
    assert exc_info.value.code == "REASON_REQUIRED"


def test_terminal_requests_cannot_be_cancelled(service, make_request, leader, musician) -> None:
    cancelled = make_request(status=RequestStatus.CANCELLED)
    completed = make_request(status=RequestStatus.COMPLETED, musician_id=musician.id)

    with pytest.raises(AlreadyTerminalException):
        service.cancel_request(cancelled.id, leader.id, "Again", now=START - timedelta(days=3))
    with pytest.raises(AlreadyTerminalException):
        service.cancel_request(completed.id, leader.id, "Too late", now=START - timedelta(days=3))


def test_finished_event_cannot_be_cancelled(service, make_request, leader, musician) -> None:
    request = make_request(status=RequestStatus.ACCEPTED, musician_id=musician.id)
    with pytest.raises(RequestAlreadyFinishedException):
        service.cancel_request(request.id, leader.id, "No show", now=END + timedelta(minutes=1))


def test_cancelling_twice(service, make_request, leader) -> None:
    request = make_request()
    service.cancel_request(request.id, leader.id, "First", now=START - timedelta(days=3))
    with pytest.raises(AlreadyTerminalException):
        service.cancel_request(request.id, leader.id, "Second", now=START - timedelta(days=3))
