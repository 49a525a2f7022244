"""Tests for gigbook.core.exceptions HTTP mapping."""
from __future__ import annotations

import pytest

from gigbook.core.exceptions import (
    AlreadyTerminalException,
    DuplicateOfferException,
    InvalidTimeRangeException,
    InvalidTransitionException,
    MusicianInactiveException,
    MusicianUnavailableException,
    NotFoundException,
    RequestAlreadyFinishedException,
    RequestNotActiveException,
    ServiceException,
    UnauthorizedActionException,
)


@pytest.mark.parametrize(
    "exc,status_code,code",
    [
        (InvalidTimeRangeException("10:00", "09:00"), 400, "INVALID_TIME_RANGE"),
        (UnauthorizedActionException(), 403, "UNAUTHORIZED"),
        (NotFoundException("Offer not found", code="OFFER_NOT_FOUND"), 404, "OFFER_NOT_FOUND"),
        (RequestNotActiveException("r1", "accepted"), 409, "REQUEST_NOT_ACTIVE"),
        (DuplicateOfferException("r1", "m1"), 409, "DUPLICATE_OFFER"),
        (MusicianUnavailableException("m1", "busy"), 409, "MUSICIAN_UNAVAILABLE"),
        (AlreadyTerminalException("r1", "cancelled"), 409, "ALREADY_TERMINAL"),
        (
            RequestAlreadyFinishedException("r1", "2030-01-01T00:00:00+00:00"),
            409,
            "REQUEST_ALREADY_FINISHED",
        ),
        (InvalidTransitionException("nope"), 422, "INVALID_TRANSITION"),
        (MusicianInactiveException("m1", "pending"), 422, "MUSICIAN_INACTIVE"),
        (ServiceException("db down"), 500, "ServiceException"),
    ],
)
def test_to_http_exception(exc, status_code: int, code: str) -> None:
    http_exc = exc.to_http_exception()
    assert http_exc.status_code == status_code
    assert http_exc.detail["code"] == code
    assert http_exc.detail["message"] == exc.message


def test_details_are_carried_through() -> None:
    exc = MusicianUnavailableException("m1", "busy", details={"conflicting_request_ids": ["r9"]})
    assert exc.details == {"musician_id": "m1", "conflicting_request_ids": ["r9"]}
    assert exc.to_http_exception().detail["details"]["conflicting_request_ids"] == ["r9"]
