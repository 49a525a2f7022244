"""Tests for post-commit event fan-out."""
from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from gigbook.events.booking_events import (
    BookingEvent,
    OfferCreated,
    RequestCancelled,
    RequestCreated,
)
from gigbook.events.publisher import EventPublisher
from gigbook.notifications.emitter import LoggingNotificationEmitter, NotificationEmitter


def test_payload_is_json_safe() -> None:
    emitter = MagicMock()
    EventPublisher(emitter).publish(
        OfferCreated(
            offer_id="o1",
            request_id="r1",
            musician_id="m1",
            leader_id="l1",
            proposed_price=Decimal("1500.50"),
        )
    )
    emitter.notify.assert_called_once_with(
        "l1",
        "new_offer",
        {
            "offer_id": "o1",
            "request_id": "r1",
            "musician_id": "m1",
            "leader_id": "l1",
            "proposed_price": 1500.5,
        },
    )


def test_broadcast_reaches_every_recipient_without_leaking_the_list() -> None:
    emitter = MagicMock()
    EventPublisher(emitter).publish(
        RequestCreated(
            request_id="r1",
            leader_id="l1",
            event_date=date(2030, 6, 15),
            start_time=time(20, 0),
            end_time=time(22, 0),
            location="Teatro",
            required_instrument="piano",
            musician_ids=["m1", "m2"],
        )
    )
    assert [c.args[0] for c in emitter.notify.call_args_list] == ["m1", "m2"]
    payload = emitter.notify.call_args_list[0].args[2]
    assert "musician_ids" not in payload
    assert payload["event_date"] == "2030-06-15"
    assert payload["start_time"] == "20:00:00"


def test_emitter_failure_is_swallowed_and_delivery_continues() -> None:
    emitter = MagicMock()
    emitter.notify.side_effect = [RuntimeError("socket closed"), None]
    EventPublisher(emitter).publish(
        RequestCancelled(
            request_id="r1",
            leader_id="l1",
            reason="Venue closed",
            penalty_percentage=50,
            cancelled_at=datetime(2030, 6, 15, 12, 0, tzinfo=timezone.utc),
            musician_ids=["m1", "m2"],
            assigned_musician_id="m1",
        )
    )
    assert emitter.notify.call_count == 2


def test_default_emitter_only_logs() -> None:
    publisher = EventPublisher()
    assert isinstance(publisher.emitter, LoggingNotificationEmitter)
    assert isinstance(publisher.emitter, NotificationEmitter)


def test_events_must_name_their_recipients() -> None:
    with pytest.raises(TypeError):
        BookingEvent()
