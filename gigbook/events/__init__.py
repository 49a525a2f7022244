"""Domain events and their publisher."""

from .booking_events import (
    BookingEvent,
    EventCompleted,
    EventStarted,
    OfferCreated,
    OfferRejected,
    OfferSelected,
    RequestAccepted,
    RequestCancelled,
    RequestCreated,
)
from .publisher import EventPublisher

__all__ = [
    "BookingEvent",
    "EventCompleted",
    "EventPublisher",
    "EventStarted",
    "OfferCreated",
    "OfferRejected",
    "OfferSelected",
    "RequestAccepted",
    "RequestCancelled",
    "RequestCreated",
]
