"""Booking domain events, published after the owning transaction commits."""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional

from ..core.enums import NotificationType


@dataclass
class BookingEvent(ABC):
    """Base for events that fan out to one or more users."""

    event_type: ClassVar[NotificationType]

    @abstractmethod
    def recipients(self) -> List[str]:
        """Users the event is delivered to."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RequestCreated(BookingEvent):
    """Fired after a leader posts a request; broadcast to matching musicians."""

    event_type: ClassVar[NotificationType] = NotificationType.NEW_REQUEST

    request_id: str
    leader_id: str
    event_date: date
    start_time: time
    end_time: time
    location: str
    required_instrument: str
    musician_ids: List[str] = field(default_factory=list)

    def recipients(self) -> List[str]:
        return list(self.musician_ids)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload.pop("musician_ids")
        return payload


@dataclass
class OfferCreated(BookingEvent):
    event_type: ClassVar[NotificationType] = NotificationType.NEW_OFFER

    offer_id: str
    request_id: str
    musician_id: str
    leader_id: str
    proposed_price: Decimal

    def recipients(self) -> List[str]:
        return [self.leader_id]


@dataclass
class OfferSelected(BookingEvent):
    """Fired to the winning musician after selection commits."""

    event_type: ClassVar[NotificationType] = NotificationType.OFFER_SELECTED

    offer_id: str
    request_id: str
    musician_id: str
    leader_id: str
    earning_amount: Decimal
    selected_at: datetime

    def recipients(self) -> List[str]:
        return [self.musician_id]


@dataclass
class OfferRejected(BookingEvent):
    event_type: ClassVar[NotificationType] = NotificationType.OFFER_REJECTED

    offer_id: str
    request_id: str
    musician_id: str

    def recipients(self) -> List[str]:
        return [self.musician_id]


@dataclass
class RequestAccepted(BookingEvent):
    """Fired to the leader when a musician accepts a request directly."""

    event_type: ClassVar[NotificationType] = NotificationType.REQUEST_ACCEPTED

    request_id: str
    leader_id: str
    musician_id: str
    accepted_at: datetime

    def recipients(self) -> List[str]:
        return [self.leader_id]


@dataclass
class EventStarted(BookingEvent):
    event_type: ClassVar[NotificationType] = NotificationType.EVENT_STARTED

    request_id: str
    leader_id: str
    musician_id: str
    started_at: datetime

    def recipients(self) -> List[str]:
        return [self.leader_id]


@dataclass
class EventCompleted(BookingEvent):
    event_type: ClassVar[NotificationType] = NotificationType.EVENT_COMPLETED

    request_id: str
    leader_id: str
    musician_id: str
    completed_at: datetime

    def recipients(self) -> List[str]:
        return [self.musician_id]


@dataclass
class RequestCancelled(BookingEvent):
    """Fired to the assigned musician and anyone with a pending offer."""

    event_type: ClassVar[NotificationType] = NotificationType.REQUEST_CANCELLED

    request_id: str
    leader_id: str
    reason: str
    penalty_percentage: int
    cancelled_at: datetime
    musician_ids: List[str] = field(default_factory=list)
    assigned_musician_id: Optional[str] = None

    def recipients(self) -> List[str]:
        return list(self.musician_ids)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload.pop("musician_ids")
        return payload
