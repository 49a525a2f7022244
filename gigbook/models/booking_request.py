# gigbook/models/booking_request.py
"""
BookingRequest model.

A leader's posted need for a musician on a calendar date between two
times-of-day. The request carries two independent state columns:

- ``status``: active -> accepted -> completed, or -> cancelled
- ``event_status``: none -> started -> completed, or -> cancelled

Date and times are stored separately and only combined into aware
datetimes when compared against wall-clock time.
"""

from datetime import datetime, time
import logging
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.config import settings
from ..core.enums import EventStatus, RequestStatus
from ..database import Base

logger = logging.getLogger(__name__)

IS_SQLITE = settings.database_url.startswith("sqlite")


class BookingRequest(Base):
    """Time-bound service request posted by a leader."""

    __tablename__ = "booking_requests"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    leader_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)

    # Slot
    event_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Details
    location = Column(Text, nullable=False)
    required_instrument = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    extra_amount = Column(Numeric(10, 2), nullable=True)

    # Lifecycle
    status = Column(String(20), nullable=False, default=RequestStatus.ACTIVE.value, index=True)
    event_status = Column(String(20), nullable=False, default=EventStatus.NONE.value)
    musician_id = Column(String(26), ForeignKey("users.id"), nullable=True, index=True)
    # Legacy mirror of musician_id kept for older readers
    accepted_by_musician_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation tracking
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    penalty_percentage = Column(Integer, nullable=True)
    penalty_reason = Column(String(50), nullable=True)

    leader = relationship("User", foreign_keys=[leader_id])
    musician = relationship("User", foreign_keys=[musician_id])
    offers = relationship("Offer", back_populates="request", order_by="Offer.created_at")

    _table_constraints = [
        CheckConstraint(
            "status IN ('active', 'accepted', 'completed', 'cancelled')",
            name="ck_booking_requests_status",
        ),
        CheckConstraint(
            "event_status IN ('none', 'started', 'completed', 'cancelled')",
            name="ck_booking_requests_event_status",
        ),
        CheckConstraint("extra_amount IS NULL OR extra_amount >= 0", name="ck_extra_non_negative"),
    ]

    # SQLite stores TIME as text with microseconds, so string comparison is unreliable there
    if not IS_SQLITE:
        _table_constraints.append(
            CheckConstraint(
                "end_time = '00:00:00' OR start_time < end_time",
                name="ck_booking_requests_time_order",
            )
        )

    __table_args__ = tuple(_table_constraints)

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = RequestStatus.ACTIVE.value
        if not self.event_status:
            self.event_status = EventStatus.NONE.value
        if not self.version:
            self.version = 1

    def __repr__(self) -> str:
        return (
            f"<BookingRequest {self.id}: leader={self.leader_id}, date={self.event_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}, "
            f"event_status={self.event_status}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status == RequestStatus.ACTIVE

    @property
    def is_terminal(self) -> bool:
        return self.status in RequestStatus.terminal()

    def is_assigned_to(self, musician_id: str) -> bool:
        return self.musician_id is not None and self.musician_id == musician_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""

        def _iso(value: Optional[datetime | time]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "leader_id": self.leader_id,
            "event_date": self.event_date.isoformat() if self.event_date else None,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "location": self.location,
            "required_instrument": self.required_instrument,
            "description": self.description,
            "extra_amount": float(self.extra_amount) if self.extra_amount is not None else None,
            "status": self.status,
            "event_status": self.event_status,
            "musician_id": self.musician_id,
            "created_at": _iso(self.created_at),
            "accepted_at": _iso(self.accepted_at),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "cancelled_at": _iso(self.cancelled_at),
            "cancellation_reason": self.cancellation_reason,
            "penalty_percentage": self.penalty_percentage,
            "penalty_reason": self.penalty_reason,
        }
