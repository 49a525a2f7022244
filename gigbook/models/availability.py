"""AvailabilityBlock model: a musician's committed calendar slot."""

from typing import Any

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, String, Time
from sqlalchemy.sql import func
import ulid

from ..core.enums import AvailabilityBlockStatus
from ..database import Base


class AvailabilityBlock(Base):
    """
    Calendar block preventing a musician from being double-booked.

    Created only when an offer is selected or a request is accepted directly,
    never for pending offers. Released (not deleted) when the booking is cancelled.
    """

    __tablename__ = "availability_blocks"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    musician_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    request_id = Column(String(26), ForeignKey("booking_requests.id"), nullable=False, index=True)
    status = Column(
        String(20), nullable=False, default=AvailabilityBlockStatus.BUSY.value, index=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    released_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('busy', 'released')", name="ck_availability_blocks_status"),
        Index("ix_availability_blocks_musician_date", "musician_id", "date"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = AvailabilityBlockStatus.BUSY.value

    def __repr__(self) -> str:
        return (
            f"<AvailabilityBlock {self.id}: musician={self.musician_id}, date={self.date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )
