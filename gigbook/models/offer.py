"""Offer model: a musician's priced proposal against a booking request."""

from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import OfferStatus
from ..database import Base


class Offer(Base):
    """
    Offer made by a musician.

    Created as pending; only the offer lifecycle manager moves it to
    selected or rejected. Offers are never deleted.
    """

    __tablename__ = "offers"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    request_id = Column(String(26), ForeignKey("booking_requests.id"), nullable=False, index=True)
    musician_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    proposed_price = Column(Numeric(10, 2), nullable=False)
    message = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=OfferStatus.PENDING.value, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    decided_at = Column(DateTime(timezone=True), nullable=True)

    request = relationship("BookingRequest", back_populates="offers")
    musician = relationship("User")

    __table_args__ = (
        UniqueConstraint("request_id", "musician_id", name="uq_offers_request_musician"),
        CheckConstraint(
            "status IN ('pending', 'selected', 'rejected')",
            name="ck_offers_status",
        ),
        CheckConstraint("proposed_price > 0", name="ck_offers_price_positive"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = OfferStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<Offer {self.id}: request={self.request_id}, musician={self.musician_id}, "
            f"price={self.proposed_price}, status={self.status}>"
        )

    @property
    def is_pending(self) -> bool:
        return self.status == OfferStatus.PENDING

    @property
    def is_selected(self) -> bool:
        return self.status == OfferStatus.SELECTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "request_id": self.request_id,
            "musician_id": self.musician_id,
            "proposed_price": float(self.proposed_price),
            "message": self.message,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }


# At most one selected offer per request
Index(
    "uq_offers_one_selected_per_request",
    Offer.request_id,
    unique=True,
    postgresql_where=text("status = 'selected'"),
    sqlite_where=text("status = 'selected'"),
)
