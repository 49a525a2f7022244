"""Ledger entries: the system of record for musician income."""

from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func
import ulid

from ..core.enums import TransactionStatus
from ..database import Base


class Transaction(Base):
    """Money movement for a user (earning, withdrawal, refund or bonus)."""

    __tablename__ = "transactions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    request_id = Column(String(26), ForeignKey("booking_requests.id"), nullable=True, index=True)
    offer_id = Column(String(26), ForeignKey("offers.id"), nullable=True)
    type = Column(String(20), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=TransactionStatus.PENDING.value)
    currency = Column(String(3), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        # A booking posts each ledger type at most once
        UniqueConstraint("request_id", "user_id", "type", name="uq_transactions_request_user_type"),
        CheckConstraint(
            "type IN ('earning', 'withdrawal', 'refund', 'bonus')", name="ck_transactions_type"
        ),
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'cancelled')",
            name="ck_transactions_status",
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = TransactionStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.id}: user={self.user_id}, type={self.type}, "
            f"amount={self.amount}, status={self.status}>"
        )
