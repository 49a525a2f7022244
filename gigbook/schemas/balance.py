"""Schemas for the musician ledger."""

from typing import Optional

from pydantic import BaseModel

from ..core.enums import TransactionStatus, TransactionType
from .base import Money, StandardizedModel


class BalanceSummary(StandardizedModel):
    """Balance derived from a user's ledger entries."""

    user_id: str
    total_earnings: Money
    pending_earnings: Money
    total_withdrawn: Money
    available_balance: Money
    currency: str


class TransactionFilters(BaseModel):
    """Recognized filters for listing ledger entries."""

    type: Optional[TransactionType] = None
    status: Optional[TransactionStatus] = None
    request_id: Optional[str] = None
