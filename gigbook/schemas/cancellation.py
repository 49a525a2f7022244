"""Schemas for cancellation penalties."""

from datetime import datetime
from typing import List

from pydantic import Field

from ..core.enums import PenaltyTier
from .base import StandardizedModel


class PenaltyResult(StandardizedModel):
    percentage: int = Field(..., ge=0, le=100)
    reason_tier: PenaltyTier
    hours_until_event: float


class CancellationResult(StandardizedModel):
    request_id: str
    status: str
    event_status: str
    penalty: PenaltyResult
    cancelled_at: datetime
    released_blocks: int = 0
    notified_user_ids: List[str] = Field(default_factory=list)
