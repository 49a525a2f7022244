# gigbook/services/cancellation_policy.py
"""Penalty tiers for a leader cancelling a booking."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.config import settings
from ..core.enums import PenaltyTier
from ..core.timezone_utils import ensure_aware
from ..schemas.cancellation import PenaltyResult


@dataclass(frozen=True)
class PenaltyTiers:
    """Hours-before-start thresholds and the percentage each tier charges."""

    high_hours: int = 24
    medium_hours: int = 48
    high_percentage: int = 50
    medium_percentage: int = 25

    @classmethod
    def from_settings(cls) -> "PenaltyTiers":
        return cls(
            high_hours=settings.penalty_high_hours,
            medium_hours=settings.penalty_medium_hours,
            high_percentage=settings.penalty_high_percentage,
            medium_percentage=settings.penalty_medium_percentage,
        )


def compute_penalty(
    scheduled_start: datetime, now: datetime, tiers: Optional[PenaltyTiers] = None
) -> PenaltyResult:
    """
    Penalty for cancelling ``scheduled_start - now`` ahead of the event.

    Under 24 hours costs 50%, 24 to 48 hours costs 25%, more is free.
    An event already under way counts as under 24 hours.
    """
    tiers = tiers or PenaltyTiers.from_settings()
    hours = (ensure_aware(scheduled_start) - ensure_aware(now)).total_seconds() / 3600

    if hours < tiers.high_hours:
        percentage, tier = tiers.high_percentage, PenaltyTier.LESS_THAN_24H
    elif hours < tiers.medium_hours:
        percentage, tier = tiers.medium_percentage, PenaltyTier.LESS_THAN_48H
    else:
        percentage, tier = 0, PenaltyTier.MORE_THAN_48H

    return PenaltyResult(percentage=percentage, reason_tier=tier, hours_until_event=round(hours, 2))
