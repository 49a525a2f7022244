"""Schemas for availability checks."""

from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel, Field


class AvailabilityCheckResult(BaseModel):
    """Outcome of checking one musician against one time window."""

    is_available: bool
    conflicting_count: int = 0
    conflicting_request_ids: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


class CommittedSlot(BaseModel):
    """A committed booking occupying a musician's calendar."""

    request_id: str
    event_date: date
    start_time: time
    end_time: time
    source: str = Field(..., description="'block' or 'booking'")
