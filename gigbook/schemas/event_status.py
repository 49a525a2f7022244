"""Response schema for an event's lifecycle status."""

from datetime import datetime
from typing import Optional

from .base import StandardizedModel


class EventStatusResponse(StandardizedModel):
    request_id: str
    status: str
    event_status: str
    scheduled_start: datetime
    scheduled_end: datetime
    start_window_opens: datetime
    start_window_closes: datetime
    can_start: bool
    can_complete: bool
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    checked_at: datetime
