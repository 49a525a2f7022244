"""Schemas for booking requests."""

from datetime import date, time
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.enums import EventStatus, RequestStatus
from ..utils.time_utils import parse_time_of_day
from .base import StrictModel


class RequestCreate(StrictModel):
    """Fields a leader submits to post a booking request."""

    event_date: date
    start_time: time
    end_time: time
    location: str = Field(..., min_length=1)
    required_instrument: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    extra_amount: Optional[Decimal] = Field(None, ge=0)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> Any:
        # "24:00" is accepted as an end-of-day sentinel
        if isinstance(value, str) and value.strip() in ("24:00", "24:00:00"):
            return parse_time_of_day(value)
        return value

    @field_validator("required_instrument")
    @classmethod
    def _normalize_instrument(cls, value: str) -> str:
        return value.strip().lower()


class RequestFilters(BaseModel):
    """Recognized filters for listing booking requests."""

    leader_id: Optional[str] = None
    musician_id: Optional[str] = None
    status: Optional[RequestStatus] = None
    event_status: Optional[EventStatus] = None
    instrument: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
