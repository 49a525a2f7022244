"""Schemas for offers."""

from typing import Optional

from pydantic import BaseModel

from ..core.enums import OfferStatus


class OfferFilters(BaseModel):
    """Recognized filters for listing offers."""

    request_id: Optional[str] = None
    musician_id: Optional[str] = None
    status: Optional[OfferStatus] = None
