"""Pydantic schemas for pricing configuration and price breakdowns."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .base import Money, StandardizedModel


class PricingConfigPayload(BaseModel):
    """Values an administrator submits to publish a new pricing version."""

    base_hourly_rate: Decimal = Field(..., gt=0, description="Default hourly rate")
    minimum_hours: Decimal = Field(..., gt=0, description="Advisory minimum booking length")
    maximum_hours: Decimal = Field(..., gt=0, description="Advisory maximum booking length")
    platform_commission: Decimal = Field(
        ..., ge=0, le=1, description="Commission deducted from the musician, as a fraction"
    )
    service_fee: Decimal = Field(..., ge=0, description="Flat fee deducted from the musician")
    tax_rate: Decimal = Field(..., ge=0, le=1, description="Tax deducted from the musician")
    currency: str = Field(..., min_length=3, max_length=3)

    @model_validator(mode="after")
    def validate_hour_bounds(self) -> "PricingConfigPayload":
        if self.maximum_hours < self.minimum_hours:
            raise ValueError("maximum_hours must be greater than or equal to minimum_hours")
        return self


class PricingConfigData(PricingConfigPayload):
    """
    Immutable snapshot of one pricing version.

    This is the value handed to the pure pricing functions; version 0 means
    the built-in defaults (nothing stored yet).
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    version: int = Field(0, ge=0)
    created_at: Optional[datetime] = None


class AmountSplit(StandardizedModel):
    """How a gross amount is divided between the platform and the musician."""

    subtotal: Money
    platform_commission: Money
    service_fee: Money
    tax: Money
    musician_earnings: Money
    currency: str


class PriceCalculation(AmountSplit):
    """
    Price breakdown for a time window.

    ``total`` is what the leader pays and always equals ``subtotal``;
    commission, fee and tax come out of the musician's side.
    """

    base_hourly_rate: Money
    hours: Decimal
    total: Money
    config_version: int
    within_hour_bounds: bool = True
