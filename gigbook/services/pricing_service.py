# gigbook/services/pricing_service.py
"""
Pricing for the booking engine.

The pure functions ``calculate_price`` and ``split_amount`` take the
pricing configuration as an argument and never read global state.
``PricingService`` manages the versioned configuration rows and feeds the
active version into those functions.

The leader pays the subtotal only. Commission, service fee and tax are
deducted from the musician's side.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..constants.pricing_defaults import PRICING_DEFAULTS
from ..core.config import settings
from ..core.exceptions import BusinessRuleException, ValidationException
from ..notifications.emitter import NotificationEmitter
from ..repositories import RepositoryFactory
from ..schemas.pricing import AmountSplit, PriceCalculation, PricingConfigData, PricingConfigPayload
from ..utils.time_utils import TimeLike, duration_minutes
from .base import BaseService

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def default_pricing_config() -> PricingConfigData:
    """Built-in configuration used until an administrator stores one."""
    return PricingConfigData(**PRICING_DEFAULTS, version=0)


def split_amount(subtotal: Decimal, config: PricingConfigData) -> AmountSplit:
    """
    Split a gross amount between platform and musician.

    Args:
        subtotal: Amount the leader pays
        config: Pricing version to apply

    Returns:
        AmountSplit with commission, fee, tax and musician earnings
    """
    subtotal = _money(Decimal(str(subtotal)))
    commission = _money(subtotal * config.platform_commission)
    tax = _money(subtotal * config.tax_rate)
    service_fee = _money(config.service_fee)
    earnings = subtotal - commission - service_fee - tax
    return AmountSplit(
        subtotal=subtotal,
        platform_commission=commission,
        service_fee=service_fee,
        tax=tax,
        musician_earnings=earnings,
        currency=config.currency,
    )


def calculate_price(
    start_time: TimeLike,
    end_time: TimeLike,
    config: PricingConfigData,
    custom_rate: Optional[Decimal] = None,
    enforce_hour_bounds: bool = False,
) -> PriceCalculation:
    """
    Price a time window.

    Args:
        start_time: Window start (time-of-day)
        end_time: Window end (time-of-day, 00:00 means midnight)
        config: Pricing version to apply
        custom_rate: Hourly rate overriding ``config.base_hourly_rate``; None or
            zero falls back to the base rate
        enforce_hour_bounds: Reject windows outside the config's hour bounds

    Returns:
        PriceCalculation

    Raises:
        InvalidTimeRangeException: If end is not after start
        ValidationException: If custom_rate is negative
        BusinessRuleException: If hour bounds are enforced and violated
    """
    minutes = Decimal(duration_minutes(start_time, end_time))
    hours = minutes / Decimal(60)

    rate = Decimal(str(custom_rate)) if custom_rate is not None else Decimal(0)
    if rate < 0:
        raise ValidationException(
            "Hourly rate cannot be negative",
            code="INVALID_RATE",
            details={"custom_rate": str(custom_rate)},
        )
    if rate == 0:
        rate = config.base_hourly_rate

    within_bounds = config.minimum_hours <= hours <= config.maximum_hours
    if not within_bounds:
        details = {
            "hours": str(hours.quantize(CENTS)),
            "minimum_hours": str(config.minimum_hours),
            "maximum_hours": str(config.maximum_hours),
        }
        if enforce_hour_bounds:
            raise BusinessRuleException(
                "Booking length is outside the allowed range",
                code="HOURS_OUT_OF_RANGE",
                details=details,
            )
        logger.warning(f"Booking length outside advisory hour bounds: {details}")

    subtotal = _money(minutes * rate / Decimal(60))
    split = split_amount(subtotal, config)

    return PriceCalculation(
        subtotal=split.subtotal,
        platform_commission=split.platform_commission,
        service_fee=split.service_fee,
        tax=split.tax,
        musician_earnings=split.musician_earnings,
        currency=split.currency,
        base_hourly_rate=_money(rate),
        hours=hours.quantize(CENTS, rounding=ROUND_HALF_UP),
        total=split.subtotal,
        config_version=config.version,
        within_hour_bounds=within_bounds,
    )


class PricingService(BaseService):
    """Versioned pricing configuration and price calculation."""

    def __init__(self, db: Session, notifier: Optional[NotificationEmitter] = None):
        super().__init__(db, notifier)
        self.repository = RepositoryFactory.create_pricing_config_repository(db)

    @BaseService.measure_operation("get_active_pricing_config")
    def get_active_config(self) -> PricingConfigData:
        """Active pricing version, or the built-in defaults when none is stored."""
        row = self.repository.get_active()
        if row is None:
            return default_pricing_config()
        return PricingConfigData.model_validate(row)

    @BaseService.measure_operation("update_pricing_config")
    def update_config(
        self, payload: PricingConfigPayload, actor_id: Optional[str] = None
    ) -> PricingConfigData:
        """
        Publish a new pricing version.

        The active row is locked, deactivated and followed by a new active
        row with the next version number, all in one transaction.
        """
        now = datetime.now(timezone.utc)
        with self.transaction():
            current = self.repository.get_active(for_update=True)
            next_version = self.repository.get_latest_version() + 1
            if current is not None:
                self.repository.deactivate(current, now)
            row = self.repository.create(
                **payload.model_dump(),
                version=next_version,
                is_active=True,
                created_by_id=actor_id,
            )

        self.logger.info(
            f"Pricing config v{next_version} activated"
            + (f" by {actor_id}" if actor_id else "")
        )
        return PricingConfigData.model_validate(row)

    @BaseService.measure_operation("get_pricing_config_history")
    def get_config_history(self) -> List[PricingConfigData]:
        """All stored versions, newest first."""
        return [PricingConfigData.model_validate(row) for row in self.repository.list_history()]

    def initialize_default_pricing(self) -> PricingConfigData:
        """Store the built-in defaults as version 1 if nothing is stored yet."""
        if self.repository.get_latest_version() > 0:
            return self.get_active_config()
        return self.update_config(PricingConfigPayload(**PRICING_DEFAULTS))

    @BaseService.measure_operation("calculate_price")
    def calculate_price(
        self,
        start_time: TimeLike,
        end_time: TimeLike,
        custom_rate: Optional[Decimal] = None,
    ) -> PriceCalculation:
        """Price a window with the active configuration."""
        return calculate_price(
            start_time,
            end_time,
            self.get_active_config(),
            custom_rate=custom_rate,
            enforce_hour_bounds=settings.enforce_pricing_hour_bounds,
        )
