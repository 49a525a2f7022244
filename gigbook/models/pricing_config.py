"""Database model for versioned pricing configuration."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.sql import func
import ulid

from ..database import Base


class PricingConfig(Base):
    """
    One version of the platform's pricing rules.

    Rows are append-only: an update deactivates the current version and
    inserts the next one, so history is never rewritten.
    """

    __tablename__ = "pricing_configs"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    version = Column(Integer, nullable=False, unique=True)
    base_hourly_rate = Column(Numeric(10, 2), nullable=False)
    minimum_hours = Column(Numeric(5, 2), nullable=False)
    maximum_hours = Column(Numeric(5, 2), nullable=False)
    platform_commission = Column(Numeric(5, 4), nullable=False)
    service_fee = Column(Numeric(10, 2), nullable=False)
    tax_rate = Column(Numeric(5, 4), nullable=False)
    currency = Column(String(3), nullable=False)
    is_active = Column(Boolean, nullable=False, default=False)
    created_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deactivated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("base_hourly_rate > 0", name="ck_pricing_rate_positive"),
        CheckConstraint(
            "minimum_hours > 0 AND maximum_hours >= minimum_hours", name="ck_pricing_hours"
        ),
        CheckConstraint(
            "platform_commission >= 0 AND platform_commission <= 1", name="ck_pricing_commission"
        ),
        CheckConstraint("tax_rate >= 0 AND tax_rate <= 1", name="ck_pricing_tax"),
        CheckConstraint("service_fee >= 0", name="ck_pricing_fee"),
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<PricingConfig v{self.version} active={self.is_active}>"


# Exactly one active version at a time
Index(
    "uq_pricing_configs_single_active",
    PricingConfig.is_active,
    unique=True,
    postgresql_where=text("is_active"),
    sqlite_where=text("is_active = 1"),
)


__all__ = ["PricingConfig"]
