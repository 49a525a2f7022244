# gigbook/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development", description="Deployment environment name"
    )
    database_url: str = Field(
        default="sqlite+pysqlite:///./gigbook.db",
        description="SQLAlchemy URL of the relational store",
    )
    platform_timezone: str = Field(
        default="America/Santo_Domingo",
        description="Timezone in which event dates and times-of-day are expressed",
    )
    log_level: str = Field(default="INFO", description="Root log level for CLI entry points")

    # Availability
    travel_buffer_minutes: int = Field(
        default=90, ge=0, description="Mandatory idle time between two committed events"
    )

    # Event lifecycle windows
    event_start_early_minutes: int = Field(
        default=15, ge=0, description="How early before the scheduled start an event may start"
    )
    event_start_late_minutes: int = Field(
        default=60, ge=0, description="How late after the scheduled start an event may start"
    )
    event_min_runtime_minutes: int = Field(
        default=2, ge=0, description="Minimum minutes between start and completion"
    )

    # Cancellation penalty tiers (hours before the scheduled start)
    penalty_high_hours: int = Field(default=24, gt=0)
    penalty_medium_hours: int = Field(default=48, gt=0)
    penalty_high_percentage: int = Field(default=50, ge=0, le=100)
    penalty_medium_percentage: int = Field(default=25, ge=0, le=100)

    # Pricing
    enforce_pricing_hour_bounds: bool = Field(
        default=False,
        description="Reject bookings outside the active config's minimum/maximum hours",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        env_prefix="GIGBOOK_",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate_penalty_tiers(self) -> "Settings":
        if self.penalty_medium_hours <= self.penalty_high_hours:
            raise ValueError("penalty_medium_hours must be greater than penalty_high_hours")
        return self


settings = Settings()
