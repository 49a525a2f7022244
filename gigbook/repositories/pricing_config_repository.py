# gigbook/repositories/pricing_config_repository.py
"""Repository for versioned pricing configuration rows."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, cast

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.pricing_config import PricingConfig
from .base_repository import BaseRepository


class PricingConfigRepository(BaseRepository[PricingConfig]):
    """Data access for the append-only pricing history."""

    def __init__(self, db: Session):
        super().__init__(db, PricingConfig)

    def get_active(self, *, for_update: bool = False) -> Optional[PricingConfig]:
        query = self._build_query().filter(PricingConfig.is_active.is_(True))
        if for_update:
            query = query.with_for_update()
        rows = self._execute_query(query.limit(1))
        return rows[0] if rows else None

    def get_latest_version(self) -> int:
        latest = self._execute_scalar(self.db.query(func.max(PricingConfig.version)))
        return int(latest or 0)

    def deactivate(self, config: PricingConfig, deactivated_at: datetime) -> None:
        config.is_active = False
        config.deactivated_at = deactivated_at
        self.db.flush()

    def list_history(self) -> List[PricingConfig]:
        return cast(
            List[PricingConfig],
            self._execute_query(self._build_query().order_by(PricingConfig.version.desc())),
        )
