# gigbook/init_db.py
"""
Create the booking engine's tables and seed the default pricing version.

Usage:
    python -m gigbook.init_db
"""

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from gigbook.database import Base, SessionLocal, engine
import gigbook.models  # noqa: F401  (registers tables on Base.metadata)
from gigbook.schemas.pricing import PricingConfigData
from gigbook.services.pricing_service import PricingService

logger = logging.getLogger(__name__)


def init_db(bind: Optional[Engine] = None) -> PricingConfigData:
    """Create all tables and make sure a pricing version is active."""
    target = bind or engine
    logger.info(f"Creating database tables on {target.url.render_as_string(hide_password=True)}")
    Base.metadata.create_all(bind=target)

    db = SessionLocal(bind=target)
    try:
        config = PricingService(db).initialize_default_pricing()
    finally:
        db.close()

    logger.info(f"Active pricing config: v{config.version} ({config.currency})")
    return config


def main() -> None:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    init_db()


if __name__ == "__main__":
    main()
