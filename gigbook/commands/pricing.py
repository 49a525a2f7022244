#!/usr/bin/env python
# gigbook/commands/pricing.py
"""
Pricing management commands.

Usage:
    python -m gigbook.commands.pricing show                  # Active pricing version
    python -m gigbook.commands.pricing history               # Every stored version
    python -m gigbook.commands.pricing init                  # Store defaults if empty
    python -m gigbook.commands.pricing set --rate 600 ...    # Publish a new version
    python -m gigbook.commands.pricing quote 10:00 12:00     # Price a time window
"""

import argparse
from decimal import Decimal
import json
import logging
import sys
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from gigbook.core.config import settings
from gigbook.core.exceptions import DomainException
from gigbook.database import SessionLocal
from gigbook.schemas.pricing import PricingConfigData, PricingConfigPayload
from gigbook.services.pricing_service import PricingService

logger = logging.getLogger(__name__)


def _config_to_dict(config: PricingConfigData) -> Dict[str, Any]:
    return json.loads(config.model_dump_json())


class PricingCommand:
    """Pricing management command handler."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self.session_factory = session_factory

    def _run(self, action: Callable[[PricingService], Any]) -> Any:
        db = self.session_factory()
        try:
            return action(PricingService(db))
        finally:
            db.close()

    def show(self) -> Dict[str, Any]:
        return self._run(lambda service: _config_to_dict(service.get_active_config()))

    def history(self) -> List[Dict[str, Any]]:
        return self._run(
            lambda service: [_config_to_dict(config) for config in service.get_config_history()]
        )

    def init(self) -> Dict[str, Any]:
        return self._run(lambda service: _config_to_dict(service.initialize_default_pricing()))

    def set(self, changes: Dict[str, Any], actor_id: Optional[str] = None) -> Dict[str, Any]:
        """Publish a new version: the active values with ``changes`` applied."""

        def action(service: PricingService) -> Dict[str, Any]:
            current = service.get_active_config()
            values = current.model_dump(exclude={"version", "created_at"})
            values.update({key: value for key, value in changes.items() if value is not None})
            return _config_to_dict(service.update_config(PricingConfigPayload(**values), actor_id))

        return self._run(action)

    def quote(self, start: str, end: str, rate: Optional[Decimal] = None) -> Dict[str, Any]:
        return self._run(
            lambda service: json.loads(service.calculate_price(start, end, rate).model_dump_json())
        )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the pricing command."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Gig booking pricing management",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("show", help="Show the active pricing version")
    subparsers.add_parser("history", help="List every stored pricing version")
    subparsers.add_parser("init", help="Store the default pricing if none exists")

    set_parser = subparsers.add_parser("set", help="Publish a new pricing version")
    set_parser.add_argument("--rate", type=Decimal, dest="base_hourly_rate")
    set_parser.add_argument("--min-hours", type=Decimal, dest="minimum_hours")
    set_parser.add_argument("--max-hours", type=Decimal, dest="maximum_hours")
    set_parser.add_argument("--commission", type=Decimal, dest="platform_commission")
    set_parser.add_argument("--service-fee", type=Decimal, dest="service_fee")
    set_parser.add_argument("--tax-rate", type=Decimal, dest="tax_rate")
    set_parser.add_argument("--currency")
    set_parser.add_argument("--actor", help="User ID recorded as the author")

    quote_parser = subparsers.add_parser("quote", help="Price a time window")
    quote_parser.add_argument("start", help="Start time, HH:MM")
    quote_parser.add_argument("end", help="End time, HH:MM")
    quote_parser.add_argument("--rate", type=Decimal, help="Custom hourly rate")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    cmd = PricingCommand()
    try:
        if args.command == "show":
            result: Any = cmd.show()
        elif args.command == "history":
            result = cmd.history()
        elif args.command == "init":
            result = cmd.init()
        elif args.command == "set":
            changes = {
                key: getattr(args, key)
                for key in (
                    "base_hourly_rate",
                    "minimum_hours",
                    "maximum_hours",
                    "platform_commission",
                    "service_fee",
                    "tax_rate",
                    "currency",
                )
            }
            result = cmd.set(changes, actor_id=args.actor)
        else:
            result = cmd.quote(args.start, args.end, args.rate)
    except (DomainException, ValidationError) as e:
        logger.error(f"Pricing command failed: {e}")
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
