"""Default pricing configuration values."""

from __future__ import annotations

from typing import Any, Dict

PRICING_DEFAULTS: Dict[str, Any] = {
    "base_hourly_rate": "500.00",
    "minimum_hours": "2",
    "maximum_hours": "12",
    "platform_commission": "0.15",
    "service_fee": "100.00",
    "tax_rate": "0.18",
    "currency": "DOP",
}
