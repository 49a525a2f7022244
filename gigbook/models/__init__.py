# gigbook/models/__init__.py
"""
SQLAlchemy models for the booking engine.

Importing this package registers every table on ``Base.metadata``.
"""

from .availability import AvailabilityBlock
from .booking_request import BookingRequest
from .offer import Offer
from .pricing_config import PricingConfig
from .transaction import Transaction
from .user import User

__all__ = [
    "AvailabilityBlock",
    "BookingRequest",
    "Offer",
    "PricingConfig",
    "Transaction",
    "User",
]
