# gigbook/repositories/factory.py
"""
Repository Factory for the booking engine.

Centralizes repository creation so services share one construction path.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .booking_request_repository import BookingRequestRepository
    from .offer_repository import OfferRepository
    from .pricing_config_repository import PricingConfigRepository
    from .transaction_repository import TransactionRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_request_repository(db: Session) -> "BookingRequestRepository":
        """Create repository for booking request reads and transitions."""
        from .booking_request_repository import BookingRequestRepository

        return BookingRequestRepository(db)

    @staticmethod
    def create_offer_repository(db: Session) -> "OfferRepository":
        from .offer_repository import OfferRepository

        return OfferRepository(db)

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for availability blocks."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_pricing_config_repository(db: Session) -> "PricingConfigRepository":
        from .pricing_config_repository import PricingConfigRepository

        return PricingConfigRepository(db)

    @staticmethod
    def create_transaction_repository(db: Session) -> "TransactionRepository":
        """Create repository for ledger entries."""
        from .transaction_repository import TransactionRepository

        return TransactionRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)
