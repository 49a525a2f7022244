# gigbook/core/enums.py
"""
Core enums for the gig booking engine.

Status values are stored as lowercase strings in the database; the enums
subclass ``str`` so they compare equal to the stored values.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles a platform user can hold."""

    ADMIN = "admin"
    LEADER = "leader"
    MUSICIAN = "musician"


class UserStatus(str, Enum):
    """Account standing managed by administrators."""

    ACTIVE = "active"
    PENDING = "pending"
    REJECTED = "rejected"


class RequestStatus(str, Enum):
    """Lifecycle of a leader's booking request."""

    ACTIVE = "active"  # Accepting offers
    ACCEPTED = "accepted"  # A musician is committed
    COMPLETED = "completed"  # Terminal
    CANCELLED = "cancelled"  # Terminal

    @classmethod
    def terminal(cls) -> frozenset["RequestStatus"]:
        return frozenset({cls.COMPLETED, cls.CANCELLED})


class EventStatus(str, Enum):
    """Started/completed sub-state of an accepted booking."""

    NONE = "none"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OfferStatus(str, Enum):
    """Offer states: pending -> selected | rejected."""

    PENDING = "pending"
    SELECTED = "selected"
    REJECTED = "rejected"


class AvailabilityBlockStatus(str, Enum):
    BUSY = "busy"
    RELEASED = "released"


class TransactionType(str, Enum):
    EARNING = "earning"
    WITHDRAWAL = "withdrawal"
    REFUND = "refund"
    BONUS = "bonus"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PenaltyTier(str, Enum):
    """Cancellation penalty tiers by notice given before the event."""

    LESS_THAN_24H = "less_than_24h"
    LESS_THAN_48H = "less_than_48h"
    MORE_THAN_48H = "more_than_48h"


class MusicianRequestStatus(str, Enum):
    """A musician's view of their standing on a request."""

    NONE = "none"
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    """Event types emitted to the real-time channel."""

    NEW_REQUEST = "new_request"
    NEW_OFFER = "new_offer"
    OFFER_SELECTED = "offer_selected"
    OFFER_REJECTED = "offer_rejected"
    REQUEST_ACCEPTED = "request_accepted"
    EVENT_STARTED = "event_started"
    EVENT_COMPLETED = "event_completed"
    REQUEST_CANCELLED = "request_cancelled"
