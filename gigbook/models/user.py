"""User model: leaders post requests, musicians make offers."""

from typing import List

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName, UserStatus
from ..database import Base


class User(Base):
    """Platform account. Only the fields the booking engine reads are modelled."""

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.MUSICIAN.value)
    status = Column(String(20), nullable=False, default=UserStatus.PENDING.value, index=True)
    # Comma-separated instrument names, e.g. "piano,guitar"
    instruments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'leader', 'musician')", name="ck_users_role"),
        CheckConstraint("status IN ('active', 'pending', 'rejected')", name="ck_users_status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def can_make_offers(self) -> bool:
        """Musicians and admins may make offers and accept requests."""
        return self.role in (RoleName.MUSICIAN, RoleName.ADMIN)

    @property
    def instrument_list(self) -> List[str]:
        if not self.instruments:
            return []
        return [item.strip().lower() for item in self.instruments.split(",") if item.strip()]

    def plays(self, instrument: str) -> bool:
        return instrument.strip().lower() in self.instrument_list

    def __repr__(self) -> str:
        return f"<User {self.id}: role={self.role}, status={self.status}>"
