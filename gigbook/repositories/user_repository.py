# gigbook/repositories/user_repository.py
"""User data access for the booking engine."""

import logging
from typing import List, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import RoleName, UserStatus
from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    def get_active_musicians_for_instrument(self, instrument: str) -> List[User]:
        """
        Active musicians who list the given instrument.

        Instruments are stored as a comma-separated column, so the LIKE
        prefilter is refined in Python.
        """
        try:
            candidates = cast(
                List[User],
                self.db.query(User)
                .filter(
                    User.role == RoleName.MUSICIAN.value,
                    User.status == UserStatus.ACTIVE.value,
                    User.instruments.ilike(f"%{instrument.strip()}%"),
                )
                .order_by(User.created_at)
                .all(),
            )
            return [user for user in candidates if user.plays(instrument)]
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting musicians for {instrument}: {str(e)}")
            raise RepositoryException(f"Failed to get musicians: {str(e)}")
