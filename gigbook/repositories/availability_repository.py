# gigbook/repositories/availability_repository.py
"""AvailabilityBlock data access."""

from datetime import date, datetime, time
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import AvailabilityBlockStatus
from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityBlock
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilityBlock]):
    def __init__(self, db: Session):
        super().__init__(db, AvailabilityBlock)
        self.logger = logging.getLogger(__name__)

    def get_busy_blocks(
        self, musician_id: str, block_date: date, exclude_request_id: Optional[str] = None
    ) -> List[AvailabilityBlock]:
        """Busy blocks for a musician on a date, ordered by start time."""
        try:
            query = self.db.query(AvailabilityBlock).filter(
                AvailabilityBlock.musician_id == musician_id,
                AvailabilityBlock.date == block_date,
                AvailabilityBlock.status == AvailabilityBlockStatus.BUSY.value,
            )
            if exclude_request_id:
                query = query.filter(AvailabilityBlock.request_id != exclude_request_id)
            return cast(List[AvailabilityBlock], query.order_by(AvailabilityBlock.start_time).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting blocks for {musician_id} on {block_date}: {str(e)}")
            raise RepositoryException(f"Failed to get availability blocks: {str(e)}")

    def create_block(
        self,
        musician_id: str,
        block_date: date,
        start_time: time,
        end_time: time,
        request_id: str,
    ) -> AvailabilityBlock:
        return self.create(
            musician_id=musician_id,
            date=block_date,
            start_time=start_time,
            end_time=end_time,
            request_id=request_id,
            status=AvailabilityBlockStatus.BUSY.value,
        )

    def release_for_request(self, request_id: str, released_at: datetime) -> int:
        """
        Release every busy block created for a request.

        Returns:
            Number of blocks released
        """
        try:
            blocks = cast(
                List[AvailabilityBlock],
                self.db.query(AvailabilityBlock)
                .filter(
                    AvailabilityBlock.request_id == request_id,
                    AvailabilityBlock.status == AvailabilityBlockStatus.BUSY.value,
                )
                .all(),
            )
            for block in blocks:
                block.status = AvailabilityBlockStatus.RELEASED.value
                block.released_at = released_at
            self.db.flush()
            return len(blocks)
        except SQLAlchemyError as e:
            self.logger.error(f"Error releasing blocks for request {request_id}: {str(e)}")
            raise RepositoryException(f"Failed to release availability blocks: {str(e)}")
