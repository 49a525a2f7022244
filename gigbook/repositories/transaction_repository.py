# gigbook/repositories/transaction_repository.py
"""Ledger data access."""

from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import TransactionStatus, TransactionType
from ..core.exceptions import RepositoryException
from ..models.transaction import Transaction
from ..schemas.balance import TransactionFilters
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TransactionRepository(BaseRepository[Transaction]):
    def __init__(self, db: Session):
        super().__init__(db, Transaction)
        self.logger = logging.getLogger(__name__)

    def get_for_request(self, request_id: str, user_id: str, type_: str) -> Optional[Transaction]:
        return self.find_one_by(request_id=request_id, user_id=user_id, type=type_)

    def sum_amount(self, user_id: str, type_: str, status: str) -> Decimal:
        """Sum of amounts for one (type, status) slice of a user's ledger."""
        query = self.db.query(func.coalesce(func.sum(Transaction.amount), 0)).filter(
            Transaction.user_id == user_id,
            Transaction.type == type_,
            Transaction.status == status,
        )
        total = self._execute_scalar(query)
        return Decimal(str(total or 0)).quantize(Decimal("0.01"))

    def list_for_user(self, user_id: str, filters: TransactionFilters) -> List[Transaction]:
        query = self._build_query().filter(Transaction.user_id == user_id)
        if filters.type:
            query = query.filter(Transaction.type == filters.type.value)
        if filters.status:
            query = query.filter(Transaction.status == filters.status.value)
        if filters.request_id:
            query = query.filter(Transaction.request_id == filters.request_id)
        query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        return self._execute_query(query)

    def get_currency_for_user(self, user_id: str) -> Optional[str]:
        query = (
            self.db.query(Transaction.currency)
            .filter(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc())
            .limit(1)
        )
        return self._execute_scalar(query)

    def cancel_for_request(self, request_id: str) -> int:
        """
        Move a request's pending or completed income entries to cancelled.

        Returns:
            Number of entries cancelled
        """
        try:
            entries = (
                self.db.query(Transaction)
                .filter(
                    Transaction.request_id == request_id,
                    Transaction.type.in_(
                        [TransactionType.EARNING.value, TransactionType.BONUS.value]
                    ),
                    Transaction.status.in_(
                        [TransactionStatus.PENDING.value, TransactionStatus.COMPLETED.value]
                    ),
                )
                .all()
            )
            for entry in entries:
                entry.status = TransactionStatus.CANCELLED.value
            self.db.flush()
            return len(entries)
        except SQLAlchemyError as e:
            self.logger.error(f"Error cancelling ledger entries for request {request_id}: {str(e)}")
            raise RepositoryException(f"Failed to cancel ledger entries: {str(e)}")
