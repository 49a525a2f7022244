# gigbook/services/balance_service.py
"""
Balance Service

The transaction ledger is the system of record for musician income.
Earnings and bonuses are posted inside the selection/acceptance
transaction of the booking that produced them; balances are always
derived from the ledger, never stored.
"""

from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..constants.pricing_defaults import PRICING_DEFAULTS
from ..core.enums import TransactionStatus, TransactionType
from ..models.transaction import Transaction
from ..notifications.emitter import NotificationEmitter
from ..repositories import RepositoryFactory
from ..schemas.balance import BalanceSummary, TransactionFilters
from .base import BaseService

logger = logging.getLogger(__name__)


class BalanceService(BaseService):
    def __init__(self, db: Session, notifier: Optional[NotificationEmitter] = None):
        super().__init__(db, notifier)
        self.repository = RepositoryFactory.create_transaction_repository(db)

    def post_earning(
        self,
        musician_id: str,
        request_id: str,
        amount: Decimal,
        currency: str,
        offer_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Transaction:
        """Record a completed earning. Does not commit."""
        return self._post(
            TransactionType.EARNING,
            musician_id,
            request_id,
            amount,
            currency,
            offer_id,
            description,
        )

    def post_bonus(
        self,
        musician_id: str,
        request_id: str,
        amount: Decimal,
        currency: str,
        description: Optional[str] = None,
    ) -> Transaction:
        """Record the leader's extra amount as a completed bonus. Does not commit."""
        return self._post(
            TransactionType.BONUS, musician_id, request_id, amount, currency, None, description
        )

    def cancel_request_income(self, request_id: str) -> int:
        """Cancel the earning and bonus posted for a request. Does not commit."""
        cancelled = self.repository.cancel_for_request(request_id)
        if cancelled:
            self.logger.info(f"Cancelled {cancelled} ledger entries for request {request_id}")
        return cancelled

    def _post(
        self,
        type_: TransactionType,
        user_id: str,
        request_id: str,
        amount: Decimal,
        currency: str,
        offer_id: Optional[str],
        description: Optional[str],
    ) -> Transaction:
        existing = self.repository.get_for_request(request_id, user_id, type_.value)
        if existing is not None:
            self.logger.warning(
                f"{type_.value} for request {request_id} already posted to {user_id}; skipping"
            )
            return existing

        transaction = self.repository.create(
            user_id=user_id,
            request_id=request_id,
            offer_id=offer_id,
            type=type_.value,
            amount=amount,
            currency=currency,
            description=description,
            status=TransactionStatus.COMPLETED.value,
        )
        self.logger.info(
            f"Posted {type_.value} of {amount} {currency} to {user_id} for {request_id}"
        )
        return transaction

    @BaseService.measure_operation("get_user_balance")
    def get_user_balance(self, user_id: str) -> BalanceSummary:
        completed = TransactionStatus.COMPLETED.value
        pending = TransactionStatus.PENDING.value
        earning = TransactionType.EARNING.value
        bonus = TransactionType.BONUS.value

        total_earnings = self.repository.sum_amount(
            user_id, earning, completed
        ) + self.repository.sum_amount(user_id, bonus, completed)
        pending_earnings = self.repository.sum_amount(
            user_id, earning, pending
        ) + self.repository.sum_amount(user_id, bonus, pending)
        total_withdrawn = self.repository.sum_amount(
            user_id, TransactionType.WITHDRAWAL.value, completed
        )

        return BalanceSummary(
            user_id=user_id,
            total_earnings=total_earnings,
            pending_earnings=pending_earnings,
            total_withdrawn=total_withdrawn,
            available_balance=total_earnings - total_withdrawn,
            currency=self.repository.get_currency_for_user(user_id) or PRICING_DEFAULTS["currency"],
        )

    @BaseService.measure_operation("list_transactions")
    def list_transactions(
        self, user_id: str, filters: Optional[TransactionFilters] = None
    ) -> List[Transaction]:
        return self.repository.list_for_user(user_id, filters or TransactionFilters())
