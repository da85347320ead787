"""
Transaction Lifecycle Manager

Creates, updates and deletes transactions and keeps their revenue shares in
step with the current company GCI.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from .calculators import CompanyGCICalculator
from .events import (
    TRANSACTION_CREATED,
    TRANSACTION_DELETED,
    TRANSACTION_UPDATED,
    EventHooks,
)
from .locks import KeyedLock
from .models import (
    RevenueShareResult,
    Transaction,
    TransactionInput,
    TransactionUpdate,
    utcnow,
)
from .processor import RevenueShareEngine
from .storage import RevenueShareRepository
from .validators import InputValidator

logger = logging.getLogger(__name__)


class TransactionLifecycleManager:
    """
    Owns every write that can invalidate revenue shares.

    Revenue share computation is a side effect: the transaction row is always
    kept, even when the fan-out fails. Incomplete runs are logged and the
    transaction id is flagged until reprocess_transaction() succeeds.
    A failure to persist the transaction row itself propagates to the caller.

    Delete-then-regenerate for one transaction id is serialized by a
    per-transaction lock.
    """

    def __init__(
        self,
        repository: RevenueShareRepository,
        engine: RevenueShareEngine | None = None,
        hooks: EventHooks | None = None,
        validator: InputValidator | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.engine = engine or RevenueShareEngine(repository, clock)
        self.hooks = hooks or EventHooks()
        self.validator = validator or InputValidator()
        self.gci_calculator = CompanyGCICalculator()
        self._transaction_locks = KeyedLock()
        self._flag_lock = threading.Lock()
        self._needs_reprocessing: set[int] = set()

    def create_transaction(self, data: TransactionInput) -> Transaction:
        self.validator.validate_transaction(data)
        if self.repository.get_agent(data.agent_id) is None:
            raise ValueError(f"Agent {data.agent_id} not found")

        company_gci = data.company_gci
        if company_gci is None:
            company_gci = self.gci_calculator.calculate(data.sale_amount, data.commission_percentage)

        transaction = self.repository.create_transaction(data, company_gci)
        logger.info(f"Created transaction {transaction.id} for agent {transaction.agent_id}, "
                    f"company GCI {transaction.company_gci}")

        with self._transaction_locks.hold(transaction.id):
            self._run_engine(transaction)

        self.hooks.emit(TRANSACTION_CREATED, transaction)
        return transaction

    def update_transaction(self, transaction_id: int, update: TransactionUpdate) -> Optional[Transaction]:
        """Apply update; regenerate shares only when company GCI changed."""
        self.validator.validate_transaction_update(update)

        with self._transaction_locks.hold(transaction_id):
            current = self.repository.get_transaction(transaction_id)
            if current is None:
                return None

            updated = self._apply_update(current, update)
            updated = self.repository.save_transaction(updated)

            if updated.company_gci != current.company_gci:
                removed = self.repository.delete_revenue_shares(transaction_id)
                logger.info(f"Transaction {transaction_id}: company GCI {current.company_gci} -> "
                            f"{updated.company_gci}, regenerating ({removed} shares removed)")
                self._run_engine(updated)

        self.hooks.emit(TRANSACTION_UPDATED, updated)
        return updated

    def delete_transaction(self, transaction_id: int) -> bool:
        """Delete the transaction's shares, then the transaction."""
        with self._transaction_locks.hold(transaction_id):
            transaction = self.repository.get_transaction(transaction_id)
            if transaction is None:
                return False

            self.repository.delete_revenue_shares(transaction_id)
            deleted = self.repository.delete_transaction(transaction_id)
            self._clear_flag(transaction_id)

        if deleted:
            logger.info(f"Deleted transaction {transaction_id}")
            self.hooks.emit(TRANSACTION_DELETED, transaction)
        return deleted

    def reprocess_transaction(self, transaction_id: int) -> Optional[RevenueShareResult]:
        """Discard and regenerate a transaction's shares from its current GCI."""
        with self._transaction_locks.hold(transaction_id):
            transaction = self.repository.get_transaction(transaction_id)
            if transaction is None:
                return None
            self.repository.delete_revenue_shares(transaction_id)
            return self._run_engine(transaction)

    def pending_reprocessing(self) -> list[int]:
        with self._flag_lock:
            return sorted(self._needs_reprocessing)

    def _apply_update(self, current: Transaction, update: TransactionUpdate) -> Transaction:
        changes = {
            name: value for name, value in vars(update).items()
            if value is not None
        }
        updated = replace(current, **changes)

        # A new price or percentage moves company GCI unless the caller pinned it.
        if update.company_gci is None and update.changes_commission_basis:
            updated.company_gci = self.gci_calculator.calculate(
                updated.sale_amount, updated.commission_percentage
            )
        return updated

    def _run_engine(self, transaction: Transaction) -> RevenueShareResult:
        try:
            result = self.engine.process(transaction)
        except Exception as e:
            logger.error(f"Revenue share processing aborted for transaction {transaction.id}: {str(e)}",
                         exc_info=True)
            result = RevenueShareResult(transaction_id=transaction.id, error=str(e))

        if result.complete:
            self._clear_flag(transaction.id)
        else:
            logger.warning(f"Transaction {transaction.id} flagged for revenue share reprocessing "
                           f"(failed tiers: {result.failed_tiers}, error: {result.error})")
            with self._flag_lock:
                self._needs_reprocessing.add(transaction.id)
        return result

    def _clear_flag(self, transaction_id: int) -> None:
        with self._flag_lock:
            self._needs_reprocessing.discard(transaction_id)
