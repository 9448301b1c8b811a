import dataclasses
import logging
from typing import Iterable, List, Optional

from models import Transaction, ClientAccount, ProcessingResult, ProcessingStats
from ledger_state import LedgerState
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class LedgerEngine:
    """
    Owns the account and deposit-history state for one run.
    Transactions that break a business rule are skipped, never raised.

    Every input ends up in exactly one of the applied or rejected logs, in
    input order. Both logs are kept in memory for the whole run.
    """

    def __init__(self):
        self._state = LedgerState()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()
        self._applied: List[Transaction] = []
        self._rejected: List[Transaction] = []

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def apply(self, transaction: Transaction) -> None:
        """Apply one transaction; a rejected one is recorded and otherwise ignored."""
        result = self._processor.process_transaction(transaction)

        if result == ProcessingResult.SUCCESS:
            self._stats.record_success()
            self._applied.append(transaction)
        else:
            self._stats.record_rejection()
            self._rejected.append(transaction)
            logger.debug(f"Rejected: {transaction}")

    def apply_all(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.apply(transaction)

    def accounts(self) -> List[ClientAccount]:
        """Snapshot of every account, ordered by client ID."""
        return [dataclasses.replace(account) for account in self._state.get_all_accounts()]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        account = self._state.get_account(client_id)
        if account is None:
            return None
        return dataclasses.replace(account)

    def applied_transactions(self) -> List[Transaction]:
        return list(self._applied)

    def rejected_transactions(self) -> List[Transaction]:
        return list(self._rejected)
