import logging
from decimal import localcontext
from typing import Optional

from models import Transaction, TransactionType, ClientAccount, DepositRecord, ProcessingResult, LEDGER_CONTEXT
from ledger_state import LedgerState

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions against ledger state, one at a time, in the order given.
    Returns ProcessingResult to report whether the transaction took effect.
    A rejected transaction leaves the state exactly as it was.
    """

    def __init__(self, state: LedgerState):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Balance arithmetic runs in LEDGER_CONTEXT, so any rounding raises
        decimal.Inexact instead of silently changing a balance.

        Returns:
            SUCCESS: Balances (and possibly the lock flag) were updated
            REJECTED: A precondition failed; nothing changed
        """
        with localcontext(LEDGER_CONTEXT):
            return self._dispatch(transaction)

    def _dispatch(self, transaction: Transaction) -> ProcessingResult:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(transaction)
            case _:
                return ProcessingResult.REJECTED

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        account = self._state.get_account(transaction.client_id)
        if account is not None and account.locked:
            logger.warning(f"Deposit tx {transaction.transaction_id}: account {transaction.client_id} is locked")
            return ProcessingResult.REJECTED

        if transaction.amount <= 0:
            logger.warning(f"Deposit tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.REJECTED

        if self._state.is_known_transaction_id(transaction.transaction_id):
            logger.info(f"Deposit tx {transaction.transaction_id}: transaction id already used, skipping")
            return ProcessingResult.REJECTED

        account = self._state.get_or_create_account(transaction.client_id)
        account.credit(transaction.amount)
        self._state.store_deposit(transaction.client_id, transaction.transaction_id, transaction.amount)
        self._check_invariants(account)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        account = self._open_account(transaction)
        if account is None:
            return ProcessingResult.REJECTED

        if transaction.amount <= 0:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.REJECTED

        if self._state.is_known_transaction_id(transaction.transaction_id):
            logger.info(f"Withdrawal tx {transaction.transaction_id}: transaction id already used, skipping")
            return ProcessingResult.REJECTED

        if account.available < transaction.amount:
            logger.warning(
                f"Withdrawal tx {transaction.transaction_id}: insufficient funds "
                f"(available {account.available}, requested {transaction.amount})"
            )
            return ProcessingResult.REJECTED

        account.debit(transaction.amount)
        self._state.record_withdrawal(transaction.transaction_id)
        self._check_invariants(account)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        account = self._open_account(transaction)
        if account is None:
            return ProcessingResult.REJECTED

        deposit = self._find_deposit(transaction)
        if deposit is None:
            return ProcessingResult.REJECTED

        if deposit.disputed:
            logger.warning(f"Dispute for tx {transaction.transaction_id}: transaction already disputed")
            return ProcessingResult.REJECTED

        # available may go negative when the deposited funds were already withdrawn
        account.hold(deposit.amount)
        deposit.disputed = True
        self._check_invariants(account)
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        account = self._open_account(transaction)
        if account is None:
            return ProcessingResult.REJECTED

        deposit = self._find_deposit(transaction)
        if deposit is None:
            return ProcessingResult.REJECTED

        if not deposit.disputed:
            logger.info(f"Resolve for tx {transaction.transaction_id}: transaction is not disputed")
            return ProcessingResult.REJECTED

        account.release_hold(deposit.amount)
        deposit.disputed = False
        self._check_invariants(account)
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        account = self._open_account(transaction)
        if account is None:
            return ProcessingResult.REJECTED

        deposit = self._find_deposit(transaction)
        if deposit is None:
            return ProcessingResult.REJECTED

        if not deposit.disputed:
            logger.info(f"Chargeback for tx {transaction.transaction_id}: transaction is not disputed")
            return ProcessingResult.REJECTED

        # The deposit keeps its disputed flag; the account is frozen from here on.
        account.remove_held(deposit.amount)
        account.locked = True
        self._check_invariants(account)
        return ProcessingResult.SUCCESS

    def _open_account(self, transaction: Transaction) -> Optional[ClientAccount]:
        """Return the client's account if it exists and is not locked."""
        account = self._state.get_account(transaction.client_id)
        kind = transaction.transaction_type.value.capitalize()

        if account is None:
            logger.info(f"{kind} tx {transaction.transaction_id}: no account for client {transaction.client_id}")
            return None

        if account.locked:
            logger.warning(f"{kind} tx {transaction.transaction_id}: account {transaction.client_id} is locked")
            return None

        return account

    def _find_deposit(self, transaction: Transaction) -> Optional[DepositRecord]:
        """Look up the deposit a dispute, resolve or chargeback refers to."""
        kind = transaction.transaction_type.value.capitalize()
        deposit = self._state.get_deposit(transaction.transaction_id)

        if deposit is None:
            logger.info(f"{kind} for tx {transaction.transaction_id}: no deposit with this id")
            return None

        if deposit.client_id != transaction.client_id:
            logger.warning(
                f"{kind} for tx {transaction.transaction_id}: client mismatch "
                f"(expected {deposit.client_id}, got {transaction.client_id})"
            )
            return None

        return deposit

    @staticmethod
    def _check_invariants(account: ClientAccount) -> None:
        assert account.balances_consistent(), f"Account {account.client_id} balances out of step: {account}"
