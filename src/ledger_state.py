from decimal import Decimal
from typing import Dict, List, Optional, Set

from models import ClientAccount, DepositRecord


class LedgerState:
    """
    Account balances and deposit history for a single run.
    Stores deposits by transaction id so later disputes can find them.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._deposits: Dict[int, DepositRecord] = {}
        self._withdrawal_ids: Set[int] = set()

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        """Return the account if it has been created."""
        return self._accounts.get(client_id)

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def store_deposit(self, client_id: int, transaction_id: int, amount: Decimal) -> None:
        """Store deposit for future dispute lookups."""
        self._deposits[transaction_id] = DepositRecord(client_id=client_id, amount=amount)

    def get_deposit(self, transaction_id: int) -> Optional[DepositRecord]:
        """Retrieve stored deposit by transaction ID."""
        return self._deposits.get(transaction_id)

    def record_withdrawal(self, transaction_id: int) -> None:
        self._withdrawal_ids.add(transaction_id)

    def is_known_transaction_id(self, transaction_id: int) -> bool:
        """Check whether a deposit or withdrawal already used this ID."""
        return transaction_id in self._deposits or transaction_id in self._withdrawal_ids

    def get_all_accounts(self) -> List[ClientAccount]:
        """Return all accounts ordered by client ID (for final output)."""
        return [self._accounts[client_id] for client_id in sorted(self._accounts)]
