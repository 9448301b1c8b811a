from dataclasses import dataclass
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow, ROUND_DOWN
from enum import Enum
from typing import Optional

AMOUNT_PRECISION = Decimal("0.0001")
MAX_AMOUNT = Decimal("1E+20")

# Wide enough for any sum of in-range amounts over every possible transaction
# id; Inexact is trapped so a rounded balance can never go unnoticed.
LEDGER_CONTEXT = Context(prec=64, traps=[InvalidOperation, DivisionByZero, Overflow, Inexact])
PARSE_CONTEXT = Context(prec=64)

MAX_CLIENT_ID = 65535
MAX_TRANSACTION_ID = 4294967295


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    REJECTED = "rejected"


def quantize_amount(amount: Decimal) -> Decimal:
    """Truncate an amount to 4 fractional digits."""
    return amount.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN, context=PARSE_CONTEXT)


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if not 0 <= self.client_id <= MAX_CLIENT_ID:
            raise ValueError(f"client id {self.client_id} out of range")
        if not 0 <= self.transaction_id <= MAX_TRANSACTION_ID:
            raise ValueError(f"transaction id {self.transaction_id} out of range")

        if self.transaction_type.carries_amount:
            if self.amount is None:
                raise ValueError(f"{self.transaction_type.value} requires an amount")
            if not self.amount.is_finite():
                raise ValueError(f"amount {self.amount} is not a finite number")
            if self.amount.copy_abs() >= MAX_AMOUNT:
                raise ValueError(f"amount {self.amount} exceeds {MAX_AMOUNT:f}")
            if quantize_amount(self.amount) != self.amount:
                raise ValueError(f"amount {self.amount} has more than 4 fractional digits")
        elif self.amount is not None:
            raise ValueError(f"{self.transaction_type.value} does not take an amount")

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    locked: bool = False

    def credit(self, amount: Decimal) -> None:
        self.available += amount
        self.total += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount
        self.total -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount
        self.total -= amount

    def balances_consistent(self) -> bool:
        return self.total == self.available + self.held and self.held >= 0


@dataclass
class DepositRecord:
    """A previously applied deposit, kept so disputes can refer back to it."""

    client_id: int
    amount: Decimal
    disputed: bool = False


class ProcessingStats:
    """Counters for the end-of-run report."""

    def __init__(self):
        self.applied = 0
        self.rejected = 0
        self.malformed = 0

    def record_success(self):
        self.applied += 1

    def record_rejection(self):
        self.rejected += 1

    def record_malformed(self):
        self.malformed += 1

    def __repr__(self) -> str:
        return f"Applied: {self.applied}, Rejected: {self.rejected}, Malformed: {self.malformed}"
