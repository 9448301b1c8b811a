import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import Transaction, TransactionType, ClientAccount, DepositRecord, ProcessingStats, quantize_amount, MAX_AMOUNT


class TestTransaction:
    def test_create_deposit(self):
        transaction = Transaction(
            transaction_type=TransactionType.DEPOSIT,
            client_id=1,
            transaction_id=1,
            amount=Decimal("100.0"),
        )
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert transaction.client_id == 1
        assert transaction.transaction_id == 1
        assert transaction.amount == Decimal("100.0")

    def test_create_dispute_no_amount(self):
        transaction = Transaction(
            transaction_type=TransactionType.DISPUTE,
            client_id=1,
            transaction_id=1,
        )
        assert transaction.amount is None

    def test_is_immutable(self):
        transaction = Transaction(TransactionType.DEPOSIT, 1, 1, Decimal("1"))
        with pytest.raises(AttributeError):
            transaction.amount = Decimal("2")

    def test_deposit_requires_amount(self):
        with pytest.raises(ValueError):
            Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=1)

    def test_withdrawal_requires_amount(self):
        with pytest.raises(ValueError):
            Transaction(TransactionType.WITHDRAWAL, client_id=1, transaction_id=1)

    @pytest.mark.parametrize("kind", [TransactionType.DISPUTE, TransactionType.RESOLVE, TransactionType.CHARGEBACK])
    def test_reference_kinds_reject_amount(self, kind):
        with pytest.raises(ValueError):
            Transaction(kind, client_id=1, transaction_id=1, amount=Decimal("5"))

    def test_non_finite_amount_rejected(self):
        with pytest.raises(ValueError):
            Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=1, amount=Decimal("NaN"))

    def test_id_ranges(self):
        with pytest.raises(ValueError):
            Transaction(TransactionType.DISPUTE, client_id=-1, transaction_id=1)
        with pytest.raises(ValueError):
            Transaction(TransactionType.DISPUTE, client_id=65536, transaction_id=1)
        with pytest.raises(ValueError):
            Transaction(TransactionType.DISPUTE, client_id=1, transaction_id=4294967296)

        # boundaries are valid
        Transaction(TransactionType.DISPUTE, client_id=65535, transaction_id=4294967295)

    def test_amount_beyond_four_places_rejected(self):
        with pytest.raises(ValueError):
            Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=1, amount=Decimal("0.00005"))

    def test_trailing_zeros_are_not_extra_precision(self):
        transaction = Transaction(TransactionType.DEPOSIT, 1, 1, Decimal("1.50000"))
        assert transaction.amount == Decimal("1.5")

    def test_amount_limit(self):
        with pytest.raises(ValueError):
            Transaction(TransactionType.DEPOSIT, 1, 1, MAX_AMOUNT)
        with pytest.raises(ValueError):
            Transaction(TransactionType.WITHDRAWAL, 1, 1, -MAX_AMOUNT)

        Transaction(TransactionType.DEPOSIT, 1, 1, MAX_AMOUNT - Decimal("0.0001"))

    def test_negative_amount_is_structurally_valid(self):
        transaction = Transaction(TransactionType.DEPOSIT, 1, 1, Decimal("-5"))
        assert transaction.amount == Decimal("-5")


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=1)
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.total == Decimal("0")
        assert account.locked is False

    def test_credit_and_debit_move_total(self):
        account = ClientAccount(client_id=1)
        account.credit(Decimal("10"))
        account.debit(Decimal("4"))
        assert account.available == Decimal("6")
        assert account.total == Decimal("6")
        assert account.balances_consistent()

    def test_hold_and_release_keep_total(self):
        account = ClientAccount(client_id=1)
        account.credit(Decimal("10"))
        account.hold(Decimal("10"))
        assert account.available == Decimal("0")
        assert account.held == Decimal("10")
        assert account.total == Decimal("10")

        account.release_hold(Decimal("10"))
        assert account.available == Decimal("10")
        assert account.held == Decimal("0")

    def test_remove_held(self):
        account = ClientAccount(client_id=1)
        account.credit(Decimal("10"))
        account.hold(Decimal("10"))
        account.remove_held(Decimal("10"))
        assert account.total == Decimal("0")
        assert account.balances_consistent()

    def test_inconsistent_balances_detected(self):
        account = ClientAccount(client_id=1, available=Decimal("1"), held=Decimal("1"), total=Decimal("3"))
        assert not account.balances_consistent()


class TestDepositRecord:
    def test_starts_undisputed(self):
        record = DepositRecord(client_id=1, amount=Decimal("3"))
        assert record.disputed is False


class TestHelpers:
    def test_quantize_truncates(self):
        assert quantize_amount(Decimal("1.23456")) == Decimal("1.2345")
        assert quantize_amount(Decimal("2")) == Decimal("2.0000")

    def test_stats_counters(self):
        stats = ProcessingStats()
        stats.record_success()
        stats.record_success()
        stats.record_rejection()
        stats.record_malformed()
        assert (stats.applied, stats.rejected, stats.malformed) == (2, 1, 1)
        assert repr(stats) == "Applied: 2, Rejected: 1, Malformed: 1"
