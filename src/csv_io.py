import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO

from models import Transaction, TransactionType, ClientAccount, ProcessingStats, AMOUNT_PRECISION, LEDGER_CONTEXT, quantize_amount

logger = logging.getLogger(__name__)

OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]


def read_transactions(stream: TextIO, stats: Optional[ProcessingStats] = None) -> Iterator[Transaction]:
    """Lazily parse CSV rows into transactions, skipping rows that do not parse."""
    reader = csv.DictReader(stream)
    for row in reader:
        transaction = parse_csv_row(row)
        if transaction is not None:
            yield transaction
        elif stats is not None:
            stats.record_malformed()


def parse_csv_row(row: Dict[str, Optional[str]]) -> Optional[Transaction]:
    """Parse CSV row into Transaction."""
    try:
        normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

        transaction_type = TransactionType(normalized["type"].lower())
        client_id = int(normalized["client"])
        transaction_id = int(normalized["tx"])

        amount = None
        amount_str = normalized.get("amount", "")
        if amount_str and transaction_type.carries_amount:
            amount = Decimal(amount_str)
            if amount.is_finite():
                amount = quantize_amount(amount)

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError, InvalidOperation) as e:
        logger.warning(f"Failed to parse row {row}: {e}")
        return None


def format_decimal(value: Decimal) -> str:
    """Format a balance with exactly 4 decimal places."""
    return f"{value.quantize(AMOUNT_PRECISION, context=LEDGER_CONTEXT):f}"


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    for account in accounts:
        writer.writerow([
            account.client_id,
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ])
