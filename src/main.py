import csv
import logging
import os
import sys
from typing import List, Optional

from csv_io import write_accounts
from reconciler import BatchReconciler

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_IO_ERROR = 2

DEFAULT_LOG_LEVEL = logging.WARNING


def resolve_log_level(name: Optional[str]) -> int:
    """Map a level name such as "info" to its number; unknown names give WARNING."""
    if not name:
        return DEFAULT_LOG_LEVEL
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        logger.warning(f"Unknown log level {name!r}, using WARNING")
        return DEFAULT_LOG_LEVEL
    return level


def configure_logging() -> None:
    logging.basicConfig(
        level=resolve_log_level(os.environ.get("LEDGER_LOG_LEVEL")),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: ledger-reconcile <input.csv>", file=sys.stderr)
        return EXIT_USAGE

    configure_logging()

    filepath = args[0]
    reconciler = BatchReconciler()
    try:
        accounts = reconciler.process_file(filepath)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        logger.error(f"Could not read {filepath}: {e}")
        return EXIT_IO_ERROR

    write_accounts(accounts, sys.stdout)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
