import logging
import threading
from typing import List, Optional, TextIO

from models import ClientAccount
from csv_io import read_transactions
from ledger_engine import LedgerEngine
from message_queue import InMemoryQueue

logger = logging.getLogger(__name__)


class BatchReconciler:
    """
    Reads a transaction file and applies it to a LedgerEngine in file order.

    With threaded=True a single publisher thread parses rows into a queue
    while the calling thread applies them; there is only ever one consumer,
    so the engine still sees the records one at a time in input order.
    Repeated process_file calls keep applying to the same engine.
    """

    def __init__(self, engine: Optional[LedgerEngine] = None, threaded: bool = True,
                 queue_size: int = InMemoryQueue.DEFAULT_MAXSIZE):
        self._engine = engine if engine is not None else LedgerEngine()
        self._threaded = threaded
        self._queue_size = queue_size

    @property
    def engine(self) -> LedgerEngine:
        return self._engine

    def process_file(self, filepath: str) -> List[ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Reconciling {filepath}")

        # Opened here so an unreadable input fails in the caller's thread.
        with open(filepath, "r", newline="", encoding="utf-8") as f:
            if self._threaded:
                self._process_threaded(f)
            else:
                self._engine.apply_all(read_transactions(f, self._engine.stats))

        logger.info(f"Reconciliation complete. {self._engine.stats}")
        return self._engine.accounts()

    def _process_threaded(self, stream: TextIO) -> None:
        queue = InMemoryQueue(maxsize=self._queue_size)
        reader_errors: List[Exception] = []

        publisher_thread = threading.Thread(
            target=self._publish_transactions, args=(stream, queue, reader_errors)
        )
        publisher_thread.start()

        try:
            self._consume_transactions(queue)
        except BaseException:
            queue.cancel()
            raise
        finally:
            publisher_thread.join()

        if reader_errors:
            raise reader_errors[0]

    def _publish_transactions(self, stream: TextIO, queue: InMemoryQueue, errors: List[Exception]) -> None:
        """Parse rows and publish transactions to queue."""
        try:
            for transaction in read_transactions(stream, self._engine.stats):
                if not queue.publish_message(transaction):
                    break
        except Exception as e:
            logger.error(f"Reading input failed: {e}")
            errors.append(e)
        finally:
            queue.shutdown()

    def _consume_transactions(self, queue: InMemoryQueue) -> None:
        """Consumer loop: pull from queue and apply in order."""
        while True:
            transaction = queue.consume_message()
            if transaction is None:
                if queue.is_drained():
                    break
                continue

            self._engine.apply(transaction)
