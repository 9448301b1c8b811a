import threading
from queue import Queue, Empty, Full
from typing import Optional

from models import Transaction


class InMemoryQueue:
    """
    Bounded hand-off from the CSV reader thread to the ledger consumer.

    A full queue makes the reader wait, so parsing stays at most `maxsize`
    records ahead of the ledger. FIFO, one producer, one consumer.
    """

    DEFAULT_TIMEOUT = 0.1
    DEFAULT_MAXSIZE = 1024

    def __init__(self, maxsize: int = DEFAULT_MAXSIZE):
        self._main_queue: Queue[Transaction] = Queue(maxsize=maxsize)
        self._shutdown_event = threading.Event()
        self._cancel_event = threading.Event()

    def publish_message(self, message: Transaction) -> bool:
        """
        Wait for room and enqueue the message.
        Returns False, dropping the message, once the consumer has cancelled.
        """
        while not self._cancel_event.is_set():
            try:
                self._main_queue.put(message, timeout=self.DEFAULT_TIMEOUT)
                return True
            except Full:
                continue
        return False

    def consume_message(self) -> Optional[Transaction]:
        """Next message, or None when nothing arrived within the timeout."""
        try:
            return self._main_queue.get(timeout=self.DEFAULT_TIMEOUT)
        except Empty:
            return None

    def is_empty(self) -> bool:
        return self._main_queue.empty()

    def is_drained(self) -> bool:
        """The reader is finished and every message has been taken."""
        return self.is_shutdown() and self.is_empty()

    def shutdown(self) -> None:
        """Called by the reader after its last message."""
        self._shutdown_event.set()

    def is_shutdown(self) -> bool:
        return self._shutdown_event.is_set()

    def cancel(self) -> None:
        """Called by the consumer when it stops early; unblocks the reader."""
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()
