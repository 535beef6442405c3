"""Cooperative cancellation for store-bound calls.

Callers pass a ``threading.Event`` as ``cancel_event``. Store calls check it
before issuing a request, and every wait (retry backoff, table polling) waits
on the event instead of sleeping so a cancellation interrupts it promptly.
"""

import threading
import time
from typing import Optional


class OperationCancelledError(Exception):
    """Raised when a caller-supplied cancellation signal is set.

    Example:
        >>> cancel = threading.Event()
        >>> cancel.set()
        >>> cache.get("key", cancel_event=cancel)
        Traceback (most recent call last):
        ...
        OperationCancelledError: dynamodb.get_item cancelled
    """

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation} cancelled")


def raise_if_cancelled(cancel_event: Optional[threading.Event], operation: str) -> None:
    """Raise OperationCancelledError if the event is set."""
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError(operation)


def wait_or_cancel(
    delay: float, cancel_event: Optional[threading.Event], operation: str
) -> None:
    """Wait ``delay`` seconds unless cancelled first.

    Args:
        delay: Seconds to wait
        cancel_event: Optional cancellation signal
        operation: Operation name used in the raised error

    Raises:
        OperationCancelledError: If the event is set before or during the wait
    """
    raise_if_cancelled(cancel_event, operation)
    if delay <= 0:
        return
    if cancel_event is None:
        time.sleep(delay)
        return
    if cancel_event.wait(delay):
        raise OperationCancelledError(operation)
