"""Operation result types, status enums and cancellation helpers.

Every store call returns an ``OperationResult``; cancellation is the one
outcome that is raised rather than returned.
"""

from dynamodb_cache.operations.cancellation import (
    OperationCancelledError,
    raise_if_cancelled,
    wait_or_cancel,
)
from dynamodb_cache.operations.result import OperationResult
from dynamodb_cache.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "OperationCancelledError",
    "raise_if_cancelled",
    "wait_or_cancel",
]
