"""Operation status enumeration.

Status codes for store call results, used to classify outcomes of DynamoDB
operations for appropriate error handling and retries.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Retryable error (network, throttling, service unavailable)
        PERMANENT_ERROR: Non-retryable error (validation, failed condition)
        UNAUTHORIZED: Authentication or authorization failure
        NOT_FOUND: Table or resource not found
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
