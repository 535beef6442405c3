"""Custom exceptions for the distributed cache.

Cache misses are never exceptions. These cover table resolution failures
and store failures surfaced to the caller.
"""

from typing import Optional

from dynamodb_cache.operations.result import OperationResult
from dynamodb_cache.operations.status import OperationStatus


class CacheError(Exception):
    """Base exception for all distributed cache errors.

    Example:
        try:
            cache.get("key")
        except CacheError as e:
            logger.error("cache_error", error=str(e))
    """

    pass


class TableResolutionError(CacheError):
    """Base class for failures while binding the cache to its table."""

    def __init__(self, table_name: str, message: str):
        self.table_name = table_name
        super().__init__(message)


class SchemaMismatchError(TableResolutionError):
    """Raised when the existing table's key schema cannot back the cache.

    Fatal: the resolver latches it and every later operation re-raises it.

    Example:
        >>> cache.get("key")
        Traceback (most recent call last):
        ...
        SchemaMismatchError: Table 'cache' rejected (invalid_key_schema): ...
    """

    def __init__(self, table_name: str, reason, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(
            table_name, f"Table '{table_name}' rejected ({reason.value}): {detail}"
        )


class TableNotFoundError(TableResolutionError):
    """Raised when the table is missing and the policy forbids creating it.

    Fatal: the resolver latches it and every later operation re-raises it.
    """

    def __init__(self, table_name: str):
        super().__init__(
            table_name,
            f"Table '{table_name}' does not exist and creation is disabled",
        )


class TableNotActiveError(TableResolutionError):
    """Raised when a table did not become ACTIVE within the polling budget.

    Retryable: the next operation starts a fresh resolution attempt.
    """

    def __init__(self, table_name: str, message: str):
        super().__init__(table_name, message)


class CacheStoreError(CacheError):
    """Raised when a DynamoDB call fails.

    Wraps the failing OperationResult so callers can decide whether to retry.

    Attributes:
        operation: Store operation name (e.g. "get_item")
        result: The failing OperationResult
    """

    def __init__(self, operation: str, result: OperationResult):
        self.operation = operation
        self.result = result
        code = f" [{result.error_code}]" if result.error_code else ""
        super().__init__(f"{operation} failed{code}: {result.message}")

    @property
    def status(self) -> OperationStatus:
        return self.result.status

    @property
    def error_code(self) -> Optional[str]:
        return self.result.error_code

    @property
    def retry_after(self) -> Optional[int]:
        return self.result.retry_after

    @property
    def is_retryable(self) -> bool:
        """True for throttling and network failures."""
        return self.result.status == OperationStatus.TRANSIENT_ERROR
