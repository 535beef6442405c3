"""Table resolution for the distributed cache.

Makes sure a usable table exists before the first cache operation, at most
once per resolver instance, even under concurrent first use.

States:
    UNRESOLVED -> RESOLVING -> READY    (terminal, cached for the lifetime)
    UNRESOLVED -> RESOLVING -> FAILED   (schema mismatch / missing table)
    RESOLVING -> UNRESOLVED             (store failure, timeout, cancellation)

A READY resolver answers without taking the lock or calling the store.
Fatal failures are latched and re-raised without further store calls.
Everything else leaves the resolver UNRESOLVED so the next call retries.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from dynamodb_cache.cache.errors import (
    CacheStoreError,
    SchemaMismatchError,
    TableNotActiveError,
    TableNotFoundError,
    TableResolutionError,
)
from dynamodb_cache.cache.options import CacheOptions
from dynamodb_cache.cache.schema import validate_table_schema
from dynamodb_cache.clients.aws.dynamodb import (
    TABLE_STATUS_ACTIVE,
    TABLE_STATUS_CREATING,
    DynamoDBClient,
)
from dynamodb_cache.configuration.cache import TableCreationPolicy
from dynamodb_cache.logging import get_module_logger
from dynamodb_cache.operations.cancellation import OperationCancelledError

logger = get_module_logger()

# Lock wait granularity while honouring a cancellation signal.
_LOCK_POLL_SECONDS = 0.05


class ResolverState(Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class TableDescriptor:
    """Resolved, validated binding to the backing table."""

    name: str
    partition_key_attribute: str
    status: str
    arn: Optional[str] = None


class TableResolver:
    """Lazily resolves (and optionally creates) the cache table.

    Args:
        client: DynamoDBClient used for describe/create/poll calls
        options: CacheOptions carrying table name, key name and policy
    """

    def __init__(self, client: DynamoDBClient, options: CacheOptions):
        self._client = client
        self._options = options
        self._lock = threading.Lock()
        self._state = ResolverState.UNRESOLVED
        self._descriptor: Optional[TableDescriptor] = None
        self._fatal_error: Optional[TableResolutionError] = None
        self._log = logger.bind(table_name=options.table_name)

    @property
    def state(self) -> ResolverState:
        return self._state

    @property
    def descriptor(self) -> Optional[TableDescriptor]:
        return self._descriptor

    def resolve(
        self, cancel_event: Optional[threading.Event] = None
    ) -> TableDescriptor:
        """Return the table descriptor, resolving it on first use.

        Args:
            cancel_event: Optional cancellation signal, honoured while waiting
                for another thread's resolution and by every store call

        Returns:
            TableDescriptor for the validated, ACTIVE table

        Raises:
            SchemaMismatchError: The table exists with an unusable key schema
            TableNotFoundError: The table is missing and creation is disabled
            TableNotActiveError: The table did not become ACTIVE in time
            CacheStoreError: A describe/create call failed
            OperationCancelledError: The cancellation signal was set
        """
        descriptor = self._descriptor
        if descriptor is not None:
            return descriptor
        if self._fatal_error is not None:
            raise self._fatal_error

        self._acquire(cancel_event)
        try:
            if self._descriptor is not None:
                return self._descriptor
            if self._fatal_error is not None:
                raise self._fatal_error

            self._state = ResolverState.RESOLVING
            self._log.info("table_resolution_started")
            try:
                descriptor = self._resolve_once(cancel_event)
            except (SchemaMismatchError, TableNotFoundError) as e:
                self._fatal_error = e
                self._state = ResolverState.FAILED
                self._log.error("table_resolution_failed", error=str(e), fatal=True)
                raise
            except (CacheStoreError, TableNotActiveError, OperationCancelledError) as e:
                self._state = ResolverState.UNRESOLVED
                self._log.warning("table_resolution_failed", error=str(e), fatal=False)
                raise
            except BaseException:
                self._state = ResolverState.UNRESOLVED
                raise

            self._descriptor = descriptor
            self._state = ResolverState.READY
            self._log.info("table_resolution_ready", status=descriptor.status)
            return descriptor
        finally:
            self._lock.release()

    def _acquire(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is None:
            self._lock.acquire()
            return
        while not self._lock.acquire(timeout=_LOCK_POLL_SECONDS):
            if cancel_event.is_set():
                raise OperationCancelledError("table_resolver.resolve")

    def _resolve_once(
        self, cancel_event: Optional[threading.Event]
    ) -> TableDescriptor:
        table_name = self._options.table_name
        result = self._client.describe_table(table_name, cancel_event=cancel_event)

        if result.is_success:
            table = result.data["Table"]
            self._validate(table)
            if table.get("TableStatus") == TABLE_STATUS_CREATING:
                table = self._wait_until_active(cancel_event)
            return self._descriptor_from(table)

        if not result.is_not_found:
            raise CacheStoreError("describe_table", result)

        if self._options.creation_policy is TableCreationPolicy.REQUIRE_EXISTING:
            raise TableNotFoundError(table_name)

        return self._create_table(cancel_event)

    def _create_table(
        self, cancel_event: Optional[threading.Event]
    ) -> TableDescriptor:
        table_name = self._options.table_name
        self._log.info(
            "table_creation_started",
            partition_key=self._options.partition_key_attribute,
        )
        result = self._client.create_table(
            table_name,
            self._options.partition_key_attribute,
            cancel_event=cancel_event,
        )
        if not result.is_success:
            raise CacheStoreError("create_table", result)

        # Conflicts come back as success without a TableDescription.
        created_here = result.data is not None
        if not created_here:
            self._log.info("table_creation_raced", reason=result.message)

        table = self._wait_until_active(cancel_event)
        self._validate(table)

        if created_here and self._options.enable_ttl_on_create:
            self._enable_ttl(cancel_event)

        return self._descriptor_from(table)

    def _wait_until_active(
        self, cancel_event: Optional[threading.Event]
    ) -> Dict[str, Any]:
        table_name = self._options.table_name
        result = self._client.wait_until_active(
            table_name,
            poll_interval_seconds=self._options.table_poll_interval_seconds,
            max_attempts=self._options.table_max_poll_attempts,
            cancel_event=cancel_event,
        )
        if result.is_success:
            return result.data["Table"]
        if result.error_code == "TableNotActive":
            raise TableNotActiveError(table_name, result.message)
        raise CacheStoreError("describe_table", result)

    def _enable_ttl(self, cancel_event: Optional[threading.Event]) -> None:
        attribute = self._options.expiration_attribute
        result = self._client.update_time_to_live(
            self._options.table_name, attribute, cancel_event=cancel_event
        )
        if result.is_success:
            self._log.info("table_ttl_enabled", attribute=attribute)
        else:
            self._log.warning(
                "table_ttl_enable_failed",
                attribute=attribute,
                error=result.message,
                code=result.error_code,
            )

    def _validate(self, table: Dict[str, Any]) -> None:
        verdict = validate_table_schema(table, self._options.partition_key_attribute)
        if not verdict.conforms:
            raise SchemaMismatchError(
                self._options.table_name, verdict.reason, verdict.detail
            )

    def _descriptor_from(self, table: Dict[str, Any]) -> TableDescriptor:
        return TableDescriptor(
            name=table.get("TableName", self._options.table_name),
            partition_key_attribute=self._options.partition_key_attribute,
            status=table.get("TableStatus", TABLE_STATUS_ACTIVE),
            arn=table.get("TableArn"),
        )
