"""DynamoDB client for AWS operations.

Provides type-safe access to the DynamoDB operations the distributed cache
needs (table describe/create/activation polling, TTL configuration and
single-item get/put/update/delete) with consistent error handling and
OperationResult return types.
"""

import threading
from typing import Any, Dict, Optional

import structlog

from dynamodb_cache.clients.aws import client as aws_client
from dynamodb_cache.clients.aws.session_provider import SessionProvider
from dynamodb_cache.operations.cancellation import wait_or_cancel
from dynamodb_cache.operations.result import OperationResult

logger = structlog.get_logger()

TABLE_STATUS_ACTIVE = "ACTIVE"
TABLE_STATUS_CREATING = "CREATING"


class DynamoDBClient:
    """Client for DynamoDB operations.

    All methods return OperationResult for consistent error handling and
    downstream processing. Every method accepts an optional ``cancel_event``
    (``threading.Event``); when it is set the call raises
    ``OperationCancelledError`` instead of issuing the request.

    A single low-level boto3 client is built on first use and shared across
    threads. When a role ARN is in effect a client is built per call so the
    assumed-role credentials never go stale.

    Args:
        session_provider: SessionProvider instance for credential/config management
        default_role_arn: Optional role assumed for every call
        max_retries: Retries for transient errors (throttling, network)
        backoff_factor: Base delay for exponential retry backoff
    """

    def __init__(
        self,
        session_provider: SessionProvider,
        default_role_arn: Optional[str] = None,
        max_retries: int = 0,
        backoff_factor: float = 0.5,
    ) -> None:
        self._session_provider = session_provider
        self._default_role_arn = default_role_arn
        self._max_retries = max_retries
        self._backoff_factor = backoff_factor
        self._service_name = "dynamodb"
        self._client: Optional[Any] = None
        self._client_lock = threading.Lock()
        self._logger = logger.bind(component="dynamodb_client")

    def _shared_client(self) -> Any:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = self._session_provider.get_boto3_client(
                        self._service_name
                    )
        return self._client

    def _execute(
        self,
        method: str,
        role_arn: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        treat_conflict_as_success: bool = False,
        **params,
    ) -> OperationResult:
        effective_role = (
            role_arn
            or self._default_role_arn
            or self._session_provider.get_role_arn_for_service(self._service_name)
        )
        if effective_role:
            client_kwargs = self._session_provider.build_client_kwargs(
                service_name=self._service_name, role_arn=effective_role
            )
        else:
            client_kwargs = {"client": self._shared_client()}
        return aws_client.execute_aws_api_call(
            self._service_name,
            method,
            max_retries=self._max_retries,
            backoff_factor=self._backoff_factor,
            treat_conflict_as_success=treat_conflict_as_success,
            cancel_event=cancel_event,
            **client_kwargs,
            **params,
        )

    def describe_table(
        self,
        table_name: str,
        role_arn: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> OperationResult:
        """Describe a DynamoDB table.

        Args:
            table_name: Name of the DynamoDB table
            role_arn: Optional cross-account role ARN
            cancel_event: Optional cancellation signal

        Returns:
            OperationResult with the describe_table response ({"Table": {...}}),
            NOT_FOUND if the table does not exist, or another error
        """
        return self._execute(
            "describe_table",
            role_arn=role_arn,
            cancel_event=cancel_event,
            TableName=table_name,
        )

    def create_table(
        self,
        table_name: str,
        partition_key_attribute: str,
        role_arn: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        **kwargs,
    ) -> OperationResult:
        """Create a table keyed by a single string partition key.

        A table that already exists or is being created by someone else is
        reported as success with ``data=None``; a table created by this call
        carries the ``TableDescription`` in ``data``.

        Args:
            table_name: Name of the DynamoDB table
            partition_key_attribute: Name of the string hash key attribute
            role_arn: Optional cross-account role ARN
            cancel_event: Optional cancellation signal
            **kwargs: Additional create_table parameters (Tags, etc.)

        Returns:
            OperationResult with the create_table response or error
        """
        params: Dict[str, Any] = {
            "TableName": table_name,
            "KeySchema": [{"AttributeName": partition_key_attribute, "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": partition_key_attribute, "AttributeType": "S"}
            ],
            "BillingMode": "PAY_PER_REQUEST",
        }
        params.update(kwargs)
        return self._execute(
            "create_table",
            role_arn=role_arn,
            cancel_event=cancel_event,
            treat_conflict_as_success=True,
            **params,
        )

    def wait_until_active(
        self,
        table_name: str,
        poll_interval_seconds: float = 2.0,
        max_attempts: int = 60,
        role_arn: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> OperationResult:
        """Poll describe_table until the table reports ACTIVE status.

        A NOT_FOUND answer while polling is treated as "not visible yet"
        (describe is eventually consistent right after create_table).

        Args:
            table_name: Name of the DynamoDB table
            poll_interval_seconds: Fixed delay between polls
            max_attempts: Maximum number of describe calls
            role_arn: Optional cross-account role ARN
            cancel_event: Optional cancellation signal, also interrupts the delay

        Returns:
            OperationResult with the final describe_table response once ACTIVE,
            a TRANSIENT_ERROR with error_code "TableNotActive" when attempts
            are exhausted, or the first non-retryable describe error
        """
        log = self._logger.bind(table_name=table_name, max_attempts=max_attempts)
        status = None
        for attempt in range(1, max_attempts + 1):
            result = self.describe_table(
                table_name, role_arn=role_arn, cancel_event=cancel_event
            )
            if result.is_success:
                status = (result.data or {}).get("Table", {}).get("TableStatus")
                if status == TABLE_STATUS_ACTIVE:
                    log.info("table_active", attempts=attempt)
                    return result
            elif not result.is_not_found:
                return result

            log.debug("table_not_active_yet", attempt=attempt, status=status)
            if attempt < max_attempts:
                wait_or_cancel(
                    poll_interval_seconds, cancel_event, "dynamodb.wait_until_active"
                )

        log.warning("table_activation_timed_out", last_status=status)
        return OperationResult.transient_error(
            message=f"Table {table_name} not active after {max_attempts} attempts",
            error_code="TableNotActive",
        )

    def update_time_to_live(
        self,
        table_name: str,
        attribute_name: str,
        role_arn: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> OperationResult:
        """Enable native DynamoDB TTL on the given numeric attribute."""
        return self._execute(
            "update_time_to_live",
            role_arn=role_arn,
            cancel_event=cancel_event,
            TableName=table_name,
            TimeToLiveSpecification={"Enabled": True, "AttributeName": attribute_name},
        )

    def get_item(
        self,
        table_name: str,
        Key: Dict[str, Any],
        role_arn: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        **kwargs,
    ) -> OperationResult:
        """Get an item from DynamoDB.

        Args:
            table_name: Name of the DynamoDB table
            Key: Primary key of the item (e.g., {"id": {"S": "123"}})
            role_arn: Optional cross-account role ARN
            cancel_event: Optional cancellation signal
            **kwargs: Additional DynamoDB get_item parameters
                (ConsistentRead, ProjectionExpression, ...)

        Returns:
            OperationResult with the response; ``data`` has no "Item" key
            when the item does not exist
        """
        return self._execute(
            "get_item",
            role_arn=role_arn,
            cancel_event=cancel_event,
            TableName=table_name,
            Key=Key,
            **kwargs,
        )

    def put_item(
        self,
        table_name: str,
        Item: Dict[str, Any],
        role_arn: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        **kwargs,
    ) -> OperationResult:
        """Put an item into DynamoDB.

        Args:
            table_name: Name of the DynamoDB table
            Item: Item to store (DynamoDB format with type descriptors)
            role_arn: Optional cross-account role ARN
            cancel_event: Optional cancellation signal
            **kwargs: Additional DynamoDB put_item parameters

        Returns:
            OperationResult with status
        """
        return self._execute(
            "put_item",
            role_arn=role_arn,
            cancel_event=cancel_event,
            TableName=table_name,
            Item=Item,
            **kwargs,
        )

    def update_item(
        self,
        table_name: str,
        Key: Dict[str, Any],
        role_arn: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        **kwargs,
    ) -> OperationResult:
        """Update an item in DynamoDB.

        Args:
            table_name: Name of the DynamoDB table
            Key: Primary key of the item
            role_arn: Optional cross-account role ARN
            cancel_event: Optional cancellation signal
            **kwargs: Additional DynamoDB update_item parameters
                (UpdateExpression, ConditionExpression, etc.)

        Returns:
            OperationResult with updated item data or error; a failed
            condition is a PERMANENT_ERROR with error_code
            "ConditionalCheckFailedException"
        """
        return self._execute(
            "update_item",
            role_arn=role_arn,
            cancel_event=cancel_event,
            TableName=table_name,
            Key=Key,
            **kwargs,
        )

    def delete_item(
        self,
        table_name: str,
        Key: Dict[str, Any],
        role_arn: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        **kwargs,
    ) -> OperationResult:
        """Delete an item from DynamoDB.

        Deleting a key that does not exist succeeds. With a
        ConditionExpression, a failed condition is a PERMANENT_ERROR with
        error_code "ConditionalCheckFailedException".

        Args:
            table_name: Name of the DynamoDB table
            Key: Primary key of the item to delete
            role_arn: Optional cross-account role ARN
            cancel_event: Optional cancellation signal
            **kwargs: Additional DynamoDB delete_item parameters

        Returns:
            OperationResult with status
        """
        return self._execute(
            "delete_item",
            role_arn=role_arn,
            cancel_event=cancel_event,
            TableName=table_name,
            Key=Key,
            **kwargs,
        )
