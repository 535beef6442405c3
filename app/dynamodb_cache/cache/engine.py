"""DynamoDB distributed cache implementation."""

import threading
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from dynamodb_cache.cache.base import DistributedCache
from dynamodb_cache.cache.errors import CacheStoreError
from dynamodb_cache.cache.expiration import Clock, ExpirationPolicy, ExpirationState
from dynamodb_cache.cache.items import CacheItem, CacheItemCodec, format_number
from dynamodb_cache.cache.options import CacheOptions
from dynamodb_cache.cache.resolver import TableResolver
from dynamodb_cache.clients.aws.dynamodb import DynamoDBClient
from dynamodb_cache.logging import get_module_logger

logger = get_module_logger()

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def _validate_key(key: str) -> None:
    if not isinstance(key, str):
        raise TypeError(f"key must be a str, got {type(key).__name__}")
    if not key:
        raise ValueError("key must not be empty")


def _coerce_value(value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"value must be bytes, got {type(value).__name__}")
    return bytes(value)


class DynamoDBDistributedCache(DistributedCache):
    """DynamoDB-backed distributed cache.

    Every operation first resolves the backing table (once per instance),
    then issues a single-item store call. Expiration is enforced on read from
    the timestamps stored with each item:

    - an expired item is reported as a miss, then deleted on a best-effort
      basis (only if its deadline is still the one observed)
    - a live item with a sliding window gets its deadline moved forward with
      a conditional update touching only the expiration attribute

    Suitable for multi-instance deployments sharing one table; one instance is
    safe to share across threads.

    Args:
        client: DynamoDBClient for store calls
        options: CacheOptions snapshot
        clock: Optional time source (epoch seconds), defaults to time.time
        resolver: Optional TableResolver, built from client/options if omitted
    """

    def __init__(
        self,
        client: DynamoDBClient,
        options: CacheOptions,
        clock: Optional[Clock] = None,
        resolver: Optional[TableResolver] = None,
    ):
        self._client = client
        self._options = options
        self._policy = ExpirationPolicy(clock)
        self._codec = CacheItemCodec(options)
        self._resolver = resolver or TableResolver(client, options)
        self.table_name = options.table_name
        logger.info(
            "initialized_dynamodb_distributed_cache",
            table_name=self.table_name,
            creation_policy=options.creation_policy.value,
            partition_key=options.partition_key_attribute,
        )

    @property
    def options(self) -> CacheOptions:
        return self._options

    @property
    def resolver(self) -> TableResolver:
        return self._resolver

    def get(
        self, key: str, cancel_event: Optional[threading.Event] = None
    ) -> Optional[bytes]:
        """Get the cached value for a key.

        Args:
            key: Cache key.
            cancel_event: Optional cancellation signal.

        Returns:
            The cached bytes, or None if the key is absent, expired, or has
            no value attribute.

        Raises:
            TableResolutionError: If the table cannot be resolved.
            CacheStoreError: If a store call fails.
            OperationCancelledError: If cancelled.
        """
        _validate_key(key)
        self._resolver.resolve(cancel_event)
        item = self._read(key, cancel_event, value_needed=True)
        if item is None:
            return None
        logger.debug("cache_hit", key=key, has_value=item.value is not None)
        return item.value

    def set(
        self,
        key: str,
        value: bytes,
        absolute_expiration: Optional[datetime] = None,
        sliding_expiration: Optional[timedelta] = None,
        absolute_expiration_relative_to_now: Optional[timedelta] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """Store a value, replacing any existing item for the key.

        When no expiration argument is given the configured defaults apply.

        Args:
            key: Cache key.
            value: Bytes to cache (may be empty).
            absolute_expiration: Timezone-aware hard deadline.
            sliding_expiration: Window reset by every read.
            absolute_expiration_relative_to_now: Hard deadline relative to now.
            cancel_event: Optional cancellation signal.

        Raises:
            ValueError: On an empty key, a past or naive absolute deadline,
                both absolute forms at once, or a non-positive window.
            TypeError: On a non-str key or non-bytes value.
            TableResolutionError: If the table cannot be resolved.
            CacheStoreError: If the write fails.
        """
        _validate_key(key)
        payload = _coerce_value(value)
        if absolute_expiration is not None and absolute_expiration_relative_to_now is not None:
            raise ValueError(
                "absolute_expiration and absolute_expiration_relative_to_now "
                "are mutually exclusive"
            )
        if absolute_expiration is not None and absolute_expiration.tzinfo is None:
            raise ValueError("absolute_expiration must be timezone-aware")

        self._resolver.resolve(cancel_event)

        now = self._policy.now()
        absolute: Optional[float] = None
        if absolute_expiration is not None:
            absolute = absolute_expiration.timestamp()
        elif absolute_expiration_relative_to_now is not None:
            absolute = now + absolute_expiration_relative_to_now.total_seconds()
        sliding: Optional[float] = None
        if sliding_expiration is not None:
            sliding = sliding_expiration.total_seconds()

        if absolute is None and sliding is None:
            expiration = self._policy.compute_initial(self._options, now=now)
        else:
            expiration = self._policy.on_write(
                absolute_expires_at=absolute, sliding_window_seconds=sliding, now=now
            )

        item = CacheItem(key=key, value=payload, expiration=expiration)
        result = self._client.put_item(
            self.table_name,
            Item=self._codec.to_item(item),
            cancel_event=cancel_event,
        )
        if not result.is_success:
            raise CacheStoreError("put_item", result)
        logger.debug(
            "cache_set",
            key=key,
            size=len(payload),
            expires_at=expiration.expires_at,
        )

    def refresh(
        self, key: str, cancel_event: Optional[threading.Event] = None
    ) -> None:
        """Reset the sliding window of a key without reading its value.

        Absent or expired keys are a silent no-op.
        """
        _validate_key(key)
        self._resolver.resolve(cancel_event)
        self._read(key, cancel_event, value_needed=False)

    def remove(
        self, key: str, cancel_event: Optional[threading.Event] = None
    ) -> None:
        """Delete the item for a key. Deleting an absent key succeeds."""
        _validate_key(key)
        self._resolver.resolve(cancel_event)
        result = self._client.delete_item(
            self.table_name, Key=self._codec.key(key), cancel_event=cancel_event
        )
        if not result.is_success:
            raise CacheStoreError("delete_item", result)
        logger.debug("cache_removed", key=key)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with DynamoDB backend information.
        """
        return {
            "backend": "dynamodb",
            "table_name": self.table_name,
            "resolver_state": self._resolver.state.value,
            "partition_key": self._options.partition_key_attribute,
            "key_prefix": self._options.partition_key_prefix,
            "expiration_attribute": self._options.expiration_attribute,
            "consistent_reads": self._options.consistent_reads,
        }

    def _read(
        self,
        key: str,
        cancel_event: Optional[threading.Event],
        value_needed: bool,
    ) -> Optional[CacheItem]:
        params: Dict[str, Any] = {"ConsistentRead": self._options.consistent_reads}
        if not value_needed:
            params.update(self._codec.expiration_projection())

        result = self._client.get_item(
            self.table_name,
            Key=self._codec.key(key),
            cancel_event=cancel_event,
            **params,
        )
        if not result.is_success:
            raise CacheStoreError("get_item", result)

        attributes = (result.data or {}).get("Item")
        if not attributes:
            logger.debug("cache_miss", key=key)
            return None

        item = self._codec.from_item(attributes)
        decision = self._policy.on_read(item.expiration)
        if not decision.is_live:
            logger.debug(
                "cache_miss_expired", key=key, expires_at=item.expiration.expires_at
            )
            self._delete_expired(key, item.expiration, cancel_event)
            return None

        refreshed = decision.refreshed
        if refreshed is not None and refreshed.expires_at != item.expiration.expires_at:
            self._slide(key, item.expiration, refreshed, cancel_event)
        return item

    def _slide(
        self,
        key: str,
        observed: ExpirationState,
        refreshed: ExpirationState,
        cancel_event: Optional[threading.Event],
    ) -> None:
        values = {":expires_at": {"N": format_number(refreshed.expires_at)}}
        if observed.expires_at is None:
            # Row written without a deadline attribute.
            condition = "attribute_exists(#pk) AND attribute_not_exists(#exp)"
        else:
            condition = "attribute_exists(#pk) AND #exp = :observed"
            values[":observed"] = {"N": format_number(observed.expires_at)}

        result = self._client.update_item(
            self.table_name,
            Key=self._codec.key(key),
            cancel_event=cancel_event,
            UpdateExpression="SET #exp = :expires_at",
            ConditionExpression=condition,
            ExpressionAttributeNames={
                "#pk": self._options.partition_key_attribute,
                "#exp": self._options.expiration_attribute,
            },
            ExpressionAttributeValues=values,
        )
        if result.is_success:
            logger.debug("cache_refreshed", key=key, expires_at=refreshed.expires_at)
            return
        if result.error_code == CONDITIONAL_CHECK_FAILED:
            # A concurrent set or refresh already replaced the deadline.
            logger.debug("cache_refresh_superseded", key=key)
            return
        raise CacheStoreError("update_item", result)

    def _delete_expired(
        self,
        key: str,
        observed: ExpirationState,
        cancel_event: Optional[threading.Event],
    ) -> None:
        try:
            result = self._client.delete_item(
                self.table_name,
                Key=self._codec.key(key),
                cancel_event=cancel_event,
                ConditionExpression="#exp = :observed",
                ExpressionAttributeNames={"#exp": self._options.expiration_attribute},
                ExpressionAttributeValues={
                    ":observed": {"N": format_number(observed.expires_at)}
                },
            )
        except Exception as e:  # pylint: disable=broad-except
            logger.warning("expired_item_cleanup_error", key=key, error=str(e))
            return

        if result.is_success:
            logger.debug("expired_item_deleted", key=key)
        elif result.error_code == CONDITIONAL_CHECK_FAILED:
            logger.debug("expired_item_replaced", key=key)
        else:
            logger.warning(
                "expired_item_cleanup_failed",
                key=key,
                error=result.message,
                code=result.error_code,
            )
