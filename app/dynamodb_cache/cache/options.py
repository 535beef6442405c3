"""Immutable cache configuration snapshot."""

from dataclasses import dataclass
from typing import Optional

from dynamodb_cache.configuration.cache import CacheSettings, TableCreationPolicy


@dataclass(frozen=True)
class CacheOptions:
    """Configuration snapshot taken when a cache engine is built.

    Attributes:
        table_name: Backing DynamoDB table (required)
        creation_policy: Create the table when missing, or require it to exist
        partition_key_attribute: Name of the string hash key attribute
        partition_key_prefix: Prefix prepended to every cache key
        expiration_attribute: Attribute holding the current deadline (epoch seconds)
        default_absolute_expiration_seconds: Absolute lifetime applied when a
            write specifies no expiration
        default_sliding_expiration_seconds: Sliding window applied when a
            write specifies no expiration
        consistent_reads: Use strongly consistent reads
        table_poll_interval_seconds: Delay between table status polls
        table_max_poll_attempts: Status polls before giving up
        enable_ttl_on_create: Enable native TTL on tables this cache creates
    """

    table_name: str
    creation_policy: TableCreationPolicy = TableCreationPolicy.CREATE_IF_MISSING
    partition_key_attribute: str = "id"
    partition_key_prefix: str = ""
    expiration_attribute: str = "expires_at"
    default_absolute_expiration_seconds: Optional[float] = None
    default_sliding_expiration_seconds: Optional[float] = None
    consistent_reads: bool = True
    table_poll_interval_seconds: float = 2.0
    table_max_poll_attempts: int = 60
    enable_ttl_on_create: bool = True

    def __post_init__(self) -> None:
        if not self.table_name:
            raise ValueError("table_name is required")
        if not self.partition_key_attribute:
            raise ValueError("partition_key_attribute must not be empty")
        if not self.expiration_attribute:
            raise ValueError("expiration_attribute must not be empty")
        if self.expiration_attribute == self.partition_key_attribute:
            raise ValueError("expiration_attribute must differ from the partition key")
        for name in (
            "default_absolute_expiration_seconds",
            "default_sliding_expiration_seconds",
        ):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive")
        if self.table_max_poll_attempts < 1:
            raise ValueError("table_max_poll_attempts must be at least 1")

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> "CacheOptions":
        """Build options from the environment-backed cache settings."""
        return cls(
            table_name=settings.table_name,
            creation_policy=settings.creation_policy,
            partition_key_attribute=settings.partition_key,
            partition_key_prefix=settings.key_prefix,
            expiration_attribute=settings.expiration_attribute,
            default_absolute_expiration_seconds=settings.default_absolute_expiration_seconds,
            default_sliding_expiration_seconds=settings.default_sliding_expiration_seconds,
            consistent_reads=settings.consistent_reads,
            table_poll_interval_seconds=settings.poll_interval_seconds,
            table_max_poll_attempts=settings.max_poll_attempts,
            enable_ttl_on_create=settings.enable_ttl,
        )
