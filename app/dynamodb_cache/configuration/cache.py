"""Distributed cache settings."""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from dynamodb_cache.configuration.base import InfrastructureSettings


class TableCreationPolicy(str, Enum):
    """What to do when the configured table does not exist."""

    CREATE_IF_MISSING = "create_if_missing"
    REQUIRE_EXISTING = "require_existing"


class CacheSettings(InfrastructureSettings):
    """DynamoDB distributed cache configuration.

    Environment Variables:
        DYNAMODB_CACHE_TABLE_NAME: Backing table name (required to build a cache)
        DYNAMODB_CACHE_CREATION_POLICY: 'create_if_missing' or 'require_existing'
        DYNAMODB_CACHE_PARTITION_KEY: Partition key attribute name (default: id)
        DYNAMODB_CACHE_KEY_PREFIX: Prefix prepended to every cache key
        DYNAMODB_CACHE_EXPIRATION_ATTRIBUTE: Attribute holding the current
            deadline, also used as the native TTL attribute (default: expires_at)
        DYNAMODB_CACHE_DEFAULT_ABSOLUTE_EXPIRATION_SECONDS: Default absolute
            lifetime applied when a write specifies no expiration
        DYNAMODB_CACHE_DEFAULT_SLIDING_EXPIRATION_SECONDS: Default sliding
            window applied when a write specifies no expiration
        DYNAMODB_CACHE_CONSISTENT_READS: Use strongly consistent reads (default: True)
        DYNAMODB_CACHE_POLL_INTERVAL_SECONDS: Delay between table status polls (default: 2)
        DYNAMODB_CACHE_MAX_POLL_ATTEMPTS: Status polls before giving up (default: 60)
        DYNAMODB_CACHE_ENABLE_TTL: Enable native TTL on tables the cache creates (default: True)

    Example:
        ```python
        from dynamodb_cache.services import get_settings

        settings = get_settings()

        if settings.cache.creation_policy is TableCreationPolicy.REQUIRE_EXISTING:
            # Table is provisioned externally...
        ```
    """

    table_name: str = Field(
        default="",
        alias="DYNAMODB_CACHE_TABLE_NAME",
        description="DynamoDB table backing the cache",
    )
    creation_policy: TableCreationPolicy = Field(
        default=TableCreationPolicy.CREATE_IF_MISSING,
        alias="DYNAMODB_CACHE_CREATION_POLICY",
        description="Create the table when missing, or require it to exist",
    )
    partition_key: str = Field(
        default="id",
        alias="DYNAMODB_CACHE_PARTITION_KEY",
        description="Name of the string partition key attribute",
    )
    key_prefix: str = Field(
        default="",
        alias="DYNAMODB_CACHE_KEY_PREFIX",
        description="Prefix prepended to cache keys (for sharing a table)",
    )
    expiration_attribute: str = Field(
        default="expires_at",
        alias="DYNAMODB_CACHE_EXPIRATION_ATTRIBUTE",
        description="Attribute holding the current expiration deadline (epoch seconds)",
    )
    default_absolute_expiration_seconds: Optional[float] = Field(
        default=None,
        alias="DYNAMODB_CACHE_DEFAULT_ABSOLUTE_EXPIRATION_SECONDS",
        description="Default absolute lifetime relative to the write",
    )
    default_sliding_expiration_seconds: Optional[float] = Field(
        default=None,
        alias="DYNAMODB_CACHE_DEFAULT_SLIDING_EXPIRATION_SECONDS",
        description="Default sliding window",
    )
    consistent_reads: bool = Field(
        default=True,
        alias="DYNAMODB_CACHE_CONSISTENT_READS",
        description="Use strongly consistent reads",
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        alias="DYNAMODB_CACHE_POLL_INTERVAL_SECONDS",
        description="Delay between table status polls while waiting for ACTIVE",
    )
    max_poll_attempts: int = Field(
        default=60,
        alias="DYNAMODB_CACHE_MAX_POLL_ATTEMPTS",
        description="Maximum table status polls before giving up",
    )
    enable_ttl: bool = Field(
        default=True,
        alias="DYNAMODB_CACHE_ENABLE_TTL",
        description="Enable native TTL on the expiration attribute of created tables",
    )

    @field_validator(
        "default_absolute_expiration_seconds", "default_sliding_expiration_seconds"
    )
    @classmethod
    def _positive_duration(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("expiration durations must be positive")
        return value

    @field_validator("poll_interval_seconds")
    @classmethod
    def _non_negative_interval(cls, value: float) -> float:
        if value < 0:
            raise ValueError("poll interval must not be negative")
        return value

    @field_validator("max_poll_attempts")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max poll attempts must be at least 1")
        return value
