"""Distributed cache backed by a single DynamoDB table.

Public API:
    - DynamoDBDistributedCache: get/set/refresh/remove over opaque bytes
    - CacheOptions: immutable configuration snapshot
    - TableResolver: lazy, once-only table binding (and optional creation)
    - ExpirationPolicy: absolute/sliding deadline arithmetic
    - validate_table_schema: key schema compatibility check

Usage:
    from dynamodb_cache.cache import CacheOptions, DynamoDBDistributedCache

    cache = DynamoDBDistributedCache(client, CacheOptions(table_name="cache"))
    cache.set("key", b"value", sliding_expiration=timedelta(minutes=20))
    value = cache.get("key")
"""

from dynamodb_cache.cache.base import DistributedCache
from dynamodb_cache.cache.engine import DynamoDBDistributedCache
from dynamodb_cache.cache.errors import (
    CacheError,
    CacheStoreError,
    SchemaMismatchError,
    TableNotActiveError,
    TableNotFoundError,
    TableResolutionError,
)
from dynamodb_cache.cache.expiration import (
    ExpirationPolicy,
    ExpirationState,
    ReadDecision,
)
from dynamodb_cache.cache.items import CacheItem, CacheItemCodec
from dynamodb_cache.cache.options import CacheOptions
from dynamodb_cache.cache.resolver import ResolverState, TableDescriptor, TableResolver
from dynamodb_cache.cache.schema import (
    SchemaRejectReason,
    SchemaVerdict,
    validate_table_schema,
)
from dynamodb_cache.configuration.cache import TableCreationPolicy
from dynamodb_cache.operations.cancellation import OperationCancelledError

__all__ = [
    "DistributedCache",
    "DynamoDBDistributedCache",
    "CacheOptions",
    "TableCreationPolicy",
    "TableResolver",
    "TableDescriptor",
    "ResolverState",
    "ExpirationPolicy",
    "ExpirationState",
    "ReadDecision",
    "CacheItem",
    "CacheItemCodec",
    "SchemaRejectReason",
    "SchemaVerdict",
    "validate_table_schema",
    "CacheError",
    "CacheStoreError",
    "TableResolutionError",
    "SchemaMismatchError",
    "TableNotFoundError",
    "TableNotActiveError",
    "OperationCancelledError",
]
