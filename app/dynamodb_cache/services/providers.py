"""
Factory functions for dependency injection.

Provides process-scoped singleton providers for the distributed cache and the
infrastructure it is built from.
"""

from functools import lru_cache
from typing import Optional

from dynamodb_cache.cache.engine import DynamoDBDistributedCache
from dynamodb_cache.cache.expiration import Clock
from dynamodb_cache.cache.options import CacheOptions
from dynamodb_cache.clients.aws import DynamoDBClient, SessionProvider
from dynamodb_cache.configuration import Settings
from dynamodb_cache.logging import get_module_logger

logger = get_module_logger()


@lru_cache
def get_settings() -> Settings:
    """
    Get process-scoped settings singleton.

    The @lru_cache decorator ensures only ONE instance is created per process,
    even if called from multiple packages.

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


@lru_cache
def get_session_provider() -> SessionProvider:
    """Provider for the AWS session configuration (region, endpoint, roles)."""
    settings = get_settings()
    return SessionProvider(
        region=settings.aws.AWS_REGION,
        service_role_map=settings.aws.SERVICE_ROLE_MAP,
        endpoint_url=settings.aws.ENDPOINT_URL,
    )


@lru_cache
def get_dynamodb_client() -> DynamoDBClient:
    """Provider for the DynamoDB client.

    The client shares one boto3 client across threads unless a role is
    configured, in which case credentials are assumed per call, so caching
    this instance never holds stale credentials.

    Returns:
        DynamoDBClient: Configured client for all cache store calls
    """
    settings = get_settings()
    return DynamoDBClient(
        get_session_provider(),
        max_retries=settings.aws.MAX_RETRIES,
    )


def build_distributed_cache(
    settings: Settings,
    client: Optional[DynamoDBClient] = None,
    clock: Optional[Clock] = None,
) -> DynamoDBDistributedCache:
    """Build a cache engine from explicit settings.

    Args:
        settings: Settings carrying the cache section
        client: Optional DynamoDBClient, defaults to get_dynamodb_client()
        clock: Optional time source for expiration arithmetic

    Returns:
        DynamoDBDistributedCache bound to the configured table (resolved lazily)

    Raises:
        ValueError: If the cache settings do not form valid options
    """
    options = CacheOptions.from_settings(settings.cache)
    return DynamoDBDistributedCache(
        client or get_dynamodb_client(), options, clock=clock
    )


@lru_cache
def get_distributed_cache() -> DynamoDBDistributedCache:
    """
    Get the process-scoped distributed cache singleton.

    The table is resolved on first use, not here, so building the singleton
    makes no store calls.

    Returns:
        DynamoDBDistributedCache: Cached engine for the configured table.
    """
    cache = build_distributed_cache(get_settings())
    logger.info("initialized_distributed_cache", backend="dynamodb")
    return cache


def reset_providers() -> None:
    """Clear every cached provider (for testing only).

    Ensures fresh settings and a fresh cache instance between test runs.
    """
    for provider in (
        get_distributed_cache,
        get_dynamodb_client,
        get_session_provider,
        get_settings,
    ):
        provider.cache_clear()
    logger.debug("reset_providers")
