"""
Dependency injection services.

Provides provider functions for the settings, AWS clients and cache engine.
"""

from dynamodb_cache.services.providers import (
    build_distributed_cache,
    get_distributed_cache,
    get_dynamodb_client,
    get_session_provider,
    get_settings,
    reset_providers,
)

__all__ = [
    "get_settings",
    "get_session_provider",
    "get_dynamodb_client",
    "get_distributed_cache",
    "build_distributed_cache",
    "reset_providers",
]
