"""Configuration module - public API.

Centralized configuration management using Pydantic BaseSettings with
domain-based organization.

Exports:
    Settings: Main settings class
    AwsSettings: AWS connection settings
    CacheSettings: Distributed cache settings
    TableCreationPolicy: Table creation policy enum

Example:
    ```python
    from dynamodb_cache.services import get_settings

    settings = get_settings()
    table_name = settings.cache.table_name
    ```
"""

from dynamodb_cache.configuration.aws import AwsSettings
from dynamodb_cache.configuration.cache import CacheSettings, TableCreationPolicy
from dynamodb_cache.configuration.settings import Settings

__all__ = ["Settings", "AwsSettings", "CacheSettings", "TableCreationPolicy"]
