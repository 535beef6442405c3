"""Distributed cache configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from dynamodb_cache.configuration.aws import AwsSettings
from dynamodb_cache.configuration.cache import CacheSettings


class Settings(BaseSettings):
    """Configuration settings - main aggregator.

    Aggregates the domain-specific settings into a single configuration object:

    - **aws**: Region, endpoint, role and store-adapter retries
    - **cache**: Table, creation policy, expiration defaults and polling

    Environment Variables:
        PREFIX: Environment prefix for non-production deployments
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Example:
        ```python
        from dynamodb_cache.services import get_settings

        settings = get_settings()

        table = settings.cache.table_name
        aws_region = settings.aws.AWS_REGION
        ```
    """

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    aws: AwsSettings
    cache: CacheSettings

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            "aws": AwsSettings,
            "cache": CacheSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)
