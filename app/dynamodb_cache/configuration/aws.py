"""AWS integration settings."""

from typing import Optional

from pydantic import Field

from dynamodb_cache.configuration.base import IntegrationSettings


class AwsSettings(IntegrationSettings):
    """AWS configuration settings.

    Environment Variables:
        AWS_REGION: AWS region for services (default: ca-central-1)
        AWS_ENDPOINT_URL: Custom endpoint (DynamoDB Local, LocalStack)
        AWS_DYNAMODB_ROLE_ARN: Role assumed for DynamoDB calls
        AWS_MAX_RETRIES: Store-adapter retries for throttling/network errors (default: 0)

    Example:
        ```python
        from dynamodb_cache.services import get_settings

        settings = get_settings()

        region = settings.aws.AWS_REGION
        ```
    """

    AWS_REGION: str = Field(default="ca-central-1", alias="AWS_REGION")
    ENDPOINT_URL: Optional[str] = Field(default=None, alias="AWS_ENDPOINT_URL")
    DYNAMODB_ROLE_ARN: str = Field(default="", alias="AWS_DYNAMODB_ROLE_ARN")
    MAX_RETRIES: int = Field(default=0, ge=0, alias="AWS_MAX_RETRIES")

    @property
    def SERVICE_ROLE_MAP(self) -> dict[str, str]:
        """Mapping of service names to their associated role ARNs.

        Returns:
            Dict mapping service identifiers to role ARNs
        """
        return {"dynamodb": self.DYNAMODB_ROLE_ARN}
