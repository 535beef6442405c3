"""AWS clients public API.

Provides the DI-friendly DynamoDB client used by the distributed cache:

    from dynamodb_cache.clients.aws import DynamoDBClient, SessionProvider

    client = DynamoDBClient(SessionProvider(region="ca-central-1"))
    result = client.get_item("my_table", {"id": {"S": "123"}})
    if result.is_success:
        item = (result.data or {}).get("Item")
"""

from dynamodb_cache.clients.aws.dynamodb import DynamoDBClient
from dynamodb_cache.clients.aws.session_provider import SessionProvider

__all__ = [
    "DynamoDBClient",
    "SessionProvider",
]
