"""Table schema validation.

Decides whether a described DynamoDB table can back the cache: exactly one
HASH key, named as expected, of string type. Pure function of its inputs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class SchemaRejectReason(Enum):
    """Why a table was rejected. Rules are checked in declaration order."""

    INVALID_KEY_SCHEMA = "invalid_key_schema"
    INVALID_KEY_NAME = "invalid_key_name"
    INVALID_KEY_TYPE = "invalid_key_type"


@dataclass(frozen=True)
class SchemaVerdict:
    """Outcome of validating a table description."""

    reason: Optional[SchemaRejectReason] = None
    detail: str = ""

    @property
    def conforms(self) -> bool:
        return self.reason is None

    @classmethod
    def conforming(cls) -> "SchemaVerdict":
        return cls()

    @classmethod
    def rejected(cls, reason: SchemaRejectReason, detail: str) -> "SchemaVerdict":
        return cls(reason=reason, detail=detail)


def validate_table_schema(
    table: Dict[str, Any], expected_partition_key_attribute: str
) -> SchemaVerdict:
    """Validate a table description against the cache's key requirements.

    Args:
        table: The "Table" element of a describe_table response
        expected_partition_key_attribute: Required name of the hash key

    Returns:
        SchemaVerdict, conforming or rejected with the first failing rule
    """
    key_schema = table.get("KeySchema") or []
    if len(key_schema) != 1 or key_schema[0].get("KeyType") != "HASH":
        roles = [element.get("KeyType") for element in key_schema]
        return SchemaVerdict.rejected(
            SchemaRejectReason.INVALID_KEY_SCHEMA,
            f"expected a single HASH key, found {roles or 'no key'}",
        )

    key_name = key_schema[0].get("AttributeName")
    if key_name != expected_partition_key_attribute:
        return SchemaVerdict.rejected(
            SchemaRejectReason.INVALID_KEY_NAME,
            f"partition key is '{key_name}', expected "
            f"'{expected_partition_key_attribute}'",
        )

    key_type = None
    for definition in table.get("AttributeDefinitions") or []:
        if definition.get("AttributeName") == key_name:
            key_type = definition.get("AttributeType")
            break
    if key_type != "S":
        return SchemaVerdict.rejected(
            SchemaRejectReason.INVALID_KEY_TYPE,
            f"partition key '{key_name}' has type {key_type}, expected S",
        )

    return SchemaVerdict.conforming()
