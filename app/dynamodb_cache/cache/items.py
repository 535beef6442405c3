"""Cache item model and DynamoDB attribute mapping.

Item layout (DynamoDB low-level format):
    <partition key>          S  prefix + cache key
    value                    B  cached bytes (absent: no value cached)
    <expiration attribute>   N  current deadline, epoch seconds
    absolute_expires_at      N  hard deadline, epoch seconds
    sliding_window_seconds   N  sliding window length
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from dynamodb_cache.cache.expiration import ExpirationState
from dynamodb_cache.cache.options import CacheOptions

VALUE_ATTRIBUTE = "value"
ABSOLUTE_EXPIRATION_ATTRIBUTE = "absolute_expires_at"
SLIDING_WINDOW_ATTRIBUTE = "sliding_window_seconds"


@dataclass(frozen=True)
class CacheItem:
    """The unit stored per key."""

    key: str
    value: Optional[bytes]
    expiration: ExpirationState


def format_number(value: float) -> str:
    """Render a float as a DynamoDB number string (no exponent notation)."""
    return format(Decimal(repr(float(value))), "f")


def _number(attribute: Optional[Dict[str, Any]]) -> Optional[float]:
    if not attribute or "N" not in attribute:
        return None
    return float(attribute["N"])


class CacheItemCodec:
    """Maps CacheItem to and from DynamoDB attribute maps for one table layout."""

    def __init__(self, options: CacheOptions):
        self.partition_key = options.partition_key_attribute
        self.prefix = options.partition_key_prefix
        self.expiration_attribute = options.expiration_attribute

    def key(self, key: str) -> Dict[str, Any]:
        """Primary key attribute map for a cache key."""
        return {self.partition_key: {"S": f"{self.prefix}{key}"}}

    def expiration_projection(self) -> Dict[str, Any]:
        """get_item kwargs that fetch only key and expiration attributes."""
        return {
            "ProjectionExpression": "#pk, #exp, #abs, #win",
            "ExpressionAttributeNames": {
                "#pk": self.partition_key,
                "#exp": self.expiration_attribute,
                "#abs": ABSOLUTE_EXPIRATION_ATTRIBUTE,
                "#win": SLIDING_WINDOW_ATTRIBUTE,
            },
        }

    def to_item(self, item: CacheItem) -> Dict[str, Any]:
        attributes = self.key(item.key)
        if item.value is not None:
            attributes[VALUE_ATTRIBUTE] = {"B": bytes(item.value)}
        expiration = item.expiration
        if expiration.expires_at is not None:
            attributes[self.expiration_attribute] = {
                "N": format_number(expiration.expires_at)
            }
        if expiration.absolute_expires_at is not None:
            attributes[ABSOLUTE_EXPIRATION_ATTRIBUTE] = {
                "N": format_number(expiration.absolute_expires_at)
            }
        if expiration.sliding_window_seconds is not None:
            attributes[SLIDING_WINDOW_ATTRIBUTE] = {
                "N": format_number(expiration.sliding_window_seconds)
            }
        return attributes

    def from_item(self, attributes: Dict[str, Any]) -> CacheItem:
        stored_key = attributes.get(self.partition_key, {}).get("S", "")
        if self.prefix and stored_key.startswith(self.prefix):
            stored_key = stored_key[len(self.prefix) :]

        value = None
        if VALUE_ATTRIBUTE in attributes:
            value = bytes(attributes[VALUE_ATTRIBUTE].get("B", b""))

        return CacheItem(
            key=stored_key,
            value=value,
            expiration=ExpirationState(
                expires_at=_number(attributes.get(self.expiration_attribute)),
                absolute_expires_at=_number(
                    attributes.get(ABSOLUTE_EXPIRATION_ATTRIBUTE)
                ),
                sliding_window_seconds=_number(
                    attributes.get(SLIDING_WINDOW_ATTRIBUTE)
                ),
            ),
        )
