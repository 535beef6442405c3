"""Distributed cache abstract base class."""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Dict, Optional


class DistributedCache(ABC):
    """Abstract base class for distributed cache implementations.

    Values are opaque bytes addressed by string keys. Entries may carry a
    sliding expiration, an absolute expiration, or both. Misses (absent or
    expired keys) are reported as None, never as errors.
    """

    @abstractmethod
    def get(
        self, key: str, cancel_event: Optional[threading.Event] = None
    ) -> Optional[bytes]:
        """Get the cached value, refreshing its sliding window.

        Args:
            key: Cache key.
            cancel_event: Optional cancellation signal.

        Returns:
            Cached bytes, or None on a miss.
        """
        pass

    @abstractmethod
    def set(
        self,
        key: str,
        value: bytes,
        absolute_expiration: Optional[datetime] = None,
        sliding_expiration: Optional[timedelta] = None,
        absolute_expiration_relative_to_now: Optional[timedelta] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key.
            value: Bytes to cache.
            absolute_expiration: Timezone-aware hard deadline.
            sliding_expiration: Window reset by every read.
            absolute_expiration_relative_to_now: Hard deadline relative to now.
            cancel_event: Optional cancellation signal.
        """
        pass

    @abstractmethod
    def refresh(
        self, key: str, cancel_event: Optional[threading.Event] = None
    ) -> None:
        """Reset the sliding window without transferring the value."""
        pass

    @abstractmethod
    def remove(
        self, key: str, cancel_event: Optional[threading.Event] = None
    ) -> None:
        """Remove the entry. Removing an absent key is not an error."""
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with cache statistics (implementation-specific).
        """
        pass
