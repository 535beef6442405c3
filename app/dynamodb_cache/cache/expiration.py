"""Expiration policy for cache items.

All deadlines are epoch seconds (floats). The policy is pure timestamp
arithmetic over an injectable clock so tests can move time without sleeping.

Rules:
    - neither window: never expires (``expires_at`` is None)
    - absolute only: ``expires_at = absolute``, reads never move it
    - sliding only: ``expires_at = now + window``, every live read resets it
    - both: ``expires_at = min(now + window, absolute)``, on writes and reads
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from dynamodb_cache.cache.options import CacheOptions

Clock = Callable[[], float]


@dataclass(frozen=True)
class ExpirationState:
    """Expiration bookkeeping stored with an item.

    Attributes:
        expires_at: Current deadline; None means the item never expires
        absolute_expires_at: Hard deadline independent of reads
        sliding_window_seconds: Window re-applied on every live read
    """

    expires_at: Optional[float] = None
    absolute_expires_at: Optional[float] = None
    sliding_window_seconds: Optional[float] = None

    def is_live(self, now: float) -> bool:
        return self.expires_at is None or now < self.expires_at


@dataclass(frozen=True)
class ReadDecision:
    """Outcome of evaluating an item on read.

    ``refreshed`` is set only when the item is live and has a sliding window.
    """

    is_live: bool
    refreshed: Optional[ExpirationState] = None


def _deadline(
    now: float, absolute_expires_at: Optional[float], sliding: Optional[float]
) -> Optional[float]:
    if sliding is None:
        return absolute_expires_at
    slid = now + sliding
    if absolute_expires_at is None:
        return slid
    return min(slid, absolute_expires_at)


class ExpirationPolicy:
    """Computes and refreshes item deadlines.

    Args:
        clock: Returns the current time in epoch seconds (default: time.time)
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or time.time

    def now(self) -> float:
        return self._clock()

    def compute_initial(
        self, options: CacheOptions, now: Optional[float] = None
    ) -> ExpirationState:
        """State for a write that specifies no expiration: the option defaults."""
        now = self.now() if now is None else now
        absolute = None
        if options.default_absolute_expiration_seconds is not None:
            absolute = now + options.default_absolute_expiration_seconds
        return self.on_write(
            absolute_expires_at=absolute,
            sliding_window_seconds=options.default_sliding_expiration_seconds,
            now=now,
        )

    def on_write(
        self,
        absolute_expires_at: Optional[float] = None,
        sliding_window_seconds: Optional[float] = None,
        now: Optional[float] = None,
    ) -> ExpirationState:
        """State for a write with the requested windows.

        Raises:
            ValueError: If the absolute deadline is not in the future or the
                sliding window is not positive
        """
        now = self.now() if now is None else now
        if absolute_expires_at is not None and absolute_expires_at <= now:
            raise ValueError("absolute expiration must be in the future")
        if sliding_window_seconds is not None and sliding_window_seconds <= 0:
            raise ValueError("sliding expiration must be positive")

        return ExpirationState(
            expires_at=_deadline(now, absolute_expires_at, sliding_window_seconds),
            absolute_expires_at=absolute_expires_at,
            sliding_window_seconds=sliding_window_seconds,
        )

    def on_read(
        self, state: ExpirationState, now: Optional[float] = None
    ) -> ReadDecision:
        """Decide liveness and, for sliding items, the refreshed deadline."""
        now = self.now() if now is None else now
        if not state.is_live(now):
            return ReadDecision(is_live=False)
        if state.sliding_window_seconds is None:
            return ReadDecision(is_live=True)

        refreshed = ExpirationState(
            expires_at=_deadline(
                now, state.absolute_expires_at, state.sliding_window_seconds
            ),
            absolute_expires_at=state.absolute_expires_at,
            sliding_window_seconds=state.sliding_window_seconds,
        )
        return ReadDecision(is_live=True, refreshed=refreshed)
