"""Typed interfaces for sliding-window rate limiting."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RateLimitPolicy:
    """Sliding-window limits applied per identity.

    Attributes:
        window_ms: Window length in milliseconds.
        max_requests: Maximum admitted requests per window.
        key_prefix: Prefix of the counter key for one identity.
    """

    window_ms: int = 60000
    max_requests: int = 100
    key_prefix: str = "rl:"


@dataclass(frozen=True)
class RateLimitDecision:
    """Admission verdict for one request.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Configured maximum requests per window.
        remaining: Requests left in the current window.
        reset_epoch_seconds: Epoch second reported as window reset.
        retry_after_seconds: Suggested wait for rejected requests.
        fail_open: True when the counter store failed and the request was admitted unchecked.
    """

    allowed: bool
    limit: int
    remaining: int = 0
    reset_epoch_seconds: int | None = None
    retry_after_seconds: int | None = None
    fail_open: bool = False


class CounterStorePort(Protocol):
    """Port definition for atomic sliding-window counters."""

    def counter_record_and_count(self, key: str, now_ms: int, window_ms: int) -> int:
        """Record one request and return the count inside the window, atomically.

        Entries scored `<= now_ms - window_ms` are removed, `now_ms` is added
        under a unique member, the remaining entries are counted and the key
        expiry is reset to `window_ms`.

        Args:
            key: Counter key for one identity.
            now_ms: Current epoch time in milliseconds.
            window_ms: Window length in milliseconds.

        Returns:
            int: Number of requests in the window, including this one.

        Raises:
            ConnectionError: Raised when the backing store is unreachable.
            RuntimeError: Raised when the backing store rejects the update.
        """

    def counter_health(self) -> bool:
        """Return whether the backing store answers.

        Returns:
            bool: True when the store is reachable.
        """
