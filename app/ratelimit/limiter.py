"""Sliding-window rate limiter over an atomic counter store."""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from .interfaces import CounterStorePort, RateLimitDecision, RateLimitPolicy

logger = logging.getLogger(__name__)


def _ratelimit_now_ms() -> int:
    """Return current epoch time in milliseconds."""

    return int(time.time() * 1000)


class SlidingWindowRateLimiter:
    """Admit at most `max_requests` per identity in any trailing window.

    Counter store failures admit the request (fail open) and are logged as
    warnings; no exception escapes `rate_limit_check`.
    """

    def __init__(
        self,
        counter_store: CounterStorePort,
        policy: RateLimitPolicy,
        clock_ms: Callable[[], int] | None = None,
    ):
        """Initialize rate limiter.

        Args:
            counter_store: Atomic counter backend.
            policy: Window and limit configuration.
            clock_ms: Optional epoch-millisecond clock override.

        Raises:
            ValueError: Raised when dependencies or policy values are invalid.
        """

        if counter_store is None:
            raise ValueError("counter_store must not be None")
        if policy.window_ms <= 0:
            raise ValueError("policy.window_ms must be > 0")
        if policy.max_requests < 1:
            raise ValueError("policy.max_requests must be >= 1")

        self._counter_store = counter_store
        self._policy = policy
        self._clock_ms = clock_ms or _ratelimit_now_ms

    @property
    def policy(self) -> RateLimitPolicy:
        """Return the active policy."""

        return self._policy

    def rate_limit_store_health(self) -> bool:
        """Return whether the counter store answers."""

        return self._counter_store.counter_health()

    def rate_limit_check(self, identity: str) -> RateLimitDecision:
        """Record one request for an identity and decide admission.

        Args:
            identity: Caller identity (token subject or client address).

        Returns:
            RateLimitDecision: Admission verdict with header values.
        """

        now_ms = self._clock_ms()
        window_ms = self._policy.window_ms
        max_requests = self._policy.max_requests
        key = f"{self._policy.key_prefix}{identity}"

        try:
            request_count = self._counter_store.counter_record_and_count(key, now_ms, window_ms)
        except Exception as error:  # pylint: disable=broad-exception-caught
            logger.warning("rate limiter store failed, admitting request identity=%s error=%s", identity, error)
            return RateLimitDecision(allowed=True, limit=max_requests, remaining=max_requests, fail_open=True)

        if request_count > max_requests:
            return RateLimitDecision(
                allowed=False,
                limit=max_requests,
                remaining=0,
                retry_after_seconds=math.ceil(window_ms / 1000),
            )

        window_start_ms = now_ms - window_ms
        return RateLimitDecision(
            allowed=True,
            limit=max_requests,
            remaining=max(0, max_requests - request_count),
            reset_epoch_seconds=math.ceil((window_start_ms + window_ms) / 1000),
        )
