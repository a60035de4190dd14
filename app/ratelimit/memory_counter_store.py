"""In-process counter store for single-instance deployments and tests."""

from __future__ import annotations

import threading

from .interfaces import CounterStorePort


class InMemoryCounterStore(CounterStorePort):
    """Lock-guarded per-key timestamp lists with the Redis store semantics.

    Keys expire `window_ms` after their last write, like `PEXPIRE`; expired keys
    are swept on every call so idle identities do not accumulate.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, list[int]] = {}
        self._expires_at_ms: dict[str, int] = {}

    def counter_record_and_count(self, key: str, now_ms: int, window_ms: int) -> int:
        """Record one request and count the window; see `CounterStorePort`."""

        window_start_ms = now_ms - window_ms
        with self._lock:
            self._counter_evict_expired(now_ms)
            timestamps = [stamp for stamp in self._entries.get(key, []) if stamp > window_start_ms]
            timestamps.append(now_ms)
            self._entries[key] = timestamps
            self._expires_at_ms[key] = now_ms + window_ms
            return len(timestamps)

    def counter_key_count(self) -> int:
        """Return the number of live keys."""

        with self._lock:
            return len(self._entries)

    def _counter_evict_expired(self, now_ms: int) -> None:
        """Drop every key whose expiry has passed; caller holds the lock."""

        expired_keys = [key for key, expires_at_ms in self._expires_at_ms.items() if expires_at_ms <= now_ms]
        for key in expired_keys:
            self._entries.pop(key, None)
            self._expires_at_ms.pop(key, None)

    def counter_health(self) -> bool:
        """Return healthy; the store lives in process memory."""

        return True
