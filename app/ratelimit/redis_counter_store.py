"""Redis sorted-set counter store for sliding-window rate limiting."""

from __future__ import annotations

from typing import Any
import uuid

import redis

from .interfaces import CounterStorePort


class RedisCounterStore(CounterStorePort):
    """Counter store running each update as one MULTI/EXEC transaction."""

    def __init__(self, client: Any):
        """Initialize counter store.

        Args:
            client: `redis.Redis` client or compatible object.

        Raises:
            ValueError: Raised when client is None.
        """

        if client is None:
            raise ValueError("client must not be None")
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str) -> RedisCounterStore:
        """Build a counter store from a Redis URL.

        Args:
            redis_url: Redis connection URL.

        Returns:
            RedisCounterStore: Store bound to a new client.

        Raises:
            ValueError: Raised when the URL is blank.
        """

        if not redis_url.strip():
            raise ValueError("redis_url must not be blank")
        return cls(redis.Redis.from_url(redis_url.strip(), decode_responses=True))

    def counter_record_and_count(self, key: str, now_ms: int, window_ms: int) -> int:
        """Record one request and count the window; see `CounterStorePort`."""

        member = f"{now_ms}-{uuid.uuid4().hex}"
        try:
            pipeline = self._client.pipeline(transaction=True)
            pipeline.zremrangebyscore(key, 0, now_ms - window_ms)
            pipeline.zadd(key, {member: now_ms})
            pipeline.zcard(key)
            pipeline.pexpire(key, window_ms)
            results = pipeline.execute()
        except redis.ConnectionError as error:
            raise ConnectionError("redis counter store is unreachable") from error
        except redis.RedisError as error:
            raise RuntimeError("redis counter update failed") from error

        return int(results[2])

    def counter_health(self) -> bool:
        """Return whether Redis answers PING."""

        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False
