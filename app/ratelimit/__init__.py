"""Rate limiting package for per-identity sliding-window admission."""

from .interfaces import CounterStorePort, RateLimitDecision, RateLimitPolicy
from .limiter import SlidingWindowRateLimiter
from .memory_counter_store import InMemoryCounterStore
from .redis_counter_store import RedisCounterStore

__all__ = [
	"CounterStorePort",
	"InMemoryCounterStore",
	"RateLimitDecision",
	"RateLimitPolicy",
	"RedisCounterStore",
	"SlidingWindowRateLimiter",
]
