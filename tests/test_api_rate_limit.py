"""Tests for the HTTP rate limit middleware."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
import jwt

from app.api import JwtAuthValidator
from app.api.rate_limit import api_install_rate_limit_middleware
from app.ratelimit import InMemoryCounterStore, RateLimitPolicy, SlidingWindowRateLimiter

_SECRET = "rate-limit-secret-with-at-least-32-bytes"


class _ManualClock:
    """Epoch-millisecond clock controlled by the test."""

    def __init__(self, now_ms: int):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


class _FailingCounterStore:
    """Counter store double that is always unreachable."""

    def counter_record_and_count(self, key: str, now_ms: int, window_ms: int) -> int:
        """Raise deterministic connection error."""

        raise ConnectionError("redis unreachable")


def _build_client(limiter: SlidingWindowRateLimiter) -> TestClient:
    """Build a minimal application with the middleware installed."""

    application = FastAPI()
    api_install_rate_limit_middleware(application, limiter, JwtAuthValidator(secret=_SECRET))

    @application.get("/v1/ping")
    def ping() -> dict[str, str]:
        return {"status": "ok"}

    @application.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return TestClient(application)


def test_rate_limit_headers_count_down_then_reject_with_retry_after() -> None:
    """Verify remaining 2, 1, 0 then HTTP 429 with `Retry-After: 60`."""

    clock = _ManualClock(1_800_000_000_000)
    client = _build_client(
        SlidingWindowRateLimiter(InMemoryCounterStore(), RateLimitPolicy(window_ms=60000, max_requests=3), clock_ms=clock)
    )
    headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}

    remaining_values = []
    for _ in range(3):
        response = client.get("/v1/ping", headers=headers)
        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "3"
        remaining_values.append(response.headers["X-RateLimit-Remaining"])
    rejected = client.get("/v1/ping", headers=headers)

    assert remaining_values == ["2", "1", "0"]
    assert rejected.status_code == 429
    assert rejected.headers["Retry-After"] == "60"
    assert rejected.json()["code"] == "RATE_LIMIT_EXCEEDED"

    clock.now_ms += 60000
    recovered = client.get("/v1/ping", headers=headers)

    assert recovered.status_code == 200
    assert recovered.headers["X-RateLimit-Remaining"] == "2"


def test_rate_limit_identity_prefers_token_subject() -> None:
    """Verify callers sharing an address are limited per token subject."""

    client = _build_client(
        SlidingWindowRateLimiter(InMemoryCounterStore(), RateLimitPolicy(window_ms=60000, max_requests=1))
    )
    first_token = jwt.encode({"sub": "user-1", "org_id": "org-a"}, _SECRET, algorithm="HS256")
    second_token = jwt.encode({"sub": "user-2", "org_id": "org-a"}, _SECRET, algorithm="HS256")

    assert client.get("/v1/ping", headers={"Authorization": f"Bearer {first_token}"}).status_code == 200
    assert client.get("/v1/ping", headers={"Authorization": f"Bearer {second_token}"}).status_code == 200
    assert client.get("/v1/ping", headers={"Authorization": f"Bearer {first_token}"}).status_code == 429


def test_rate_limit_skips_unlimited_paths() -> None:
    """Verify paths outside `/v1/` and `/me` are not counted."""

    client = _build_client(
        SlidingWindowRateLimiter(InMemoryCounterStore(), RateLimitPolicy(window_ms=60000, max_requests=1))
    )

    responses = [client.get("/health") for _ in range(3)]

    assert all(response.status_code == 200 for response in responses)
    assert "X-RateLimit-Limit" not in responses[0].headers


def test_rate_limit_fails_open_without_headers() -> None:
    """Verify counter store outages admit requests and omit rate limit headers."""

    client = _build_client(
        SlidingWindowRateLimiter(_FailingCounterStore(), RateLimitPolicy(window_ms=60000, max_requests=1))
    )

    responses = [client.get("/v1/ping") for _ in range(3)]

    assert all(response.status_code == 200 for response in responses)
    assert "X-RateLimit-Remaining" not in responses[-1].headers
