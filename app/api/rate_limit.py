"""HTTP middleware applying the sliding-window rate limiter."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.domain import AuthorizationError
from app.ratelimit import RateLimitDecision, SlidingWindowRateLimiter

from .auth import JwtAuthValidator
from .errors import api_error_payload

logger = logging.getLogger(__name__)

RATE_LIMITED_PATH_PREFIXES = ("/v1/",)
RATE_LIMITED_PATHS = ("/me",)


def api_resolve_rate_limit_identity(request: Request, auth_validator: JwtAuthValidator | None) -> str:
    """Resolve the rate-limit identity of one request.

    Order: verified bearer subject, first `X-Forwarded-For` entry, `X-Real-IP`,
    socket peer host, then `unknown`.

    Args:
        request: Incoming request.
        auth_validator: Optional validator used to read the bearer subject.

    Returns:
        str: Identity string.
    """

    authorization = request.headers.get("authorization")
    if auth_validator is not None and authorization:
        try:
            return auth_validator.auth_validate(authorization).subject_id
        except AuthorizationError:
            pass

    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_forwarded = forwarded_for.split(",")[0].strip()
    if first_forwarded:
        return first_forwarded

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


def api_rate_limit_applies(path: str) -> bool:
    """Return whether a request path is subject to rate limiting."""

    return path in RATE_LIMITED_PATHS or path.startswith(RATE_LIMITED_PATH_PREFIXES)


def api_rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """Build rate limit headers for an admitted request; empty when failing open."""

    if decision.fail_open:
        return {}
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
    }
    if decision.reset_epoch_seconds is not None:
        headers["X-RateLimit-Reset"] = str(decision.reset_epoch_seconds)
    return headers


def api_install_rate_limit_middleware(
    application: FastAPI,
    rate_limiter: SlidingWindowRateLimiter,
    auth_validator: JwtAuthValidator | None = None,
) -> None:
    """Install the rate limit middleware on an application.

    Args:
        application: Application to configure.
        rate_limiter: Limiter deciding admission.
        auth_validator: Optional validator used for identity resolution.

    Returns:
        None: Middleware is installed as side effect.

    Raises:
        ValueError: Raised when rate_limiter is None.
    """

    if rate_limiter is None:
        raise ValueError("rate_limiter must not be None")

    @application.middleware("http")
    async def api_rate_limit(request: Request, call_next):
        if not api_rate_limit_applies(request.url.path):
            return await call_next(request)

        identity = api_resolve_rate_limit_identity(request, auth_validator)
        decision = await run_in_threadpool(rate_limiter.rate_limit_check, identity)
        if not decision.allowed:
            logger.info("request rate limited identity=%s path=%s", identity, request.url.path)
            return JSONResponse(
                content=api_error_payload("RATE_LIMIT_EXCEEDED", "Too many requests"),
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                headers={
                    "Retry-After": str(decision.retry_after_seconds),
                    "X-RateLimit-Limit": str(decision.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers.update(api_rate_limit_headers(decision))
        return response
