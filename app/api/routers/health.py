"""Health endpoint router composition for app, database and analyzer checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.adapters import AnalyzerPort
from app.db import DatabaseHealthPort
from app.ratelimit import SlidingWindowRateLimiter


def api_create_health_router(
    db_health_service: DatabaseHealthPort,
    analyzer: AnalyzerPort,
    rate_limiter: SlidingWindowRateLimiter | None = None,
) -> APIRouter:
    """Create health-check router with database and analyzer connectivity status.

    Args:
        db_health_service: DB-layer health service interface.
        analyzer: Analyzer adapter probed for reachability.
        rate_limiter: Optional limiter whose counter store is reported. The limiter
            fails open, so a down store does not degrade the status.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")
    if analyzer is None:
        raise ValueError("analyzer must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application, database and analyzer health state.

        Returns:
            JSONResponse: Health payload, HTTP 503 when any dependency is down.
        """

        try:
            db_health = db_health_service.db_check_health()
            database_state = db_health.status
            database_detail = db_health.detail
        except ConnectionError as error:
            database_state = "down"
            database_detail = str(error)

        analyzer_state = "up" if analyzer.adapter_health() else "down"
        is_healthy = database_state != "down" and analyzer_state == "up"
        payload = {
            "status": "ok" if is_healthy else "degraded",
            "app": "up",
            "database": database_state,
            "detail": database_detail,
            "target": db_health_service.db_connection_label(),
            "analyzer": analyzer_state,
        }
        if rate_limiter is not None:
            payload["rate_limit_store"] = "up" if rate_limiter.rate_limit_store_health() else "down"
        return JSONResponse(
            content=payload,
            status_code=status.HTTP_200_OK if is_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return router
