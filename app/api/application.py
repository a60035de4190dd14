"""FastAPI application factory for the analysis service.

This module composes routers, error handlers, rate limiting and the
background worker shutdown hook.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from app.adapters import AnalyzerPort, WebSocketPushChannel
from app.config import AppSettings
from app.db import ConnectionRegistryPort, DatabaseHealthPort
from app.jobs import AnalysisOrchestratorPort, ThreadPoolTaskSupervisor
from app.notifications import NotificationFanout
from app.ratelimit import SlidingWindowRateLimiter

from .auth import JwtAuthValidator
from .errors import api_register_exception_handlers
from .rate_limit import api_install_rate_limit_middleware
from .routers import (
    api_create_analysis_router,
    api_create_health_router,
    api_create_profile_router,
    api_create_realtime_router,
)

logger = logging.getLogger(__name__)


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    analyzer: AnalyzerPort,
    analysis_orchestrator: AnalysisOrchestratorPort,
    auth_validator: JwtAuthValidator,
    rate_limiter: SlidingWindowRateLimiter,
    connection_registry: ConnectionRegistryPort,
    push_channel: WebSocketPushChannel,
    notification_fanout: NotificationFanout,
    task_supervisor: ThreadPoolTaskSupervisor | None = None,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings.
        db_health_service: Database health service used by health endpoints.
        analyzer: Analyzer adapter probed by health endpoints.
        analysis_orchestrator: Job orchestrator behind analysis endpoints.
        auth_validator: Bearer token validator.
        rate_limiter: Per-identity request limiter.
        connection_registry: Realtime connection directory.
        push_channel: Process-local websocket registry.
        notification_fanout: Fan-out used by the realtime relay.
        task_supervisor: Optional background supervisor shut down with the app.

    Returns:
        FastAPI: Framework application instance.
    """

    @asynccontextmanager
    async def api_lifespan(_application: FastAPI):
        yield
        if task_supervisor is not None:
            await run_in_threadpool(task_supervisor.supervisor_shutdown, settings.job_drain_on_shutdown)
        adapter_close = getattr(analyzer, "adapter_close", None)
        if adapter_close is not None:
            adapter_close()
        logger.info("application shutdown complete")

    application = FastAPI(title="Analysis Hub", lifespan=api_lifespan)

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service identity for bootstrap verification."""

        return {
            "service": "analysis-hub",
            "status": "ready",
            "environment": settings.environment_name,
        }

    api_register_exception_handlers(application)
    api_install_rate_limit_middleware(application, rate_limiter=rate_limiter, auth_validator=auth_validator)

    application.include_router(
        api_create_health_router(db_health_service=db_health_service, analyzer=analyzer, rate_limiter=rate_limiter)
    )
    application.include_router(
        api_create_analysis_router(
            settings=settings,
            analysis_orchestrator=analysis_orchestrator,
            auth_validator=auth_validator,
        )
    )
    application.include_router(api_create_profile_router(auth_validator=auth_validator))
    application.include_router(
        api_create_realtime_router(
            auth_validator=auth_validator,
            connection_registry=connection_registry,
            push_channel=push_channel,
            notification_fanout=notification_fanout,
        )
    )

    return application
