"""Application bootstrap wiring for startup validation and dependency assembly."""

import logging

from fastapi import FastAPI

from app.adapters import HttpAnalyzerAdapter, WebSocketPushChannel
from app.api import JwtAuthValidator, create_api_application
from app.config import AppSettings, config_load_settings
from app.db import (
    SQLAlchemyAnalysisJobStore,
    SQLAlchemyConnectionDirectory,
    SQLAlchemyDatabaseHealthService,
    db_create_engine,
)
from app.jobs import AnalysisJobOrchestrator, ThreadPoolTaskSupervisor
from app.notifications import NotificationFanout
from app.ratelimit import (
    CounterStorePort,
    InMemoryCounterStore,
    RateLimitPolicy,
    RedisCounterStore,
    SlidingWindowRateLimiter,
)

logger = logging.getLogger(__name__)


def bootstrap_create_counter_store(settings: AppSettings) -> CounterStorePort:
    """Select the rate limit counter backend.

    Args:
        settings: Validated application settings.

    Returns:
        CounterStorePort: Redis store, or the in-memory store when `redis_url` is blank.
    """

    if not settings.redis_url.strip():
        logger.warning("redis_url is blank, using in-memory rate limit counters")
        return InMemoryCounterStore()
    return RedisCounterStore.from_url(settings.redis_url)


def bootstrap_create_analyzer(settings: AppSettings) -> HttpAnalyzerAdapter:
    """Build the analyzer adapter from settings."""

    return HttpAnalyzerAdapter(
        base_url=settings.analyzer_base_url,
        api_key=settings.analyzer_api_key,
        timeout_seconds=settings.analyzer_timeout_seconds,
    )


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Optional pre-loaded settings.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = db_create_engine(database_url=resolved_settings.database_url)
    db_health_service = SQLAlchemyDatabaseHealthService(engine=engine)
    job_store = SQLAlchemyAnalysisJobStore(engine=engine)
    connection_directory = SQLAlchemyConnectionDirectory(engine=engine)
    analyzer = bootstrap_create_analyzer(resolved_settings)
    push_channel = WebSocketPushChannel(send_timeout_seconds=resolved_settings.notification_send_timeout_seconds)
    notification_fanout = NotificationFanout(
        connection_directory=connection_directory,
        push_channel=push_channel,
        max_parallel_sends=resolved_settings.notification_max_parallel_sends,
    )
    task_supervisor = ThreadPoolTaskSupervisor(max_workers=resolved_settings.job_worker_max_workers)
    analysis_orchestrator = AnalysisJobOrchestrator(
        job_store=job_store,
        job_key_source=job_store,
        analyzer=analyzer,
        notification_fanout=notification_fanout,
        task_supervisor=task_supervisor,
    )
    auth_validator = JwtAuthValidator(
        secret=resolved_settings.auth_jwt_secret,
        algorithm=resolved_settings.auth_jwt_algorithm,
        audience=resolved_settings.auth_jwt_audience,
        issuer=resolved_settings.auth_jwt_issuer,
    )
    rate_limiter = SlidingWindowRateLimiter(
        counter_store=bootstrap_create_counter_store(resolved_settings),
        policy=RateLimitPolicy(
            window_ms=resolved_settings.rate_limit_window_ms,
            max_requests=resolved_settings.rate_limit_max,
            key_prefix=resolved_settings.rate_limit_key_prefix,
        ),
    )
    return create_api_application(
        settings=resolved_settings,
        db_health_service=db_health_service,
        analyzer=analyzer,
        analysis_orchestrator=analysis_orchestrator,
        auth_validator=auth_validator,
        rate_limiter=rate_limiter,
        connection_registry=connection_directory,
        push_channel=push_channel,
        notification_fanout=notification_fanout,
        task_supervisor=task_supervisor,
    )
