"""Job-layer analysis orchestrator: persistence, background processing and listing."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Callable, Final
import uuid

from app.adapters import AnalyzerPort
from app.db import AnalysisJobKeySourcePort, AnalysisJobStorePort
from app.domain import (
    ANALYSIS_STATUS_COMPLETED,
    ANALYSIS_STATUS_FAILED,
    ANALYSIS_STATUS_PENDING,
    ANALYSIS_STATUS_PROCESSING,
    ANALYSIS_STATUSES,
    AnalysisJob,
    AnalysisJobError,
    AnalysisJobRequest,
    AnalysisResult,
    AppError,
    InternalError,
    NotFoundError,
    ValidationError,
    domain_format_utc_timestamp,
    domain_parse_utc_timestamp,
    domain_utc_now,
)
from app.notifications import NotificationFanoutPort

from .interfaces import AnalysisListOptions, AnalysisListPage, AnalysisOrchestratorPort, TaskSupervisorPort

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_CODE: Final[str] = "UNEXPECTED_ERROR"

_ERROR_CODE_BY_TYPE: Final[tuple[tuple[type[BaseException], str], ...]] = (
    (TimeoutError, "TIMEOUT_ERROR"),
    (ConnectionError, "CONNECTION_ERROR"),
    (ValueError, "VALIDATION_ERROR"),
)


def job_resolve_error_code(error: BaseException) -> str:
    """Resolve a deterministic error code for a failed job.

    Args:
        error: Exception raised while processing.

    Returns:
        str: `error_code` attribute when present, a type-based code otherwise,
        `UNEXPECTED_ERROR` as last resort.
    """

    error_code = getattr(error, "error_code", None)
    if isinstance(error_code, str) and error_code.strip():
        return error_code
    for error_type, mapped_code in _ERROR_CODE_BY_TYPE:
        if isinstance(error, error_type):
            return mapped_code
    return UNEXPECTED_ERROR_CODE


class AnalysisJobOrchestrator(AnalysisOrchestratorPort):
    """Concrete orchestrator for analysis job lifecycle."""

    _ENTITY_NAME = "Analysis"

    def __init__(
        self,
        job_store: AnalysisJobStorePort,
        job_key_source: AnalysisJobKeySourcePort,
        analyzer: AnalyzerPort,
        notification_fanout: NotificationFanoutPort,
        task_supervisor: TaskSupervisorPort,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        """Initialize orchestrator dependencies.

        Args:
            job_store: Key/value job persistence.
            job_key_source: Enumeration of stored job keys.
            analyzer: External analyzer adapter.
            notification_fanout: Outcome notification fan-out.
            task_supervisor: Background task runner.
            clock: Optional UTC clock override.
            id_factory: Optional job identifier factory override.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies are missing.
        """

        if job_store is None:
            raise ValueError("job_store must not be None")
        if job_key_source is None:
            raise ValueError("job_key_source must not be None")
        if analyzer is None:
            raise ValueError("analyzer must not be None")
        if notification_fanout is None:
            raise ValueError("notification_fanout must not be None")
        if task_supervisor is None:
            raise ValueError("task_supervisor must not be None")

        self._job_store = job_store
        self._job_key_source = job_key_source
        self._analyzer = analyzer
        self._notification_fanout = notification_fanout
        self._task_supervisor = task_supervisor
        self._clock = clock or domain_utc_now
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

    def job_analysis_create(self, org_id: str, request: AnalysisJobRequest) -> AnalysisJob:
        """Persist a pending job and schedule its background processing.

        Args:
            org_id: Owning organization identifier.
            request: Validated job request.

        Returns:
            AnalysisJob: Persisted pending job, returned before processing starts.

        Raises:
            ValidationError: Raised when org_id is blank.
            InternalError: Raised when the job cannot be persisted.
        """

        normalized_org_id = org_id.strip()
        if not normalized_org_id:
            raise ValidationError("org_id must not be blank")

        created_at = self._clock()
        job = AnalysisJob(
            analysis_id=self._id_factory(),
            org_id=normalized_org_id,
            status=ANALYSIS_STATUS_PENDING,
            created_at=created_at,
            updated_at=created_at,
            request=request,
        )

        try:
            self._job_store.db_analysis_job_set(job)
        except Exception as error:
            logger.error("failed to persist new analysis org_id=%s error=%s", normalized_org_id, error)
            raise InternalError("Failed to create analysis") from error

        logger.info(
            "analysis created analysis_id=%s org_id=%s priority=%s",
            job.analysis_id,
            job.org_id,
            request.options.priority,
        )

        try:
            self._task_supervisor.supervisor_submit(
                f"analysis:{job.analysis_id}",
                lambda: self._job_analysis_process(job),
            )
        except RuntimeError as error:
            logger.error("failed to schedule analysis analysis_id=%s error=%s", job.analysis_id, error)

        return job

    def job_analysis_get(self, org_id: str, analysis_id: str) -> AnalysisJob:
        """Return one job owned by an organization.

        Args:
            org_id: Caller organization identifier.
            analysis_id: Job identifier.

        Returns:
            AnalysisJob: Stored job.

        Raises:
            NotFoundError: Raised when missing or owned by another organization.
            InternalError: Raised when the store cannot be read.
        """

        if not analysis_id.strip():
            raise NotFoundError(self._ENTITY_NAME, analysis_id)
        job = self._job_fetch(analysis_id)
        if job is None or job.org_id != org_id:
            raise NotFoundError(self._ENTITY_NAME, analysis_id)
        return job

    def job_analysis_list(self, org_id: str, options: AnalysisListOptions) -> AnalysisListPage:
        """Return one page of an organization's jobs, newest first.

        Listing enumerates every key in the store and filters in memory.

        Args:
            org_id: Caller organization identifier.
            options: Filter and paging options.

        Returns:
            AnalysisListPage: Page of jobs and the next cursor.

        Raises:
            ValidationError: Raised when the cursor, status or limit is invalid.
            InternalError: Raised when the store cannot be read.
        """

        if options.limit < 1:
            raise ValidationError("limit must be >= 1")
        if options.status is not None and options.status not in ANALYSIS_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(ANALYSIS_STATUSES)}")

        cursor_at: datetime | None = None
        if options.cursor:
            try:
                cursor_at = domain_parse_utc_timestamp(options.cursor)
            except ValueError as error:
                raise ValidationError("cursor must be an ISO-8601 timestamp") from error

        try:
            analysis_ids = self._job_key_source.db_analysis_job_list_keys()
        except Exception as error:
            raise InternalError("Failed to list analyses") from error

        matching_jobs: list[AnalysisJob] = []
        for analysis_id in analysis_ids:
            job = self._job_fetch(analysis_id)
            if job is None or job.org_id != org_id:
                continue
            if options.status is not None and job.status != options.status:
                continue
            if cursor_at is not None and job.created_at >= cursor_at:
                continue
            matching_jobs.append(job)

        matching_jobs.sort(key=lambda item: (item.created_at, item.analysis_id), reverse=True)
        page_items = matching_jobs[: options.limit]
        next_cursor = None
        if len(matching_jobs) > options.limit:
            next_cursor = domain_format_utc_timestamp(page_items[-1].created_at)
        return AnalysisListPage(items=tuple(page_items), next_cursor=next_cursor)

    def _job_analysis_process(self, job: AnalysisJob) -> None:
        """Run one job through the analyzer and record its outcome.

        Args:
            job: Pending job to process.

        Returns:
            None: Outcome is persisted as side effect.

        Raises:
            Exception: The analysis failure is re-raised after it was recorded.
        """

        notify = job.request.options.notify_on_completion
        try:
            self._job_analysis_update_status(job.analysis_id, ANALYSIS_STATUS_PROCESSING)
            logger.info("analysis processing analysis_id=%s", job.analysis_id)
            result = self._analyzer.adapter_analyze(job.request.context)
            self._job_analysis_update_result(job.analysis_id, result)
            logger.info("analysis completed analysis_id=%s", job.analysis_id)
            if notify:
                self._job_notify_safely(
                    job,
                    lambda: self._notification_fanout.notification_notify_complete(
                        job.org_id,
                        job.analysis_id,
                        result,
                    ),
                )
        except Exception as error:
            error_message = str(error) or type(error).__name__
            logger.warning(
                "analysis failed analysis_id=%s error_code=%s error=%s",
                job.analysis_id,
                job_resolve_error_code(error),
                error_message,
            )
            try:
                self._job_analysis_update_error(job.analysis_id, error)
            except AppError as update_error:
                logger.error(
                    "failed to record analysis failure analysis_id=%s error=%s",
                    job.analysis_id,
                    update_error.message,
                )
            if notify:
                self._job_notify_safely(
                    job,
                    lambda: self._notification_fanout.notification_notify_failed(
                        job.org_id,
                        job.analysis_id,
                        error_message,
                    ),
                )
            raise

    def _job_notify_safely(self, job: AnalysisJob, send: Callable[[], object]) -> None:
        """Run one notification call and log its failure instead of raising."""

        try:
            send()
        except Exception as error:  # pylint: disable=broad-exception-caught
            logger.warning(
                "analysis notification failed analysis_id=%s org_id=%s error=%s",
                job.analysis_id,
                job.org_id,
                error,
            )

    def _job_analysis_update_status(self, analysis_id: str, status: str) -> AnalysisJob:
        """Move one stored job to a new status without result or error."""

        job = self._job_require(analysis_id)
        return self._job_write(job.analysis_transition(status=status, updated_at=self._clock()))

    def _job_analysis_update_result(self, analysis_id: str, result: AnalysisResult) -> AnalysisJob:
        """Store the analyzer result and mark the job completed."""

        job = self._job_require(analysis_id)
        return self._job_write(
            job.analysis_transition(status=ANALYSIS_STATUS_COMPLETED, updated_at=self._clock(), result=result)
        )

    def _job_analysis_update_error(self, analysis_id: str, error: BaseException) -> AnalysisJob:
        """Store failure details and mark the job failed."""

        job = self._job_require(analysis_id)
        captured_at = self._clock()
        job_error = AnalysisJobError(
            message=str(error) or type(error).__name__,
            code=job_resolve_error_code(error),
            captured_at=captured_at,
        )
        return self._job_write(
            job.analysis_transition(status=ANALYSIS_STATUS_FAILED, updated_at=captured_at, error=job_error)
        )

    def _job_require(self, analysis_id: str) -> AnalysisJob:
        """Fetch one job regardless of owner or raise `NotFoundError`."""

        job = self._job_fetch(analysis_id)
        if job is None:
            raise NotFoundError(self._ENTITY_NAME, analysis_id)
        return job

    def _job_fetch(self, analysis_id: str) -> AnalysisJob | None:
        """Read one job, wrapping store failures into `InternalError`."""

        try:
            return self._job_store.db_analysis_job_get(analysis_id)
        except Exception as error:
            raise InternalError("Failed to read analysis") from error

    def _job_write(self, job: AnalysisJob) -> AnalysisJob:
        """Write one job, wrapping store failures into `InternalError`."""

        try:
            self._job_store.db_analysis_job_set(job)
        except Exception as error:
            raise InternalError("Failed to update analysis") from error
        return job
