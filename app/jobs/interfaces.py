"""Typed interfaces for job-layer orchestration responsibilities."""

from dataclasses import dataclass
from typing import Callable, Protocol

from app.domain import AnalysisJob, AnalysisJobRequest


@dataclass(frozen=True)
class AnalysisListOptions:
    """Filtering and paging inputs for job listing.

    Attributes:
        status: Optional status filter.
        limit: Maximum number of returned items.
        cursor: Optional ISO-8601 `created_at` bound; only strictly older jobs are returned.
    """

    status: str | None = None
    limit: int = 20
    cursor: str | None = None


@dataclass(frozen=True)
class AnalysisListPage:
    """One page of listed jobs.

    Attributes:
        items: Jobs ordered newest first.
        next_cursor: Cursor for the following page, None when no more items remain.
    """

    items: tuple[AnalysisJob, ...]
    next_cursor: str | None = None


class AnalysisOrchestratorPort(Protocol):
    """Port definition for analysis job lifecycle operations."""

    def job_analysis_create(self, org_id: str, request: AnalysisJobRequest) -> AnalysisJob:
        """Persist a pending job and schedule its background processing.

        Args:
            org_id: Owning organization identifier.
            request: Validated job request.

        Returns:
            AnalysisJob: Persisted pending job.

        Raises:
            InternalError: Raised when the job cannot be persisted.
        """

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

    def job_analysis_list(self, org_id: str, options: AnalysisListOptions) -> AnalysisListPage:
        """Return one page of an organization's jobs, newest first.

        Args:
            org_id: Caller organization identifier.
            options: Filter and paging options.

        Returns:
            AnalysisListPage: Page of jobs and the next cursor.

        Raises:
            ValidationError: Raised when the cursor or limit is invalid.
            InternalError: Raised when the store cannot be read.
        """


class TaskSupervisorPort(Protocol):
    """Port definition for fire-and-forget background task execution."""

    def supervisor_submit(self, task_name: str, task: Callable[[], None]) -> None:
        """Schedule one task without waiting for it.

        Args:
            task_name: Label used in logs.
            task: Zero-argument callable; its exceptions are logged by the supervisor.

        Returns:
            None: Task is scheduled as side effect.

        Raises:
            RuntimeError: Raised when the supervisor no longer accepts tasks.
        """
