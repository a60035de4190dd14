"""Tests for analysis job creation, background processing and retrieval."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from app.adapters import AnalyzerConnectionError
from app.domain import (
    ANALYSIS_STATUS_COMPLETED,
    ANALYSIS_STATUS_FAILED,
    ANALYSIS_STATUS_PENDING,
    AnalysisContext,
    AnalysisJob,
    AnalysisJobRequest,
    AnalysisOptions,
    AnalysisResult,
    InternalError,
    NotFoundError,
    ValidationError,
)
from app.jobs import UNEXPECTED_ERROR_CODE, AnalysisJobOrchestrator, job_resolve_error_code
from app.notifications import NotificationDeliveryError, NotificationDeliveryReport


class _JobStoreStub:
    """In-memory job store capturing every write."""

    def __init__(self, fail_writes: bool = False, failing_statuses: tuple[str, ...] = ()):
        """Initialize empty store.

        Args:
            fail_writes: Whether writes raise `RuntimeError`.
            failing_statuses: Job statuses whose writes raise `RuntimeError`.
        """

        self.jobs: dict[str, AnalysisJob] = {}
        self.written_statuses: list[str] = []
        self._fail_writes = fail_writes
        self._failing_statuses = failing_statuses

    def db_analysis_job_get(self, analysis_id: str) -> AnalysisJob | None:
        """Return stored job by key.

        Args:
            analysis_id: Job identifier.

        Returns:
            AnalysisJob | None: Stored job.
        """

        return self.jobs.get(analysis_id)

    def db_analysis_job_set(self, job: AnalysisJob) -> None:
        """Store one job.

        Args:
            job: Job to store.

        Raises:
            RuntimeError: Raised when configured to fail.
        """

        if self._fail_writes or job.status in self._failing_statuses:
            raise RuntimeError("store unavailable")
        self.jobs[job.analysis_id] = job
        self.written_statuses.append(job.status)

    def db_analysis_job_list_keys(self) -> list[str]:
        """Return stored keys.

        Returns:
            list[str]: Job identifiers.
        """

        return sorted(self.jobs)


class _AnalyzerStub:
    """Analyzer double returning a fixed result or raising a fixed error."""

    def __init__(self, result: AnalysisResult | None = None, error: Exception | None = None):
        """Initialize analyzer behavior.

        Args:
            result: Result to return.
            error: Error to raise instead of returning.
        """

        self._result = result
        self._error = error
        self.contexts: list[AnalysisContext] = []

    def adapter_source_name(self) -> str:
        """Return stub source name."""

        return "analyzer_stub"

    def adapter_analyze(self, context: AnalysisContext) -> AnalysisResult:
        """Record context and return the configured outcome.

        Args:
            context: Job context.

        Returns:
            AnalysisResult: Configured result.

        Raises:
            Exception: Configured error.
        """

        self.contexts.append(context)
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result

    def adapter_health(self) -> bool:
        """Return healthy."""

        return True


class _FanoutStub:
    """Notification double recording calls, optionally failing."""

    def __init__(self, fail: bool = False):
        """Initialize recorder.

        Args:
            fail: Whether calls raise `NotificationDeliveryError`.
        """

        self.completed: list[tuple[str, str, AnalysisResult]] = []
        self.failed: list[tuple[str, str, str]] = []
        self._fail = fail

    def notification_notify_complete(self, org_id: str, analysis_id: str, result: AnalysisResult):
        """Record completion notification."""

        self.completed.append((org_id, analysis_id, result))
        if self._fail:
            raise NotificationDeliveryError("push failed", report=NotificationDeliveryReport(1, 0, ("c1",)))
        return NotificationDeliveryReport(attempted=1, delivered=1)

    def notification_notify_failed(self, org_id: str, analysis_id: str, error_message: str):
        """Record failure notification."""

        self.failed.append((org_id, analysis_id, error_message))
        if self._fail:
            raise NotificationDeliveryError("push failed")
        return NotificationDeliveryReport(attempted=1, delivered=1)


class _DeferredSupervisorStub:
    """Supervisor double that queues tasks until the test runs them."""

    def __init__(self, reject: bool = False):
        """Initialize empty task queue.

        Args:
            reject: Whether submissions raise `RuntimeError`.
        """

        self.tasks: list[tuple[str, Callable[[], None]]] = []
        self._reject = reject

    def supervisor_submit(self, task_name: str, task: Callable[[], None]) -> None:
        """Queue one task.

        Raises:
            RuntimeError: Raised when configured to reject.
        """

        if self._reject:
            raise RuntimeError("supervisor is shut down")
        self.tasks.append((task_name, task))

    def run_all(self) -> None:
        """Run queued tasks, swallowing task failures like the real supervisor."""

        while self.tasks:
            _task_name, task = self.tasks.pop(0)
            try:
                task()
            except Exception:  # pylint: disable=broad-exception-caught
                pass


class _StepClock:
    """Clock advancing one second per call."""

    def __init__(self) -> None:
        self._current = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self._current
        self._current += timedelta(seconds=1)
        return value


def _build_request(notify: bool = True) -> AnalysisJobRequest:
    """Build a deterministic job request."""

    return AnalysisJobRequest(
        context=AnalysisContext(project_id="project-1", test_id="test-1", parameters={"depth": 2}),
        options=AnalysisOptions(notify_on_completion=notify),
    )


def _build_orchestrator(
    store: _JobStoreStub,
    analyzer: _AnalyzerStub,
    fanout: _FanoutStub,
    supervisor: _DeferredSupervisorStub,
) -> AnalysisJobOrchestrator:
    """Build orchestrator with deterministic clock and ids."""

    identifiers = iter(f"job-{index}" for index in range(1, 100))
    return AnalysisJobOrchestrator(
        job_store=store,
        job_key_source=store,
        analyzer=analyzer,
        notification_fanout=fanout,
        task_supervisor=supervisor,
        clock=_StepClock(),
        id_factory=lambda: next(identifiers),
    )


def test_job_analysis_create_returns_pending_job_and_schedules_one_task() -> None:
    """Verify create persists a pending job and schedules exactly one task."""

    store = _JobStoreStub()
    supervisor = _DeferredSupervisorStub()
    orchestrator = _build_orchestrator(store, _AnalyzerStub(AnalysisResult("ok", 0.5)), _FanoutStub(), supervisor)

    job = orchestrator.job_analysis_create("org-a", _build_request())

    assert job.status == ANALYSIS_STATUS_PENDING
    assert job.analysis_id == "job-1"
    assert job.created_at == job.updated_at
    assert store.jobs["job-1"] == job
    assert len(supervisor.tasks) == 1


def test_job_analysis_create_generates_fresh_identifiers() -> None:
    """Verify default id factory yields unique identifiers."""

    store = _JobStoreStub()
    orchestrator = AnalysisJobOrchestrator(
        job_store=store,
        job_key_source=store,
        analyzer=_AnalyzerStub(AnalysisResult("ok", 0.5)),
        notification_fanout=_FanoutStub(),
        task_supervisor=_DeferredSupervisorStub(),
    )

    first_job = orchestrator.job_analysis_create("org-a", _build_request())
    second_job = orchestrator.job_analysis_create("org-a", _build_request())

    assert first_job.analysis_id != second_job.analysis_id


def test_job_analysis_create_store_failure_raises_internal_error_without_scheduling() -> None:
    """Verify persistence failure surfaces synchronously and schedules nothing."""

    supervisor = _DeferredSupervisorStub()
    orchestrator = _build_orchestrator(
        _JobStoreStub(fail_writes=True),
        _AnalyzerStub(AnalysisResult("ok", 0.5)),
        _FanoutStub(),
        supervisor,
    )

    with pytest.raises(InternalError) as error_info:
        orchestrator.job_analysis_create("org-a", _build_request())

    assert isinstance(error_info.value.__cause__, RuntimeError)
    assert not supervisor.tasks


def test_job_analysis_create_keeps_pending_job_when_scheduling_fails() -> None:
    """Verify a rejected submission still returns the persisted pending job."""

    store = _JobStoreStub()
    orchestrator = _build_orchestrator(
        store,
        _AnalyzerStub(AnalysisResult("ok", 0.5)),
        _FanoutStub(),
        _DeferredSupervisorStub(reject=True),
    )

    job = orchestrator.job_analysis_create("org-a", _build_request())

    assert store.jobs[job.analysis_id].status == ANALYSIS_STATUS_PENDING


def test_background_processing_success_completes_job_and_notifies() -> None:
    """Verify success stores the analyzer result and sends one completion event."""

    store = _JobStoreStub()
    supervisor = _DeferredSupervisorStub()
    fanout = _FanoutStub()
    analyzer_result = AnalysisResult(summary="stable", confidence=0.92, metrics={"p95_ms": 120})
    orchestrator = _build_orchestrator(store, _AnalyzerStub(analyzer_result), fanout, supervisor)

    job = orchestrator.job_analysis_create("org-a", _build_request())
    supervisor.run_all()

    stored_job = store.jobs[job.analysis_id]
    assert stored_job.status == ANALYSIS_STATUS_COMPLETED
    assert stored_job.result == analyzer_result
    assert stored_job.updated_at > stored_job.created_at
    assert store.written_statuses == ["pending", "processing", "completed"]
    assert fanout.completed == [("org-a", job.analysis_id, analyzer_result)]
    assert not fanout.failed


def test_background_processing_failure_records_error_and_reraises() -> None:
    """Verify failures mark the job failed, notify, and re-raise to the supervisor."""

    store = _JobStoreStub()
    supervisor = _DeferredSupervisorStub()
    fanout = _FanoutStub()
    orchestrator = _build_orchestrator(
        store,
        _AnalyzerStub(error=AnalyzerConnectionError("analyzer unreachable")),
        fanout,
        supervisor,
    )

    job = orchestrator.job_analysis_create("org-a", _build_request())
    _task_name, task = supervisor.tasks.pop()
    with pytest.raises(AnalyzerConnectionError):
        task()

    stored_job = store.jobs[job.analysis_id]
    assert stored_job.status == ANALYSIS_STATUS_FAILED
    assert stored_job.error is not None
    assert stored_job.error.message == "analyzer unreachable"
    assert stored_job.error.code == "ANALYZER_CONNECTION_ERROR"
    assert fanout.failed == [("org-a", job.analysis_id, "analyzer unreachable")]


def test_background_processing_skips_notifications_when_not_requested() -> None:
    """Verify no fan-out happens when `notify_on_completion` is false."""

    store = _JobStoreStub()
    supervisor = _DeferredSupervisorStub()
    fanout = _FanoutStub()
    orchestrator = _build_orchestrator(store, _AnalyzerStub(AnalysisResult("ok", 0.5)), fanout, supervisor)

    orchestrator.job_analysis_create("org-a", _build_request(notify=False))
    supervisor.run_all()

    assert not fanout.completed
    assert not fanout.failed


def test_background_processing_swallows_notification_failure() -> None:
    """Verify a failing fan-out does not change the completed outcome."""

    store = _JobStoreStub()
    supervisor = _DeferredSupervisorStub()
    orchestrator = _build_orchestrator(store, _AnalyzerStub(AnalysisResult("ok", 0.5)), _FanoutStub(fail=True), supervisor)

    job = orchestrator.job_analysis_create("org-a", _build_request())
    _task_name, task = supervisor.tasks.pop()
    task()

    assert store.jobs[job.analysis_id].status == ANALYSIS_STATUS_COMPLETED


def test_background_processing_failure_swallows_notification_failure() -> None:
    """Verify a failing fan-out keeps the job failed and re-raises the analyzer error."""

    store = _JobStoreStub()
    supervisor = _DeferredSupervisorStub()
    fanout = _FanoutStub(fail=True)
    orchestrator = _build_orchestrator(
        store,
        _AnalyzerStub(error=AnalyzerConnectionError("analyzer unreachable")),
        fanout,
        supervisor,
    )

    job = orchestrator.job_analysis_create("org-a", _build_request())
    _task_name, task = supervisor.tasks.pop()
    with pytest.raises(AnalyzerConnectionError):
        task()

    stored_job = store.jobs[job.analysis_id]
    assert stored_job.status == ANALYSIS_STATUS_FAILED
    assert stored_job.error is not None
    assert stored_job.error.message == "analyzer unreachable"
    assert fanout.failed == [("org-a", job.analysis_id, "analyzer unreachable")]


def test_background_processing_reraises_analyzer_error_when_failure_write_fails() -> None:
    """Verify a store outage while recording failure still notifies and re-raises the analyzer error."""

    store = _JobStoreStub(failing_statuses=(ANALYSIS_STATUS_FAILED,))
    supervisor = _DeferredSupervisorStub()
    fanout = _FanoutStub()
    orchestrator = _build_orchestrator(
        store,
        _AnalyzerStub(error=AnalyzerConnectionError("analyzer unreachable")),
        fanout,
        supervisor,
    )

    job = orchestrator.job_analysis_create("org-a", _build_request())
    _task_name, task = supervisor.tasks.pop()
    with pytest.raises(AnalyzerConnectionError):
        task()

    assert store.jobs[job.analysis_id].status == "processing"
    assert fanout.failed == [("org-a", job.analysis_id, "analyzer unreachable")]


@pytest.mark.parametrize("analysis_id", ["", " ", "\t"])
def test_job_analysis_get_treats_blank_identifier_as_missing(analysis_id: str) -> None:
    """Verify blank identifiers are not found without reaching the store."""

    class _RejectingBlankStore(_JobStoreStub):
        def db_analysis_job_get(self, analysis_id: str) -> AnalysisJob | None:
            if not analysis_id.strip():
                raise ValueError("analysis_id must not be blank")
            return super().db_analysis_job_get(analysis_id)

    orchestrator = _build_orchestrator(
        _RejectingBlankStore(),
        _AnalyzerStub(AnalysisResult("ok", 0.5)),
        _FanoutStub(),
        _DeferredSupervisorStub(),
    )

    with pytest.raises(NotFoundError):
        orchestrator.job_analysis_get("org-a", analysis_id)


def test_job_analysis_get_hides_other_organizations() -> None:
    """Verify cross-organization reads look exactly like missing jobs."""

    store = _JobStoreStub()
    orchestrator = _build_orchestrator(
        store,
        _AnalyzerStub(AnalysisResult("ok", 0.5)),
        _FanoutStub(),
        _DeferredSupervisorStub(),
    )
    job = orchestrator.job_analysis_create("org-a", _build_request())

    assert orchestrator.job_analysis_get("org-a", job.analysis_id) == job
    with pytest.raises(NotFoundError) as cross_org_error:
        orchestrator.job_analysis_get("org-b", job.analysis_id)
    with pytest.raises(NotFoundError) as missing_error:
        orchestrator.job_analysis_get("org-b", "job-missing")

    assert cross_org_error.value.message.replace(job.analysis_id, "X") == missing_error.value.message.replace(
        "job-missing", "X"
    )


def test_job_analysis_create_rejects_blank_org() -> None:
    """Verify blank organizations are rejected before persistence."""

    store = _JobStoreStub()
    orchestrator = _build_orchestrator(
        store,
        _AnalyzerStub(AnalysisResult("ok", 0.5)),
        _FanoutStub(),
        _DeferredSupervisorStub(),
    )

    with pytest.raises(ValidationError):
        orchestrator.job_analysis_create("  ", _build_request())
    assert not store.jobs


def test_job_resolve_error_code_prefers_attribute_then_type() -> None:
    """Verify error code resolution order."""

    assert job_resolve_error_code(AnalyzerConnectionError("down")) == "ANALYZER_CONNECTION_ERROR"
    assert job_resolve_error_code(TimeoutError("slow")) == "TIMEOUT_ERROR"
    assert job_resolve_error_code(ConnectionError("reset")) == "CONNECTION_ERROR"
    assert job_resolve_error_code(ValueError("bad")) == "VALIDATION_ERROR"
    assert job_resolve_error_code(KeyError("missing")) == UNEXPECTED_ERROR_CODE
