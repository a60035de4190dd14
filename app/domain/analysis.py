"""Analysis job domain model, lifecycle rules and document mapping.

Jobs are stored as JSON documents in a key/value store, so this module owns
the mapping between typed dataclasses and plain JSON-compatible dicts.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Final

from .errors import ConflictError

ANALYSIS_STATUS_PENDING: Final[str] = "pending"
ANALYSIS_STATUS_PROCESSING: Final[str] = "processing"
ANALYSIS_STATUS_COMPLETED: Final[str] = "completed"
ANALYSIS_STATUS_FAILED: Final[str] = "failed"

ANALYSIS_STATUSES: Final[tuple[str, ...]] = (
    ANALYSIS_STATUS_PENDING,
    ANALYSIS_STATUS_PROCESSING,
    ANALYSIS_STATUS_COMPLETED,
    ANALYSIS_STATUS_FAILED,
)
ANALYSIS_TERMINAL_STATUSES: Final[frozenset[str]] = frozenset({ANALYSIS_STATUS_COMPLETED, ANALYSIS_STATUS_FAILED})

_ANALYSIS_ALLOWED_TRANSITIONS: Final[dict[str, frozenset[str]]] = {
    ANALYSIS_STATUS_PENDING: frozenset({ANALYSIS_STATUS_PROCESSING, ANALYSIS_STATUS_COMPLETED, ANALYSIS_STATUS_FAILED}),
    ANALYSIS_STATUS_PROCESSING: frozenset({ANALYSIS_STATUS_COMPLETED, ANALYSIS_STATUS_FAILED}),
    ANALYSIS_STATUS_COMPLETED: frozenset(),
    ANALYSIS_STATUS_FAILED: frozenset(),
}


@dataclass(frozen=True)
class AnalysisMetadata:
    """Optional descriptive metadata attached to the analysis context.

    Attributes:
        environment: Environment label of the analyzed test run.
        version: Version label of the analyzed software.
        tags: Free-form tags.
    """

    environment: str
    version: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisContext:
    """Opaque request context forwarded to the external analyzer.

    Attributes:
        project_id: Project identifier.
        test_id: Test identifier within the project.
        parameters: Free-form analyzer parameters.
        metadata: Optional descriptive metadata.
    """

    project_id: str
    test_id: str
    parameters: dict[str, Any] = field(default_factory=dict)
    metadata: AnalysisMetadata | None = None


@dataclass(frozen=True)
class AnalysisOptions:
    """Caller options controlling processing and notification behavior.

    Attributes:
        priority: Requested priority (`low`, `medium`, `high`).
        notify_on_completion: Whether outcome notifications are fanned out.
        analysis_depth: Requested depth (`basic`, `detailed`, `comprehensive`).
        include_metrics: Optional metric families to include.
    """

    priority: str = "medium"
    notify_on_completion: bool = False
    analysis_depth: str = "detailed"
    include_metrics: tuple[str, ...] | None = None


@dataclass(frozen=True)
class AnalysisJobRequest:
    """Immutable payload supplied when a job is created.

    Attributes:
        context: Analyzer input context.
        options: Processing options.
    """

    context: AnalysisContext
    options: AnalysisOptions = field(default_factory=AnalysisOptions)


@dataclass(frozen=True)
class AnalysisResult:
    """Structured analyzer output stored on completed jobs.

    Attributes:
        summary: Human-readable summary.
        confidence: Analyzer confidence in [0, 1].
        recommendations: Recommendation objects.
        metrics: Named numeric metrics.
        insights: Insight objects.
    """

    summary: str
    confidence: float
    recommendations: list[dict[str, Any]] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)
    insights: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class AnalysisJobError:
    """Failure details captured from the background processing error.

    Attributes:
        message: Failure message.
        code: Deterministic error code.
        captured_at: Capture timestamp in UTC.
    """

    message: str
    code: str
    captured_at: datetime


@dataclass(frozen=True)
class AnalysisJob:
    """One unit of analysis work with a tracked lifecycle.

    Attributes:
        analysis_id: Opaque unique identifier.
        org_id: Owning organization identifier.
        status: Lifecycle status.
        created_at: Creation timestamp in UTC.
        updated_at: Last update timestamp in UTC.
        request: Immutable creation payload.
        result: Analyzer result, present only when completed.
        error: Failure details, present only when failed.
    """

    analysis_id: str
    org_id: str
    status: str
    created_at: datetime
    updated_at: datetime
    request: AnalysisJobRequest
    result: AnalysisResult | None = None
    error: AnalysisJobError | None = None

    def analysis_is_terminal(self) -> bool:
        """Return whether the job reached a terminal status.

        Returns:
            bool: True for `completed` and `failed`.
        """

        return self.status in ANALYSIS_TERMINAL_STATUSES

    def analysis_transition(
        self,
        status: str,
        updated_at: datetime,
        result: AnalysisResult | None = None,
        error: AnalysisJobError | None = None,
    ) -> AnalysisJob:
        """Return a copy moved to a new status with a non-decreasing update time.

        Args:
            status: Target status.
            updated_at: Candidate update timestamp.
            result: Analyzer result, required when moving to `completed`.
            error: Failure details, required when moving to `failed`.

        Returns:
            AnalysisJob: Updated job copy.

        Raises:
            ConflictError: Raised when the transition is not allowed.
            ValueError: Raised when result/error presence does not match the target status.
        """

        allowed_targets = _ANALYSIS_ALLOWED_TRANSITIONS.get(self.status, frozenset())
        if status not in allowed_targets:
            raise ConflictError(f"analysis {self.analysis_id} cannot move from {self.status} to {status}")
        if (status == ANALYSIS_STATUS_COMPLETED) != (result is not None):
            raise ValueError("result must be present iff status is completed")
        if (status == ANALYSIS_STATUS_FAILED) != (error is not None):
            raise ValueError("error must be present iff status is failed")

        return replace(
            self,
            status=status,
            updated_at=max(updated_at, self.updated_at),
            result=result,
            error=error,
        )


def domain_utc_now() -> datetime:
    """Return the current timezone-aware UTC timestamp.

    Returns:
        datetime: Current UTC time.
    """

    return datetime.now(timezone.utc)


def domain_format_utc_timestamp(value: datetime) -> str:
    """Render a timestamp as `Z`-suffixed UTC ISO-8601 text usable in query strings."""

    utc_value = value.astimezone(timezone.utc) if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    return utc_value.isoformat().replace("+00:00", "Z")


def domain_parse_utc_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp and normalize it to UTC.

    Args:
        value: ISO-8601 timestamp text; naive values are treated as UTC.

    Returns:
        datetime: Timezone-aware UTC timestamp.

    Raises:
        ValueError: Raised when the value is not a valid ISO-8601 timestamp.
    """

    normalized_value = value.strip()
    if normalized_value.endswith("Z"):
        normalized_value = f"{normalized_value[:-1]}+00:00"
    parsed_value = datetime.fromisoformat(normalized_value)
    if parsed_value.tzinfo is None:
        return parsed_value.replace(tzinfo=timezone.utc)
    return parsed_value.astimezone(timezone.utc)


def analysis_result_to_document(result: AnalysisResult) -> dict[str, Any]:
    """Map an analyzer result to a JSON-compatible dict."""

    return {
        "summary": result.summary,
        "confidence": result.confidence,
        "recommendations": list(result.recommendations),
        "metrics": dict(result.metrics),
        "insights": list(result.insights),
    }


def analysis_to_document(job: AnalysisJob) -> dict[str, Any]:
    """Map one job to the JSON document persisted in the key/value store.

    Args:
        job: Job to serialize.

    Returns:
        dict[str, Any]: JSON-compatible document.
    """

    context = job.request.context
    options = job.request.options
    metadata_document = None
    if context.metadata is not None:
        metadata_document = {
            "environment": context.metadata.environment,
            "version": context.metadata.version,
            "tags": list(context.metadata.tags),
        }

    return {
        "id": job.analysis_id,
        "org_id": job.org_id,
        "status": job.status,
        "created_at": job.created_at.isoformat(),
        "updated_at": job.updated_at.isoformat(),
        "context": {
            "project_id": context.project_id,
            "test_id": context.test_id,
            "parameters": dict(context.parameters),
            "metadata": metadata_document,
        },
        "options": {
            "priority": options.priority,
            "notify_on_completion": options.notify_on_completion,
            "analysis_depth": options.analysis_depth,
            "include_metrics": list(options.include_metrics) if options.include_metrics is not None else None,
        },
        "result": analysis_result_to_document(job.result) if job.result is not None else None,
        "error": (
            {
                "message": job.error.message,
                "code": job.error.code,
                "captured_at": job.error.captured_at.isoformat(),
            }
            if job.error is not None
            else None
        ),
    }


def analysis_from_document(document: dict[str, Any]) -> AnalysisJob:
    """Map one persisted JSON document back to a typed job.

    Args:
        document: Document produced by `analysis_to_document`.

    Returns:
        AnalysisJob: Typed job.

    Raises:
        KeyError: Raised when a required field is missing.
        ValueError: Raised when a field has an invalid value.
    """

    status = str(document["status"])
    if status not in ANALYSIS_STATUSES:
        raise ValueError(f"unsupported analysis status={status}")

    context_document = document["context"]
    metadata_document = context_document.get("metadata")
    metadata = None
    if metadata_document is not None:
        metadata = AnalysisMetadata(
            environment=str(metadata_document["environment"]),
            version=str(metadata_document["version"]),
            tags=tuple(str(tag) for tag in metadata_document.get("tags") or ()),
        )

    options_document = document.get("options") or {}
    include_metrics = options_document.get("include_metrics")

    result_document = document.get("result")
    result = None
    if result_document is not None:
        result = AnalysisResult(
            summary=str(result_document["summary"]),
            confidence=float(result_document["confidence"]),
            recommendations=list(result_document.get("recommendations") or []),
            metrics=dict(result_document.get("metrics") or {}),
            insights=list(result_document.get("insights") or []),
        )

    error_document = document.get("error")
    error = None
    if error_document is not None:
        error = AnalysisJobError(
            message=str(error_document["message"]),
            code=str(error_document["code"]),
            captured_at=domain_parse_utc_timestamp(str(error_document["captured_at"])),
        )

    return AnalysisJob(
        analysis_id=str(document["id"]),
        org_id=str(document["org_id"]),
        status=status,
        created_at=domain_parse_utc_timestamp(str(document["created_at"])),
        updated_at=domain_parse_utc_timestamp(str(document["updated_at"])),
        request=AnalysisJobRequest(
            context=AnalysisContext(
                project_id=str(context_document["project_id"]),
                test_id=str(context_document["test_id"]),
                parameters=dict(context_document.get("parameters") or {}),
                metadata=metadata,
            ),
            options=AnalysisOptions(
                priority=str(options_document.get("priority", "medium")),
                notify_on_completion=bool(options_document.get("notify_on_completion", False)),
                analysis_depth=str(options_document.get("analysis_depth", "detailed")),
                include_metrics=tuple(str(value) for value in include_metrics) if include_metrics is not None else None,
            ),
        ),
        result=result,
        error=error,
    )
