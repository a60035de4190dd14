"""Domain models and rules used across application layer boundaries."""

from .analysis import (
    ANALYSIS_STATUS_COMPLETED,
    ANALYSIS_STATUS_FAILED,
    ANALYSIS_STATUS_PENDING,
    ANALYSIS_STATUS_PROCESSING,
    ANALYSIS_STATUSES,
    AnalysisContext,
    AnalysisJob,
    AnalysisJobError,
    AnalysisJobRequest,
    AnalysisMetadata,
    AnalysisOptions,
    AnalysisResult,
    analysis_from_document,
    analysis_result_to_document,
    analysis_to_document,
    domain_format_utc_timestamp,
    domain_parse_utc_timestamp,
    domain_utc_now,
)
from .errors import AppError, AuthorizationError, ConflictError, InternalError, NotFoundError, ValidationError
from .models import HealthStatus
from .notifications import (
    NOTIFICATION_TYPE_ANALYSIS_COMPLETE,
    NOTIFICATION_TYPE_ANALYSIS_FAILED,
    domain_build_notification_envelope,
    domain_serialize_notification_envelope,
)

__all__ = [
	"ANALYSIS_STATUS_COMPLETED",
	"ANALYSIS_STATUS_FAILED",
	"ANALYSIS_STATUS_PENDING",
	"ANALYSIS_STATUS_PROCESSING",
	"ANALYSIS_STATUSES",
	"AnalysisContext",
	"AnalysisJob",
	"AnalysisJobError",
	"AnalysisJobRequest",
	"AnalysisMetadata",
	"AnalysisOptions",
	"AnalysisResult",
	"AppError",
	"AuthorizationError",
	"ConflictError",
	"HealthStatus",
	"InternalError",
	"NOTIFICATION_TYPE_ANALYSIS_COMPLETE",
	"NOTIFICATION_TYPE_ANALYSIS_FAILED",
	"NotFoundError",
	"ValidationError",
	"analysis_from_document",
	"analysis_result_to_document",
	"analysis_to_document",
	"domain_build_notification_envelope",
	"domain_format_utc_timestamp",
	"domain_parse_utc_timestamp",
	"domain_serialize_notification_envelope",
	"domain_utc_now",
]
