"""Job layer package for analysis orchestration and background execution."""

from .analysis_orchestrator import UNEXPECTED_ERROR_CODE, AnalysisJobOrchestrator, job_resolve_error_code
from .interfaces import AnalysisListOptions, AnalysisListPage, AnalysisOrchestratorPort, TaskSupervisorPort
from .supervisor import ThreadPoolTaskSupervisor

__all__ = [
	"AnalysisJobOrchestrator",
	"AnalysisListOptions",
	"AnalysisListPage",
	"AnalysisOrchestratorPort",
	"TaskSupervisorPort",
	"ThreadPoolTaskSupervisor",
	"UNEXPECTED_ERROR_CODE",
	"job_resolve_error_code",
]
