"""Database layer package for all SQL and persistence boundaries."""

from .analysis_job import SQLAlchemyAnalysisJobStore
from .connection_directory import SQLAlchemyConnectionDirectory
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	AnalysisJobKeySourcePort,
	AnalysisJobStorePort,
	ConnectionDirectoryPort,
	ConnectionRegistryPort,
	DatabaseHealthPort,
)
from .session import db_create_engine

__all__ = [
	"AnalysisJobKeySourcePort",
	"AnalysisJobStorePort",
	"ConnectionDirectoryPort",
	"ConnectionRegistryPort",
	"DatabaseHealthPort",
	"SQLAlchemyAnalysisJobStore",
	"SQLAlchemyConnectionDirectory",
	"SQLAlchemyDatabaseHealthService",
	"db_create_engine",
]
