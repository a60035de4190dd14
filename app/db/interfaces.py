"""Typed interfaces for database-layer services.

All SQL and ORM access must remain in the db package and its submodules.
"""

from typing import Protocol

from app.domain import AnalysisJob, HealthStatus


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


class AnalysisJobStorePort(Protocol):
    """Key/value persistence for analysis jobs.

    The store offers point reads and writes only: no transactions, no
    secondary indexes and no prefix listing.
    """

    def db_analysis_job_get(self, analysis_id: str) -> AnalysisJob | None:
        """Fetch one job by key.

        Args:
            analysis_id: Job identifier.

        Returns:
            AnalysisJob | None: Stored job or None when absent.

        Raises:
            RuntimeError: Raised when the store cannot be read.
        """

    def db_analysis_job_set(self, job: AnalysisJob) -> None:
        """Write one job under its identifier, replacing any previous value.

        Args:
            job: Job to persist.

        Returns:
            None: The job is persisted as side effect.

        Raises:
            RuntimeError: Raised when the store cannot be written.
        """


class AnalysisJobKeySourcePort(Protocol):
    """Enumeration of every job key known to the store."""

    def db_analysis_job_list_keys(self) -> list[str]:
        """Return all stored job identifiers.

        Returns:
            list[str]: Job identifiers in deterministic order.

        Raises:
            RuntimeError: Raised when keys cannot be enumerated.
        """


class ConnectionDirectoryPort(Protocol):
    """Resolution of live realtime connections owned by an organization."""

    def db_connection_list_for_org(self, org_id: str) -> list[str]:
        """Return live connection identifiers for one organization.

        Args:
            org_id: Organization identifier.

        Returns:
            list[str]: Connection identifiers.

        Raises:
            RuntimeError: Raised when the directory cannot be read.
        """


class ConnectionRegistryPort(ConnectionDirectoryPort, Protocol):
    """Directory that also tracks connection lifecycle events."""

    def db_connection_register(self, connection_id: str, org_id: str) -> None:
        """Record one live connection for an organization.

        Args:
            connection_id: Transport connection identifier.
            org_id: Owning organization identifier.

        Returns:
            None: The mapping is stored as side effect.

        Raises:
            RuntimeError: Raised when the directory cannot be written.
        """

    def db_connection_unregister(self, connection_id: str) -> None:
        """Forget one connection; unknown identifiers are ignored.

        Args:
            connection_id: Transport connection identifier.

        Returns:
            None: The mapping is removed as side effect.

        Raises:
            RuntimeError: Raised when the directory cannot be written.
        """
