"""Regression tests for fixed SQL templates in db-layer services."""

from __future__ import annotations

from datetime import datetime, timezone
import json

import pytest
from sqlalchemy.exc import OperationalError

from app.db import SQLAlchemyAnalysisJobStore, SQLAlchemyConnectionDirectory, SQLAlchemyDatabaseHealthService
from app.domain import AnalysisContext, AnalysisJob, AnalysisJobRequest, analysis_to_document


class _MappingResultStub:
    """Stub mapping result wrapper for SQLAlchemy-like query responses."""

    def __init__(self, rows: list[dict]):
        """Initialize mapping result rows.

        Args:
            rows: Row mappings returned by a query.
        """

        self._rows = rows

    def mappings(self) -> _MappingResultStub:
        """Return self to emulate SQLAlchemy mappings chain.

        Returns:
            _MappingResultStub: This object.
        """

        return self

    def all(self) -> list[dict]:
        """Return all row mappings.

        Returns:
            list[dict]: Query rows.
        """

        return self._rows

    def first(self) -> dict | None:
        """Return first row mapping or None.

        Returns:
            dict | None: First query row.
        """

        return self._rows[0] if self._rows else None


class _ConnectionStub:
    """Connection stub capturing executed SQL and parameters."""

    def __init__(self, rows: list[dict], error: Exception | None = None):
        """Initialize connection capture state.

        Args:
            rows: Query rows returned by execute().
            error: Optional error raised by execute().
        """

        self._rows = rows
        self._error = error
        self.executed_queries: list[str] = []
        self.executed_parameters: list[dict | None] = []

    def __enter__(self) -> _ConnectionStub:
        """Enter context manager.

        Returns:
            _ConnectionStub: This object.
        """

        return self

    def __exit__(self, exc_type, exc, traceback) -> bool:
        """Exit context manager.

        Returns:
            bool: False to propagate exceptions.
        """

        _ = (exc_type, exc, traceback)
        return False

    def execute(self, statement, parameters: dict | None = None):
        """Capture execute input and return deterministic row result.

        Args:
            statement: SQLAlchemy text clause or raw string.
            parameters: Bound query parameters.

        Returns:
            _MappingResultStub: Query result stub.

        Raises:
            Exception: Configured error.
        """

        if self._error is not None:
            raise self._error
        self.executed_queries.append(getattr(statement, "text", str(statement)))
        self.executed_parameters.append(parameters)
        return _MappingResultStub(rows=self._rows)


class _EngineStub:
    """Engine stub that returns a predefined connection object."""

    def __init__(self, connection: _ConnectionStub):
        """Initialize engine with a deterministic connection stub.

        Args:
            connection: Connection stub instance.
        """

        self._connection = connection

    def connect(self) -> _ConnectionStub:
        """Return connection stub."""

        return self._connection

    def begin(self) -> _ConnectionStub:
        """Return connection stub for begin-context compatibility."""

        return self._connection


def _build_job() -> AnalysisJob:
    """Build one deterministic job."""

    created_at = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)
    return AnalysisJob(
        analysis_id="job-1",
        org_id="org-a",
        status="pending",
        created_at=created_at,
        updated_at=created_at,
        request=AnalysisJobRequest(context=AnalysisContext(project_id="p", test_id="t")),
    )


def test_analysis_job_set_upserts_json_document_by_key() -> None:
    """Verify job writes use a primary-key upsert with a JSON document."""

    connection = _ConnectionStub(rows=[])
    store = SQLAlchemyAnalysisJobStore(engine=_EngineStub(connection))

    store.db_analysis_job_set(_build_job())

    assert "ON CONFLICT (analysis_id) DO UPDATE" in connection.executed_queries[0]
    assert "CAST(:document AS jsonb)" in connection.executed_queries[0]
    parameters = connection.executed_parameters[0]
    assert parameters["analysis_id"] == "job-1"
    assert json.loads(parameters["document"])["status"] == "pending"


def test_analysis_job_get_maps_document_and_handles_missing_rows() -> None:
    """Verify point reads map stored documents and return None when absent."""

    job = _build_job()
    found_connection = _ConnectionStub(rows=[{"document": analysis_to_document(job)}])
    missing_connection = _ConnectionStub(rows=[])

    assert SQLAlchemyAnalysisJobStore(_EngineStub(found_connection)).db_analysis_job_get("job-1") == job
    assert SQLAlchemyAnalysisJobStore(_EngineStub(missing_connection)).db_analysis_job_get("job-1") is None
    assert found_connection.executed_queries[0] == "SELECT document FROM analysis_job WHERE analysis_id = :analysis_id"


def test_analysis_job_get_rejects_corrupt_documents() -> None:
    """Verify corrupt stored documents raise `RuntimeError`."""

    connection = _ConnectionStub(rows=[{"document": json.dumps({"status": "pending"})}])

    with pytest.raises(RuntimeError):
        SQLAlchemyAnalysisJobStore(_EngineStub(connection)).db_analysis_job_get("job-1")


def test_analysis_job_list_keys_enumerates_primary_keys() -> None:
    """Verify key enumeration reads only identifiers."""

    connection = _ConnectionStub(rows=[{"analysis_id": "a"}, {"analysis_id": "b"}])

    keys = SQLAlchemyAnalysisJobStore(_EngineStub(connection)).db_analysis_job_list_keys()

    assert keys == ["a", "b"]
    assert connection.executed_queries[0] == "SELECT analysis_id FROM analysis_job ORDER BY analysis_id ASC"


def test_analysis_job_store_maps_sqlalchemy_errors() -> None:
    """Verify driver failures surface as `RuntimeError`."""

    connection = _ConnectionStub(rows=[], error=OperationalError("SELECT", {}, Exception("down")))

    with pytest.raises(RuntimeError):
        SQLAlchemyAnalysisJobStore(_EngineStub(connection)).db_analysis_job_list_keys()


def test_connection_directory_templates() -> None:
    """Verify register, unregister and org lookup SQL."""

    connection = _ConnectionStub(rows=[{"connection_id": "c1"}, {"connection_id": "c2"}])
    directory = SQLAlchemyConnectionDirectory(engine=_EngineStub(connection))

    directory.db_connection_register("c1", "org-a")
    directory.db_connection_unregister("c1")
    connection_ids = directory.db_connection_list_for_org("org-a")

    assert connection_ids == ["c1", "c2"]
    assert "ON CONFLICT (connection_id) DO UPDATE" in connection.executed_queries[0]
    assert connection.executed_parameters[0] == {"connection_id": "c1", "org_id": "org-a"}
    assert connection.executed_queries[1] == "DELETE FROM realtime_connection WHERE connection_id = :connection_id"
    assert "WHERE org_id = :org_id" in connection.executed_queries[2]


def test_connection_directory_rejects_blank_org() -> None:
    """Verify blank organization ids are rejected before querying."""

    connection = _ConnectionStub(rows=[])

    with pytest.raises(ValueError):
        SQLAlchemyConnectionDirectory(engine=_EngineStub(connection)).db_connection_list_for_org(" ")
    assert connection.executed_queries == []


def test_database_health_maps_driver_failure_to_connection_error() -> None:
    """Verify health probe failure raises `ConnectionError`."""

    healthy_connection = _ConnectionStub(rows=[])
    failing_connection = _ConnectionStub(rows=[], error=OperationalError("SELECT 1", {}, Exception("down")))

    assert SQLAlchemyDatabaseHealthService(_EngineStub(healthy_connection)).db_check_health().health_is_ok()
    assert healthy_connection.executed_queries == ["SELECT 1"]
    with pytest.raises(ConnectionError):
        SQLAlchemyDatabaseHealthService(_EngineStub(failing_connection)).db_check_health()
