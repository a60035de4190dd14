"""Database service exposing analysis jobs as a key/value document store."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from app.domain import AnalysisJob, analysis_from_document, analysis_to_document

from .interfaces import AnalysisJobKeySourcePort, AnalysisJobStorePort


class SQLAlchemyAnalysisJobStore(AnalysisJobStorePort, AnalysisJobKeySourcePort):
    """SQLAlchemy-backed analysis job store.

    Jobs are persisted as whole JSON documents keyed by identifier. Queries
    only ever address the primary key; listing is done by the job layer on
    top of key enumeration.
    """

    def __init__(self, engine: Engine):
        """Initialize analysis job store.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Returns:
            None: This initializer does not return a value.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_analysis_job_get(self, analysis_id: str) -> AnalysisJob | None:
        """Fetch one job document by identifier.

        Args:
            analysis_id: Job identifier.

        Returns:
            AnalysisJob | None: Stored job or None when absent.

        Raises:
            ValueError: Raised when analysis_id is blank.
            RuntimeError: Raised when database read fails or the document is corrupt.
        """

        normalized_analysis_id = self._validate_non_empty_text(analysis_id, "analysis_id")

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text("SELECT document FROM analysis_job WHERE analysis_id = :analysis_id"),
                    {"analysis_id": normalized_analysis_id},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to fetch analysis job") from error

        if row is None:
            return None
        return self._map_analysis_job_document(row["document"])

    def db_analysis_job_set(self, job: AnalysisJob) -> None:
        """Upsert one job document under its identifier.

        Args:
            job: Job to persist.

        Returns:
            None: The job is persisted as side effect.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        document_payload = json.dumps(analysis_to_document(job))

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO analysis_job ("
                        "analysis_id, org_id, document, created_at_utc, updated_at_utc"
                        ") VALUES ("
                        ":analysis_id, :org_id, CAST(:document AS jsonb), :created_at_utc, :updated_at_utc"
                        ") "
                        "ON CONFLICT (analysis_id) DO UPDATE SET "
                        "document = EXCLUDED.document, "
                        "updated_at_utc = EXCLUDED.updated_at_utc"
                    ),
                    {
                        "analysis_id": job.analysis_id,
                        "org_id": job.org_id,
                        "document": document_payload,
                        "created_at_utc": job.created_at,
                        "updated_at_utc": job.updated_at,
                    },
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to persist analysis job") from error

    def db_analysis_job_list_keys(self) -> list[str]:
        """Return every stored job identifier.

        Returns:
            list[str]: Job identifiers ordered ascending.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text("SELECT analysis_id FROM analysis_job ORDER BY analysis_id ASC"),
                    {},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to enumerate analysis job keys") from error

        return [str(row["analysis_id"]) for row in rows]

    def _map_analysis_job_document(self, document_value: Any) -> AnalysisJob:
        """Map stored JSON document to typed job.

        Args:
            document_value: JSON column value, decoded dict or raw JSON text.

        Returns:
            AnalysisJob: Typed job.

        Raises:
            RuntimeError: Raised when document structure is incompatible.
        """

        document = json.loads(document_value) if isinstance(document_value, (str, bytes)) else document_value
        if not isinstance(document, dict):
            raise RuntimeError("analysis_job.document must be a JSON object")
        try:
            return analysis_from_document(document)
        except (KeyError, TypeError, ValueError) as error:
            raise RuntimeError("analysis_job.document is corrupt") from error

    def _validate_non_empty_text(self, value: str, field_name: str) -> str:
        """Validate required text input and return stripped value.

        Args:
            value: Candidate string value.
            field_name: Field name for error reporting.

        Returns:
            str: Stripped non-empty value.

        Raises:
            ValueError: Raised when value is blank.
        """

        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError(f"{field_name} must not be blank")
        return stripped_value
