"""Database service tracking live realtime connections per organization."""

from __future__ import annotations

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from .interfaces import ConnectionRegistryPort


class SQLAlchemyConnectionDirectory(ConnectionRegistryPort):
    """SQLAlchemy-backed connection directory keyed by organization."""

    def __init__(self, engine: Engine):
        """Initialize connection directory.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_register(self, connection_id: str, org_id: str) -> None:
        """Upsert one connection-to-organization mapping.

        Args:
            connection_id: Transport connection identifier.
            org_id: Owning organization identifier.

        Returns:
            None: The mapping is stored as side effect.

        Raises:
            ValueError: Raised when inputs are blank.
            RuntimeError: Raised when persistence fails.
        """

        normalized_connection_id = self._validate_non_empty_text(connection_id, "connection_id")
        normalized_org_id = self._validate_non_empty_text(org_id, "org_id")

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO realtime_connection (connection_id, org_id, connected_at_utc) "
                        "VALUES (:connection_id, :org_id, now()) "
                        "ON CONFLICT (connection_id) DO UPDATE SET "
                        "org_id = EXCLUDED.org_id, connected_at_utc = EXCLUDED.connected_at_utc"
                    ),
                    {"connection_id": normalized_connection_id, "org_id": normalized_org_id},
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to register realtime connection") from error

    def db_connection_unregister(self, connection_id: str) -> None:
        """Delete one connection mapping when present.

        Args:
            connection_id: Transport connection identifier.

        Returns:
            None: The mapping is removed as side effect.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text("DELETE FROM realtime_connection WHERE connection_id = :connection_id"),
                    {"connection_id": connection_id.strip()},
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to unregister realtime connection") from error

    def db_connection_list_for_org(self, org_id: str) -> list[str]:
        """Return live connection identifiers for one organization.

        Args:
            org_id: Organization identifier.

        Returns:
            list[str]: Connection identifiers ordered by connect time.

        Raises:
            ValueError: Raised when org_id is blank.
            RuntimeError: Raised when database read fails.
        """

        normalized_org_id = self._validate_non_empty_text(org_id, "org_id")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        "SELECT connection_id FROM realtime_connection "
                        "WHERE org_id = :org_id "
                        "ORDER BY connected_at_utc ASC, connection_id ASC"
                    ),
                    {"org_id": normalized_org_id},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list realtime connections") from error

        return [str(row["connection_id"]) for row in rows]

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
