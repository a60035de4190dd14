"""Database reachability probe used by the health endpoint."""

import time

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from app.domain import HealthStatus

from .interfaces import DatabaseHealthPort


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Probe the job and connection database with a trivial round trip."""

    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the engine URL with the password masked.

        Returns:
            str: Rendered engine URL string.
        """

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Run `SELECT 1` and report the round-trip time.

        Returns:
            HealthStatus: `ok` status with round-trip detail.

        Raises:
            ConnectionError: Raised when the database does not answer.
        """

        started_at = time.monotonic()
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as error:
            raise ConnectionError("database connectivity check failed") from error

        elapsed_ms = max(0, int((time.monotonic() - started_at) * 1000))
        return HealthStatus(status="ok", detail=f"database answered in {elapsed_ms} ms")
