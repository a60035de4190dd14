"""Project-native typed exceptions for external analyzer failures."""

from __future__ import annotations


class AnalyzerError(Exception):
    """Base exception for adapter-level analyzer failures.

    Attributes:
        error_code: Deterministic error code recorded on failed jobs.
    """

    default_error_code = "ANALYZER_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code or self.default_error_code


class AnalyzerConnectionError(AnalyzerError, ConnectionError):
    """Transport-level connectivity failure while calling the analyzer."""

    default_error_code = "ANALYZER_CONNECTION_ERROR"


class AnalyzerTimeoutError(AnalyzerError, TimeoutError):
    """Analyzer did not answer within the configured timeout."""

    default_error_code = "ANALYZER_TIMEOUT_ERROR"


class AnalyzerResponseError(AnalyzerError, RuntimeError):
    """Analyzer answered with a non-success HTTP status."""

    default_error_code = "ANALYZER_RESPONSE_ERROR"

    def __init__(self, message: str, status_code: int, error_code: str | None = None):
        super().__init__(message=message, error_code=error_code)
        self.status_code = status_code


class AnalyzerContractError(AnalyzerError, ValueError):
    """Analyzer response body violates the expected result contract."""

    default_error_code = "ANALYZER_CONTRACT_ERROR"


class PushDeliveryError(RuntimeError):
    """Payload could not be delivered to one realtime connection.

    Attributes:
        connection_id: Target connection identifier.
    """

    def __init__(self, message: str, connection_id: str):
        super().__init__(message)
        self.connection_id = connection_id
