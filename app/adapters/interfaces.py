"""Typed interfaces for adapter-layer responsibilities."""

from typing import Protocol

from app.domain import AnalysisContext, AnalysisResult


class AnalyzerPort(Protocol):
    """Port definition for the external analysis service."""

    def adapter_source_name(self) -> str:
        """Return adapter source identifier for diagnostics.

        Returns:
            str: Human-readable upstream source identifier.
        """

    def adapter_analyze(self, context: AnalysisContext) -> AnalysisResult:
        """Run one analysis for the given job context.

        Args:
            context: Job request context.

        Returns:
            AnalysisResult: Structured analyzer output.

        Raises:
            ConnectionError: Raised when the analyzer cannot be reached.
            TimeoutError: Raised when the analyzer does not answer in time.
            ValueError: Raised when the analyzer response violates the contract.
            RuntimeError: Raised when the analyzer rejects the request.
        """

    def adapter_health(self) -> bool:
        """Return whether the analyzer reports itself healthy.

        Returns:
            bool: True when healthy; failures are reported as False.
        """


class PushChannelPort(Protocol):
    """Port definition for delivering payloads to one realtime connection."""

    def push_send(self, connection_id: str, payload: str) -> None:
        """Deliver one serialized payload to one connection.

        Args:
            connection_id: Target connection identifier.
            payload: Serialized JSON payload.

        Returns:
            None: Payload is delivered as side effect.

        Raises:
            PushDeliveryError: Raised when the payload cannot be delivered.
        """
