"""Typed interfaces for notification fan-out responsibilities."""

from dataclasses import dataclass
from typing import Protocol

from app.domain import AnalysisResult


@dataclass(frozen=True)
class NotificationDeliveryReport:
    """Outcome of one fan-out call.

    Attributes:
        attempted: Number of connections a send was attempted on.
        delivered: Number of successful sends.
        failed_connection_ids: Connections whose send failed, in directory order.
    """

    attempted: int
    delivered: int
    failed_connection_ids: tuple[str, ...] = ()

    def notification_is_complete_success(self) -> bool:
        """Return whether every attempted send succeeded."""

        return not self.failed_connection_ids


class NotificationFanoutPort(Protocol):
    """Port definition for pushing job outcomes to an organization's connections."""

    def notification_notify_complete(
        self,
        org_id: str,
        analysis_id: str,
        result: AnalysisResult,
    ) -> NotificationDeliveryReport:
        """Push one completion event to every live connection of an organization.

        Args:
            org_id: Target organization identifier.
            analysis_id: Completed job identifier.
            result: Analyzer result carried in the event.

        Returns:
            NotificationDeliveryReport: Delivery counters.

        Raises:
            NotificationDeliveryError: Raised when resolution or any send fails.
        """

    def notification_notify_failed(
        self,
        org_id: str,
        analysis_id: str,
        error_message: str,
    ) -> NotificationDeliveryReport:
        """Push one failure event to every live connection of an organization.

        Args:
            org_id: Target organization identifier.
            analysis_id: Failed job identifier.
            error_message: Failure message carried in the event.

        Returns:
            NotificationDeliveryReport: Delivery counters.

        Raises:
            NotificationDeliveryError: Raised when resolution or any send fails.
        """
