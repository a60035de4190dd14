"""Notification fan-out from job outcomes to live realtime connections."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging

from app.adapters import PushChannelPort
from app.db import ConnectionDirectoryPort
from app.domain import (
    ANALYSIS_STATUS_COMPLETED,
    ANALYSIS_STATUS_FAILED,
    NOTIFICATION_TYPE_ANALYSIS_COMPLETE,
    NOTIFICATION_TYPE_ANALYSIS_FAILED,
    AnalysisResult,
    InternalError,
    analysis_result_to_document,
    domain_build_notification_envelope,
    domain_serialize_notification_envelope,
)

from .interfaces import NotificationDeliveryReport, NotificationFanoutPort

logger = logging.getLogger(__name__)


class NotificationDeliveryError(InternalError):
    """Fan-out could not resolve connections or at least one send failed.

    Attributes:
        report: Delivery counters, None when resolution failed before any send.
    """

    default_error_code = "NOTIFICATION_DELIVERY_ERROR"

    def __init__(self, message: str, report: NotificationDeliveryReport | None = None):
        super().__init__(message)
        self.report = report


class NotificationFanout(NotificationFanoutPort):
    """Send one serialized envelope to all connections of an organization concurrently."""

    def __init__(
        self,
        connection_directory: ConnectionDirectoryPort,
        push_channel: PushChannelPort,
        max_parallel_sends: int = 8,
    ):
        """Initialize fan-out dependencies.

        Args:
            connection_directory: Resolver of live connection ids per organization.
            push_channel: Transport used to deliver payloads.
            max_parallel_sends: Upper bound for concurrent sends within one call.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or limits are invalid.
        """

        if connection_directory is None:
            raise ValueError("connection_directory must not be None")
        if push_channel is None:
            raise ValueError("push_channel must not be None")
        if max_parallel_sends < 1:
            raise ValueError("max_parallel_sends must be >= 1")

        self._connection_directory = connection_directory
        self._push_channel = push_channel
        self._max_parallel_sends = max_parallel_sends

    def notification_notify_complete(
        self,
        org_id: str,
        analysis_id: str,
        result: AnalysisResult,
    ) -> NotificationDeliveryReport:
        """Push one `ANALYSIS_COMPLETE` event; see `NotificationFanoutPort`."""

        envelope = domain_build_notification_envelope(
            notification_type=NOTIFICATION_TYPE_ANALYSIS_COMPLETE,
            org_id=org_id,
            job_id=analysis_id,
            status=ANALYSIS_STATUS_COMPLETED,
            result=analysis_result_to_document(result),
        )
        return self._notification_broadcast(org_id, domain_serialize_notification_envelope(envelope))

    def notification_notify_failed(
        self,
        org_id: str,
        analysis_id: str,
        error_message: str,
    ) -> NotificationDeliveryReport:
        """Push one `ANALYSIS_FAILED` event; see `NotificationFanoutPort`."""

        envelope = domain_build_notification_envelope(
            notification_type=NOTIFICATION_TYPE_ANALYSIS_FAILED,
            org_id=org_id,
            job_id=analysis_id,
            status=ANALYSIS_STATUS_FAILED,
            error=error_message,
        )
        return self._notification_broadcast(org_id, domain_serialize_notification_envelope(envelope))

    def notification_relay(self, org_id: str, message: str) -> NotificationDeliveryReport:
        """Broadcast one raw client message to every connection of an organization.

        Args:
            org_id: Organization identifier of the sender.
            message: Text payload received from the client.

        Returns:
            NotificationDeliveryReport: Delivery counters.

        Raises:
            NotificationDeliveryError: Raised when resolution or any send fails.
        """

        return self._notification_broadcast(org_id, message)

    def _notification_broadcast(self, org_id: str, payload: str) -> NotificationDeliveryReport:
        """Resolve connections and send one payload to each of them.

        Args:
            org_id: Organization identifier.
            payload: Serialized payload.

        Returns:
            NotificationDeliveryReport: Delivery counters when every send succeeded.

        Raises:
            NotificationDeliveryError: Raised when resolution or any send fails.
        """

        try:
            connection_ids = self._connection_directory.db_connection_list_for_org(org_id)
        except Exception as error:
            raise NotificationDeliveryError(f"failed to resolve connections for org {org_id}") from error

        if not connection_ids:
            logger.debug("no live connections org_id=%s", org_id)
            return NotificationDeliveryReport(attempted=0, delivered=0)

        worker_count = min(self._max_parallel_sends, len(connection_ids))
        with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="notify") as executor:
            futures = [
                (connection_id, executor.submit(self._push_channel.push_send, connection_id, payload))
                for connection_id in connection_ids
            ]

        failed_connection_ids: list[str] = []
        for connection_id, future in futures:
            send_error = future.exception()
            if send_error is not None:
                logger.warning(
                    "notification send failed org_id=%s connection_id=%s error=%s",
                    org_id,
                    connection_id,
                    send_error,
                )
                failed_connection_ids.append(connection_id)

        report = NotificationDeliveryReport(
            attempted=len(connection_ids),
            delivered=len(connection_ids) - len(failed_connection_ids),
            failed_connection_ids=tuple(failed_connection_ids),
        )
        logger.info(
            "notification fan-out finished org_id=%s attempted=%s delivered=%s",
            org_id,
            report.attempted,
            report.delivered,
        )
        if failed_connection_ids:
            raise NotificationDeliveryError(
                f"failed to deliver to {len(failed_connection_ids)} of {report.attempted} connections",
                report=report,
            )
        return report
