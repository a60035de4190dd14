"""Notification envelope builders for realtime outcome events."""

from __future__ import annotations

import json
from typing import Any, Final

NOTIFICATION_TYPE_ANALYSIS_COMPLETE: Final[str] = "ANALYSIS_COMPLETE"
NOTIFICATION_TYPE_ANALYSIS_FAILED: Final[str] = "ANALYSIS_FAILED"


def domain_build_notification_envelope(
    notification_type: str,
    org_id: str,
    job_id: str,
    status: str,
    result: Any | None = None,
    error: str | None = None,
) -> dict[str, object]:
    """Build one typed notification envelope.

    Args:
        notification_type: Envelope type (`ANALYSIS_COMPLETE`, `ANALYSIS_FAILED`).
        org_id: Target organization identifier.
        job_id: Analysis job identifier.
        status: Job status carried in the event.
        result: Optional result payload for completion events.
        error: Optional error message for failure events.

    Returns:
        dict[str, object]: Envelope `{type, orgId, data: {jobId, status, result|error}}`.

    Raises:
        ValueError: Raised when the notification type is unsupported.
    """

    if notification_type not in {NOTIFICATION_TYPE_ANALYSIS_COMPLETE, NOTIFICATION_TYPE_ANALYSIS_FAILED}:
        raise ValueError(f"unsupported notification_type={notification_type}")

    data: dict[str, object] = {"jobId": job_id, "status": status}
    if result is not None:
        data["result"] = result
    if error is not None:
        data["error"] = error
    return {"type": notification_type, "orgId": org_id, "data": data}


def domain_serialize_notification_envelope(envelope: dict[str, object]) -> str:
    """Serialize one envelope to compact JSON text.

    Args:
        envelope: Envelope built by `domain_build_notification_envelope`.

    Returns:
        str: JSON text pushed to connections.
    """

    return json.dumps(envelope, separators=(",", ":"), sort_keys=True, default=str)
