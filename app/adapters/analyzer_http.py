"""HTTP adapter for the external analysis service."""

from __future__ import annotations

import logging
from typing import Any, Final

import httpx

from app.domain import AnalysisContext, AnalysisResult

from .analyzer_errors import (
    AnalyzerConnectionError,
    AnalyzerContractError,
    AnalyzerResponseError,
    AnalyzerTimeoutError,
)
from .interfaces import AnalyzerPort

logger = logging.getLogger(__name__)


class HttpAnalyzerAdapter(AnalyzerPort):
    """Adapter implementation for the analyzer `POST /v1/analyze` contract."""

    _USER_AGENT: Final[str] = "analysis-hub/1.0 (Python/httpx)"
    _ANALYZE_PATH: Final[str] = "/v1/analyze"
    _HEALTH_PATH: Final[str] = "/health"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize analyzer adapter with one pooled HTTP client.

        Args:
            base_url: Analyzer base URL.
            api_key: API key sent in the `x-api-key` header.
            timeout_seconds: Request timeout in seconds.
            transport: Optional transport override used by tests.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_base_url = base_url.strip().rstrip("/")
        if not normalized_base_url:
            raise ValueError("base_url must not be blank")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

        headers = {"Content-Type": "application/json", "User-Agent": self._USER_AGENT}
        if api_key.strip():
            headers["x-api-key"] = api_key.strip()

        self._base_url = normalized_base_url
        self._client = httpx.Client(
            base_url=normalized_base_url,
            timeout=timeout_seconds,
            headers=headers,
            transport=transport,
        )

    def adapter_source_name(self) -> str:
        """Return stable adapter source label.

        Returns:
            str: Source identifier.
        """

        return "analyzer_http"

    def adapter_analyze(self, context: AnalysisContext) -> AnalysisResult:
        """Submit one job context to the analyzer and map its response.

        Args:
            context: Job request context.

        Returns:
            AnalysisResult: Validated analyzer result.

        Raises:
            AnalyzerConnectionError: Raised for transport failures.
            AnalyzerTimeoutError: Raised when the request times out.
            AnalyzerResponseError: Raised for non-success HTTP status.
            AnalyzerContractError: Raised when the response body is invalid.
        """

        request_payload = self._adapter_build_request_payload(context)
        logger.info(
            "calling analyzer project_id=%s test_id=%s",
            context.project_id,
            context.test_id,
        )

        try:
            response = self._client.post(self._ANALYZE_PATH, json=request_payload)
        except httpx.TimeoutException as error:
            raise AnalyzerTimeoutError("analyzer request timed out") from error
        except httpx.TransportError as error:
            raise AnalyzerConnectionError("analyzer transport request failed") from error

        if response.status_code >= 400:
            raise AnalyzerResponseError(
                f"analyzer returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            response_payload = response.json()
        except ValueError as error:
            raise AnalyzerContractError("analyzer response is not valid JSON") from error

        result = self._adapter_map_result(response_payload)
        logger.info(
            "analyzer response received project_id=%s test_id=%s confidence=%s",
            context.project_id,
            context.test_id,
            result.confidence,
        )
        return result

    def adapter_health(self) -> bool:
        """Probe analyzer health endpoint.

        Returns:
            bool: True when the analyzer answers HTTP 200.
        """

        try:
            response = self._client.get(self._HEALTH_PATH)
        except httpx.HTTPError as error:
            logger.warning("analyzer health check failed error=%s", type(error).__name__)
            return False
        return response.status_code == 200

    def adapter_close(self) -> None:
        """Release pooled HTTP connections."""

        self._client.close()

    def _adapter_build_request_payload(self, context: AnalysisContext) -> dict[str, Any]:
        """Build analyzer wire payload from the job context.

        Args:
            context: Job request context.

        Returns:
            dict[str, Any]: JSON request body in analyzer field naming.
        """

        metadata_payload: dict[str, Any] = {}
        if context.metadata is not None:
            metadata_payload = {
                "environment": context.metadata.environment,
                "version": context.metadata.version,
                "tags": list(context.metadata.tags),
            }
        return {
            "projectId": context.project_id,
            "testId": context.test_id,
            "parameters": dict(context.parameters),
            "metadata": metadata_payload,
        }

    def _adapter_map_result(self, response_payload: Any) -> AnalysisResult:
        """Validate analyzer response body and map it to a typed result.

        Args:
            response_payload: Decoded JSON response body.

        Returns:
            AnalysisResult: Typed analyzer result.

        Raises:
            AnalyzerContractError: Raised when required fields are missing or invalid.
        """

        if not isinstance(response_payload, dict):
            raise AnalyzerContractError("analyzer response must be a JSON object")

        summary = response_payload.get("summary")
        if not isinstance(summary, str):
            raise AnalyzerContractError("analyzer response summary must be a string")

        confidence = response_payload.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise AnalyzerContractError("analyzer response confidence must be a number")
        if confidence < 0 or confidence > 1:
            raise AnalyzerContractError("analyzer response confidence must be within [0, 1]")

        recommendations = response_payload.get("recommendations") or []
        metrics = response_payload.get("metrics") or {}
        insights = response_payload.get("insights") or []
        if not isinstance(recommendations, list):
            raise AnalyzerContractError("analyzer response recommendations must be a list")
        if not isinstance(metrics, dict):
            raise AnalyzerContractError("analyzer response metrics must be an object")
        if not isinstance(insights, list):
            raise AnalyzerContractError("analyzer response insights must be a list")

        return AnalysisResult(
            summary=summary,
            confidence=float(confidence),
            recommendations=recommendations,
            metrics=metrics,
            insights=insights,
        )
