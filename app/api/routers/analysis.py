"""Analysis API router composition for job creation, detail and listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.config import AppSettings
from app.domain import analysis_to_document
from app.jobs import AnalysisListOptions, AnalysisOrchestratorPort

from ..auth import AuthClaims, JwtAuthValidator, api_create_claims_dependency
from ..schemas import AnalysisCreateBody


def api_create_analysis_router(
    settings: AppSettings,
    analysis_orchestrator: AnalysisOrchestratorPort,
    auth_validator: JwtAuthValidator,
) -> APIRouter:
    """Create analysis router scoped to the caller's organization.

    Args:
        settings: Runtime settings used for pagination defaults.
        analysis_orchestrator: Job orchestrator.
        auth_validator: Bearer token validator.

    Returns:
        APIRouter: Router exposing `/v1/analyses` APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if analysis_orchestrator is None:
        raise ValueError("analysis_orchestrator must not be None")

    require_claims = api_create_claims_dependency(auth_validator)
    router = APIRouter(prefix="/v1/analyses", tags=["analyses"])

    @router.post("")
    def api_analysis_create(
        body: AnalysisCreateBody,
        claims: AuthClaims = Depends(require_claims),
    ) -> JSONResponse:
        """Create one analysis job and return it while still pending.

        Returns:
            JSONResponse: Pending job document with HTTP 202.
        """

        job = analysis_orchestrator.job_analysis_create(claims.org_id, body.api_to_domain_request())
        return JSONResponse(content=analysis_to_document(job), status_code=status.HTTP_202_ACCEPTED)

    @router.get("")
    def api_analysis_list(
        status_filter: str | None = Query(default=None, alias="status"),
        limit: int = Query(default=settings.api_default_limit, ge=1),
        cursor: str | None = Query(default=None),
        claims: AuthClaims = Depends(require_claims),
    ) -> JSONResponse:
        """Return one page of the caller organization's jobs, newest first.

        Args:
            status_filter: Optional status filter.
            limit: Page size, clamped to the configured maximum.
            cursor: Optional cursor from a previous page.

        Returns:
            JSONResponse: `{items, next_cursor}` payload.
        """

        page = analysis_orchestrator.job_analysis_list(
            claims.org_id,
            AnalysisListOptions(
                status=status_filter,
                limit=min(limit, settings.api_max_limit),
                cursor=cursor,
            ),
        )
        payload = {
            "items": [analysis_to_document(job) for job in page.items],
            "next_cursor": page.next_cursor,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/{analysis_id}")
    def api_analysis_detail(
        analysis_id: str,
        claims: AuthClaims = Depends(require_claims),
    ) -> JSONResponse:
        """Return one job owned by the caller organization.

        Args:
            analysis_id: Job identifier.

        Returns:
            JSONResponse: Job document.
        """

        job = analysis_orchestrator.job_analysis_get(claims.org_id, analysis_id)
        return JSONResponse(content=analysis_to_document(job), status_code=status.HTTP_200_OK)

    return router
