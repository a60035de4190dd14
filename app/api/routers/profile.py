"""Caller profile router."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..auth import AuthClaims, JwtAuthValidator, api_create_claims_dependency


def api_create_profile_router(auth_validator: JwtAuthValidator) -> APIRouter:
    """Create router exposing `/me` from verified token claims."""

    require_claims = api_create_claims_dependency(auth_validator)
    router = APIRouter(tags=["profile"])

    @router.get("/me")
    def api_profile_me(claims: AuthClaims = Depends(require_claims)) -> JSONResponse:
        payload = {
            "subject_id": claims.subject_id,
            "org_id": claims.org_id,
            "email": claims.email,
            "roles": list(claims.roles),
            "expires_at": claims.expires_at.isoformat() if claims.expires_at is not None else None,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
