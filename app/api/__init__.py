"""API layer package for FastAPI application and route composition."""

from .application import create_api_application
from .auth import AuthClaims, JwtAuthValidator

__all__ = ["AuthClaims", "JwtAuthValidator", "create_api_application"]
