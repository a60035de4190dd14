"""API router package for endpoint composition."""

from .analysis import api_create_analysis_router
from .health import api_create_health_router
from .profile import api_create_profile_router
from .realtime import api_create_realtime_router

__all__ = [
	"api_create_analysis_router",
	"api_create_health_router",
	"api_create_profile_router",
	"api_create_realtime_router",
]
