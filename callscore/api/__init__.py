"""API package exports."""

from callscore.api.dashboard import router as dashboard_router
from callscore.api.middleware import CorrelationIdMiddleware
from callscore.api.routes import router

__all__ = ["router", "dashboard_router", "CorrelationIdMiddleware"]
