"""FastAPI dependencies for dashboard services."""

from callscore.services.dashboard_service import (
    DashboardService,
    InFlightRegistry,
    get_in_flight_registry,
)


def get_dashboard_service() -> DashboardService:
    """Provide a DashboardService backed by the Postgres store."""
    return DashboardService()


def get_registry() -> InFlightRegistry:
    """Provide the process-wide in-flight request registry."""
    return get_in_flight_registry()
