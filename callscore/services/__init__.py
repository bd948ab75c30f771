"""Services package exports."""

from callscore.services.dashboard_service import DashboardService, InFlightRegistry
from callscore.services.logging_service import configure_logging, get_logger
from callscore.services.store import PostgresEvaluationStore

__all__ = [
    "DashboardService",
    "InFlightRegistry",
    "PostgresEvaluationStore",
    "configure_logging",
    "get_logger",
]
