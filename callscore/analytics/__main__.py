"""CLI entry point for dashboard analytics.

Usage:
    python -m callscore.analytics <command> [OPTIONS]

Commands:
    dashboard          Compute the dashboard for an organization and range
    technician-stats   All-time call volume and pass rate per technician
"""

from dotenv import load_dotenv

from callscore.analytics.cli import analytics
from callscore.config import get_settings
from callscore.services.logging_service import configure_logging


def main() -> None:
    """Entry point for ``python -m callscore.analytics``."""
    load_dotenv()
    configure_logging(get_settings().log_level)
    analytics()


if __name__ == "__main__":
    main()
