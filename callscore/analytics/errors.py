"""Dashboard error taxonomy.

Each error carries the HTTP status it maps to and whether the caller may
retry the same request unchanged.
"""


class DashboardError(Exception):
    """Base class for errors surfaced to dashboard callers."""

    status_code: int = 500
    retryable: bool = False
    message: str = "Failed to load dashboard data"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.message
        super().__init__(self.detail)


class FilterValidationError(DashboardError):
    """Malformed organization id or date; raised before any data access."""

    status_code = 400
    message = "Invalid dashboard filters"


class DashboardRetrievalError(DashboardError):
    """A read against the store failed; the whole aggregation is abandoned."""

    status_code = 500
    retryable = True

    def __init__(self, stage: str, detail: str | None = None) -> None:
        self.stage = stage
        super().__init__(detail or f"Failed to load dashboard data ({stage})")


class DashboardTimeoutError(DashboardRetrievalError):
    status_code = 503

    def __init__(self, stage: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            stage,
            f"Dashboard data retrieval timed out after {timeout_seconds:g}s",
        )


class DashboardSupersededError(DashboardError):
    """A newer request for the same dashboard session replaced this one."""

    status_code = 409
    message = "Superseded by a newer dashboard request"
