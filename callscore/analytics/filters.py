"""Filter resolution: raw query parameters -> canonical DashboardFilters."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from callscore.analytics.errors import FilterValidationError
from callscore.config import get_settings

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class DashboardFilters:
    """Canonical filter set for one dashboard computation.

    ``technician_ids`` of None means all technicians. ``criteria_ids`` of None
    means all criteria; an empty list selects no results.
    """

    organization_id: UUID
    start_date: datetime
    end_date: datetime
    technician_ids: list[UUID] | None = None
    criteria_ids: list[UUID] | None = None
    exclude_mock: bool = True

    @property
    def period_length_days(self) -> int:
        """Whole days between start and end (partial days truncated)."""
        return (self.end_date - self.start_date).days

    def comparison_period(self) -> tuple[datetime, datetime]:
        """Window of identical length ending 1ms before the current window starts."""
        prev_end = self.start_date - timedelta(milliseconds=1)
        prev_start = prev_end - timedelta(days=self.period_length_days)
        return prev_start, prev_end

    def uses_monthly_buckets(self, weekly_max_days: int | None = None) -> bool:
        if weekly_max_days is None:
            weekly_max_days = get_settings().weekly_bucket_max_days
        return self.period_length_days > weekly_max_days


def parse_organization_id(value: str) -> UUID:
    if not UUID_RE.match(value or ""):
        raise FilterValidationError("Invalid org ID")
    return UUID(value)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (ValueError, AttributeError):
        raise FilterValidationError("Invalid date format") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_id_list(value: str | None) -> list[UUID] | None:
    """Split a comma-separated id list, silently dropping malformed ids."""
    if not value:
        return None
    return [UUID(part) for part in (p.strip() for p in value.split(",")) if UUID_RE.match(part)]


def resolve_filters(
    organization_id: str,
    start_date: str | None = None,
    end_date: str | None = None,
    technician_ids: str | None = None,
    criteria_ids: str | None = None,
    exclude_mock: str | None = None,
    *,
    now: datetime | None = None,
) -> DashboardFilters:
    """Validate and normalize raw dashboard query parameters.

    Args:
        organization_id: Organization UUID string.
        start_date: ISO-8601 start (default: ``now`` minus the default range).
        end_date: ISO-8601 end (default: ``now``).
        technician_ids: Comma-separated technician UUIDs, or None for all.
        criteria_ids: Comma-separated criterion UUIDs, or None for all.
        exclude_mock: Only the literal string ``"false"`` includes mock calls.
        now: Reference time for defaults.

    A start after the end is not an error; it selects an empty window.

    Raises:
        FilterValidationError: If the org id or a date is malformed.
    """
    org_id = parse_organization_id(organization_id)

    if now is None:
        now = datetime.now(timezone.utc)
    end = parse_timestamp(end_date) if end_date else now
    start = (
        parse_timestamp(start_date)
        if start_date
        else now - timedelta(days=get_settings().default_range_days)
    )
    technicians = parse_id_list(technician_ids)

    return DashboardFilters(
        organization_id=org_id,
        start_date=start,
        end_date=end,
        technician_ids=technicians or None,
        criteria_ids=parse_id_list(criteria_ids),
        exclude_mock=exclude_mock != "false",
    )
