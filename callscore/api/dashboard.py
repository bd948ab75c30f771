"""Dashboard analytics API endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request

from callscore.analytics.filters import parse_id_list, parse_organization_id, resolve_filters
from callscore.api.dependencies import get_dashboard_service, get_registry
from callscore.models.dashboard import (
    DashboardResponse,
    TechnicianStatsListResponse,
    TechnicianStatsResponse,
)
from callscore.services.dashboard_service import DashboardService, InFlightRegistry

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Dashboard"])

SESSION_HEADER = "X-Dashboard-Session"


# ---------------------------------------------------------------------------
# GET /dashboard/{org_id}
# ---------------------------------------------------------------------------


@router.get("/dashboard/{org_id}", response_model_by_alias=True)
async def get_dashboard(
    request: Request,
    org_id: str,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    technician_ids: Optional[str] = Query(default=None, alias="technicianIds"),
    criteria_ids: Optional[str] = Query(default=None, alias="criteriaIds"),
    exclude_mock: Optional[str] = Query(default=None, alias="excludeMock"),
    service: DashboardService = Depends(get_dashboard_service),
    registry: InFlightRegistry = Depends(get_registry),
) -> DashboardResponse:
    """Overview KPIs, pass-rate breakdowns, trends and at-risk calls for an org.

    Requests sharing an ``X-Dashboard-Session`` header supersede each other:
    only the newest one per session is answered.
    """
    filters = resolve_filters(
        org_id,
        start_date=start_date,
        end_date=end_date,
        technician_ids=technician_ids,
        criteria_ids=criteria_ids,
        exclude_mock=exclude_mock,
    )

    session = request.headers.get(SESSION_HEADER)
    if session:
        summary = await registry.run(
            f"{filters.organization_id}:{session}", service.get_dashboard(filters)
        )
    else:
        summary = await service.get_dashboard(filters)

    logger.info(
        "dashboard_served",
        organization_id=str(filters.organization_id),
        start_date=filters.start_date.isoformat(),
        end_date=filters.end_date.isoformat(),
        technician_filter=len(filters.technician_ids or []),
        criteria_filter=None if filters.criteria_ids is None else len(filters.criteria_ids),
        exclude_mock=filters.exclude_mock,
    )
    return DashboardResponse.model_validate(summary)


# ---------------------------------------------------------------------------
# GET /organizations/{org_id}/technician-stats
# ---------------------------------------------------------------------------


@router.get("/organizations/{org_id}/technician-stats", response_model_by_alias=True)
async def get_technician_stats(
    org_id: str,
    technician_ids: Optional[str] = Query(default=None, alias="technicianIds"),
    service: DashboardService = Depends(get_dashboard_service),
) -> TechnicianStatsListResponse:
    """All-time call volume and pass rate per technician."""
    organization_id = parse_organization_id(org_id)
    ids = parse_id_list(technician_ids) or []

    stats = await service.get_technician_stats(organization_id, ids)

    return TechnicianStatsListResponse(
        stats=[TechnicianStatsResponse.model_validate(stats[tid]) for tid in ids]
    )
