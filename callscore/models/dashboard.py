"""Pydantic response models for the dashboard API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DashboardModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


class MostImprovedTechnicianResponse(DashboardModel):
    id: UUID
    name: str
    improvement: float


class WeakestCriterionResponse(DashboardModel):
    id: UUID
    name: str
    fail_rate: Optional[float] = None


class OverviewResponse(DashboardModel):
    total_transcripts: int
    total_evaluations: int
    overall_pass_rate: Optional[float] = None
    pass_rate_change: Optional[float] = None
    most_improved_technician: Optional[MostImprovedTechnicianResponse] = None
    weakest_criterion: Optional[WeakestCriterionResponse] = None


# ---------------------------------------------------------------------------
# Breakdown rows
# ---------------------------------------------------------------------------


class CriterionPassRateResponse(DashboardModel):
    criteria_id: UUID
    criteria_name: str
    pass_rate: Optional[float] = None
    total_evals: int
    target_pass_rate: float


class HeatmapCellResponse(DashboardModel):
    technician_id: UUID
    technician_name: str
    criteria_id: UUID
    criteria_name: str
    pass_rate: Optional[float] = None


class TechnicianTrendResponse(DashboardModel):
    technician_id: UUID
    name: str
    pass_rate: Optional[float] = None


class TrendPointResponse(DashboardModel):
    period: str
    overall_pass_rate: Optional[float] = None
    technician_trends: list[TechnicianTrendResponse]


class NeedsAttentionItemResponse(DashboardModel):
    transcript_id: UUID
    technician_name: str
    date: datetime
    service_type: Optional[str] = None
    pass_rate: Optional[float] = None
    passed: int
    total: int


class SparklinePointResponse(DashboardModel):
    date: str
    pass_rate: Optional[float] = None
    evaluations: int
    transcripts: int


class ReferenceItem(DashboardModel):
    id: UUID
    name: str


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class DashboardResponse(DashboardModel):
    overview: OverviewResponse
    criteria_pass_rates: list[CriterionPassRateResponse]
    heatmap_data: list[HeatmapCellResponse]
    trend_data: list[TrendPointResponse]
    needs_attention: list[NeedsAttentionItemResponse]
    sparkline_data: list[SparklinePointResponse]
    available_technicians: list[ReferenceItem]
    available_criteria: list[ReferenceItem]


class TechnicianStatsResponse(DashboardModel):
    technician_id: UUID
    total_calls: int
    pass_rate: Optional[float] = None


class TechnicianStatsListResponse(DashboardModel):
    stats: list[TechnicianStatsResponse]


class ErrorResponse(BaseModel):
    error: str
    detail: str
    correlation_id: str
    retryable: bool = False
