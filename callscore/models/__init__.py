"""Models package exports."""

from callscore.models.dashboard import (
    CriterionPassRateResponse,
    DashboardResponse,
    ErrorResponse,
    HeatmapCellResponse,
    NeedsAttentionItemResponse,
    OverviewResponse,
    SparklinePointResponse,
    TechnicianStatsListResponse,
    TechnicianStatsResponse,
    TrendPointResponse,
)

__all__ = [
    "CriterionPassRateResponse",
    "DashboardResponse",
    "ErrorResponse",
    "HeatmapCellResponse",
    "NeedsAttentionItemResponse",
    "OverviewResponse",
    "SparklinePointResponse",
    "TechnicianStatsListResponse",
    "TechnicianStatsResponse",
    "TrendPointResponse",
]
