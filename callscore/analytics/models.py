"""Data models for dashboard analytics: store rows, indices, and aggregates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

COMPLETED = "completed"
MOCK_SOURCE = "mock"


# ---------------------------------------------------------------------------
# Store rows (read-only)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Technician:
    id: UUID
    name: str


@dataclass(frozen=True)
class Criterion:
    """An active, published rubric criterion."""

    id: UUID
    name: str
    category: str | None = None
    target_pass_rate: float | None = None


@dataclass(frozen=True)
class Transcript:
    id: UUID
    technician_id: UUID | None
    source: str  # "recording", "paste", or "mock"
    service_type: str | None
    eval_status: str  # "pending", "processing", "completed", or "failed"
    created_at: datetime

    @property
    def is_completed(self) -> bool:
        return self.eval_status == COMPLETED


@dataclass(frozen=True)
class EvaluationResult:
    id: UUID
    transcript_id: UUID
    criterion_id: UUID
    passed: bool | None  # None = no verdict, excluded from every rate
    created_at: datetime


# ---------------------------------------------------------------------------
# Retrieved dataset and per-period index
# ---------------------------------------------------------------------------


@dataclass
class PeriodData:
    """Transcripts in one time window plus results of its completed transcripts."""

    transcripts: list[Transcript] = field(default_factory=list)
    results: list[EvaluationResult] = field(default_factory=list)


@dataclass
class DashboardDataset:
    technicians: list[Technician]
    criteria: list[Criterion]
    current: PeriodData
    previous: PeriodData


@dataclass
class ResultIndex:
    """Lookup structures built once per period and shared by every aggregate."""

    transcripts: list[Transcript]
    filtered_results: list[EvaluationResult]
    transcripts_by_id: dict[UUID, Transcript]
    results_by_criterion: dict[UUID, list[EvaluationResult]]
    results_by_transcript: dict[UUID, list[EvaluationResult]]
    completed_by_technician: dict[UUID, list[UUID]]
    completed_ids: list[UUID]

    def results_for_transcripts(self, transcript_ids: list[UUID]) -> list[EvaluationResult]:
        results: list[EvaluationResult] = []
        for transcript_id in transcript_ids:
            results.extend(self.results_by_transcript.get(transcript_id, []))
        return results


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass
class MostImprovedTechnician:
    id: UUID
    name: str
    improvement: float


@dataclass
class WeakestCriterion:
    id: UUID
    name: str
    fail_rate: float | None


@dataclass
class Overview:
    total_transcripts: int
    total_evaluations: int
    overall_pass_rate: float | None
    pass_rate_change: float | None
    most_improved_technician: MostImprovedTechnician | None
    weakest_criterion: WeakestCriterion | None


@dataclass
class CriterionPassRate:
    criteria_id: UUID
    criteria_name: str
    pass_rate: float | None
    total_evals: int
    target_pass_rate: float


@dataclass
class HeatmapCell:
    technician_id: UUID
    technician_name: str
    criteria_id: UUID
    criteria_name: str
    pass_rate: float | None


@dataclass
class TechnicianTrend:
    technician_id: UUID
    name: str
    pass_rate: float | None


@dataclass
class TrendPoint:
    """Pass rates for one week or month, keyed by the bucket's first day."""

    period: str  # YYYY-MM-DD
    overall_pass_rate: float | None
    technician_trends: list[TechnicianTrend]


@dataclass
class NeedsAttentionItem:
    transcript_id: UUID
    technician_name: str
    date: datetime
    service_type: str | None
    pass_rate: float | None
    passed: int
    total: int


@dataclass
class SparklinePoint:
    date: str  # YYYY-MM-DD
    pass_rate: float | None
    evaluations: int
    transcripts: int


@dataclass
class TechnicianRef:
    id: UUID
    name: str


@dataclass
class CriterionRef:
    id: UUID
    name: str


@dataclass
class DashboardSummary:
    """Everything the dashboard page renders, computed from one dataset."""

    overview: Overview
    criteria_pass_rates: list[CriterionPassRate]
    heatmap_data: list[HeatmapCell]
    trend_data: list[TrendPoint]
    needs_attention: list[NeedsAttentionItem]
    sparkline_data: list[SparklinePoint]
    available_technicians: list[TechnicianRef]
    available_criteria: list[CriterionRef]


@dataclass
class TechnicianStats:
    """All-time call volume and pass rate for one technician."""

    technician_id: UUID
    total_calls: int
    pass_rate: float | None
