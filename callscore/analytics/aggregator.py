"""Aggregator: index evaluation results and compute dashboard analytics.

Every function here is pure: the same filters and dataset always produce the
same summary. Indices are rebuilt per call and never shared.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from callscore.analytics.filters import DashboardFilters
from callscore.analytics.models import (
    Criterion,
    CriterionPassRate,
    CriterionRef,
    DashboardDataset,
    DashboardSummary,
    EvaluationResult,
    HeatmapCell,
    MostImprovedTechnician,
    NeedsAttentionItem,
    Overview,
    PeriodData,
    ResultIndex,
    SparklinePoint,
    Technician,
    TechnicianRef,
    TechnicianStats,
    TechnicianTrend,
    Transcript,
    TrendPoint,
    WeakestCriterion,
)
from callscore.config import get_settings

UNKNOWN_TECHNICIAN = "Unknown"


# ---------------------------------------------------------------------------
# Rate helpers
# ---------------------------------------------------------------------------


def tally(results: list[EvaluationResult]) -> tuple[int, int]:
    """Return (passed, decided) counts; results with ``passed is None`` are skipped."""
    passed = 0
    decided = 0
    for result in results:
        if result.passed is None:
            continue
        decided += 1
        if result.passed:
            passed += 1
    return passed, decided


def pass_rate(results: list[EvaluationResult]) -> float | None:
    passed, decided = tally(results)
    return passed / decided if decided > 0 else None


# ---------------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------------


def build_index(
    period: PeriodData,
    criteria: list[Criterion],
    criteria_ids: list[UUID] | None = None,
) -> ResultIndex:
    """Build lookup maps for one period.

    ``filtered_results`` keeps only results of completed transcripts scored
    against a currently active/published criterion (and, when given, one of
    ``criteria_ids``). All aggregates read from it.
    """
    transcripts_by_id = {t.id: t for t in period.transcripts}
    completed_ids = [t.id for t in period.transcripts if t.is_completed]
    completed = set(completed_ids)

    allowed = {c.id for c in criteria}
    if criteria_ids is not None:
        allowed &= set(criteria_ids)

    filtered_results = [
        r for r in period.results
        if r.transcript_id in completed and r.criterion_id in allowed
    ]

    results_by_criterion: dict[UUID, list[EvaluationResult]] = {}
    results_by_transcript: dict[UUID, list[EvaluationResult]] = {}
    for result in filtered_results:
        results_by_criterion.setdefault(result.criterion_id, []).append(result)
        results_by_transcript.setdefault(result.transcript_id, []).append(result)

    completed_by_technician: dict[UUID, list[UUID]] = {}
    for transcript in period.transcripts:
        if transcript.is_completed and transcript.technician_id is not None:
            completed_by_technician.setdefault(transcript.technician_id, []).append(transcript.id)

    return ResultIndex(
        transcripts=period.transcripts,
        filtered_results=filtered_results,
        transcripts_by_id=transcripts_by_id,
        results_by_criterion=results_by_criterion,
        results_by_transcript=results_by_transcript,
        completed_by_technician=completed_by_technician,
        completed_ids=completed_ids,
    )


# ---------------------------------------------------------------------------
# (a) Overview
# ---------------------------------------------------------------------------


def find_most_improved(
    current: ResultIndex,
    previous: ResultIndex,
    technicians: list[Technician],
) -> MostImprovedTechnician | None:
    """Technician with the largest pass-rate gain over the comparison period.

    Technicians without qualifying results in either period are skipped.
    Ties keep the first technician in ``technicians`` order.
    """
    best: MostImprovedTechnician | None = None

    for tech in technicians:
        current_rate = pass_rate(
            current.results_for_transcripts(current.completed_by_technician.get(tech.id, []))
        )
        if current_rate is None:
            continue
        previous_rate = pass_rate(
            previous.results_for_transcripts(previous.completed_by_technician.get(tech.id, []))
        )
        if previous_rate is None:
            continue

        improvement = current_rate - previous_rate
        if best is None or improvement > best.improvement:
            best = MostImprovedTechnician(id=tech.id, name=tech.name, improvement=improvement)

    return best


def find_weakest_criterion(criteria_rates: list[CriterionPassRate]) -> WeakestCriterion | None:
    """Criterion with the lowest pass rate; ties keep the first in list order."""
    weakest: CriterionPassRate | None = None
    for rate in criteria_rates:
        if rate.pass_rate is None:
            continue
        if weakest is None or rate.pass_rate < weakest.pass_rate:
            weakest = rate

    if weakest is None:
        return None
    return WeakestCriterion(
        id=weakest.criteria_id,
        name=weakest.criteria_name,
        fail_rate=1 - weakest.pass_rate,
    )


def compute_overview(
    current: ResultIndex,
    previous: ResultIndex,
    technicians: list[Technician],
    criteria_rates: list[CriterionPassRate],
) -> Overview:
    overall = pass_rate(current.filtered_results)
    previous_overall = pass_rate(previous.filtered_results)

    change = None
    if overall is not None and previous_overall is not None:
        change = overall - previous_overall

    return Overview(
        total_transcripts=len(current.transcripts),
        total_evaluations=len(current.filtered_results),
        overall_pass_rate=overall,
        pass_rate_change=change,
        most_improved_technician=find_most_improved(current, previous, technicians),
        weakest_criterion=find_weakest_criterion(criteria_rates),
    )


# ---------------------------------------------------------------------------
# (b) Criteria pass rates
# ---------------------------------------------------------------------------


def compute_criteria_pass_rates(
    index: ResultIndex,
    criteria: list[Criterion],
    default_target: float | None = None,
) -> list[CriterionPassRate]:
    if default_target is None:
        default_target = get_settings().default_target_pass_rate

    rates: list[CriterionPassRate] = []
    for criterion in criteria:
        results = index.results_by_criterion.get(criterion.id, [])
        target = criterion.target_pass_rate
        rates.append(
            CriterionPassRate(
                criteria_id=criterion.id,
                criteria_name=criterion.name,
                pass_rate=pass_rate(results),
                total_evals=len(results),
                target_pass_rate=target if target is not None else default_target,
            )
        )
    return rates


# ---------------------------------------------------------------------------
# (c) Heatmap
# ---------------------------------------------------------------------------


def compute_heatmap(
    index: ResultIndex,
    technicians: list[Technician],
    criteria: list[Criterion],
) -> list[HeatmapCell]:
    """Technician x criterion pass rates.

    Every technician gets a row once the window holds any transcript; cells
    without qualifying results report None. An empty window has no cells.
    """
    cells: list[HeatmapCell] = []
    if not index.transcripts:
        return cells

    for tech in technicians:
        own = set(index.completed_by_technician.get(tech.id, []))
        for criterion in criteria:
            results = [
                r for r in index.results_by_criterion.get(criterion.id, [])
                if r.transcript_id in own
            ]
            cells.append(
                HeatmapCell(
                    technician_id=tech.id,
                    technician_name=tech.name,
                    criteria_id=criterion.id,
                    criteria_name=criterion.name,
                    pass_rate=pass_rate(results),
                )
            )
    return cells


# ---------------------------------------------------------------------------
# (d) Trend
# ---------------------------------------------------------------------------


def _utc_date(ts: datetime):
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).date()


def bucket_key(ts: datetime, monthly: bool) -> str:
    """First day of the UTC month, or Monday of the UTC ISO week, as YYYY-MM-DD."""
    day = _utc_date(ts)
    if monthly:
        return day.replace(day=1).isoformat()
    return (day - timedelta(days=day.weekday())).isoformat()


def compute_trend(
    index: ResultIndex,
    technicians: list[Technician],
    monthly: bool,
) -> list[TrendPoint]:
    buckets: dict[str, list[EvaluationResult]] = {}
    tech_buckets: dict[str, dict[UUID, list[EvaluationResult]]] = {}

    for result in index.filtered_results:
        key = bucket_key(result.created_at, monthly)
        buckets.setdefault(key, []).append(result)

        transcript = index.transcripts_by_id.get(result.transcript_id)
        if transcript is not None and transcript.technician_id is not None:
            tech_buckets.setdefault(key, {}).setdefault(transcript.technician_id, []).append(result)

    points: list[TrendPoint] = []
    for key in sorted(buckets):
        per_tech = tech_buckets.get(key, {})
        trends = []
        for tech in technicians:
            rate = pass_rate(per_tech.get(tech.id, []))
            if rate is not None:
                trends.append(TechnicianTrend(technician_id=tech.id, name=tech.name, pass_rate=rate))
        points.append(
            TrendPoint(
                period=key,
                overall_pass_rate=pass_rate(buckets[key]),
                technician_trends=trends,
            )
        )
    return points


# ---------------------------------------------------------------------------
# (e) Needs attention
# ---------------------------------------------------------------------------


def compute_needs_attention(
    index: ResultIndex,
    technicians: list[Technician],
    threshold: float | None = None,
    limit: int | None = None,
) -> list[NeedsAttentionItem]:
    """Most recent completed transcripts whose own pass rate is below threshold."""
    settings = get_settings()
    if threshold is None:
        threshold = settings.needs_attention_threshold
    if limit is None:
        limit = settings.needs_attention_limit

    names = {t.id: t.name for t in technicians}
    items: list[NeedsAttentionItem] = []

    for transcript_id in index.completed_ids:
        passed, decided = tally(index.results_by_transcript.get(transcript_id, []))
        if decided == 0:
            continue
        rate = passed / decided
        if rate >= threshold:
            continue

        transcript = index.transcripts_by_id[transcript_id]
        items.append(
            NeedsAttentionItem(
                transcript_id=transcript_id,
                technician_name=names.get(transcript.technician_id, UNKNOWN_TECHNICIAN),
                date=transcript.created_at,
                service_type=transcript.service_type,
                pass_rate=rate,
                passed=passed,
                total=decided,
            )
        )

    items.sort(key=lambda item: item.date, reverse=True)
    return items[:limit]


# ---------------------------------------------------------------------------
# (f) Sparkline
# ---------------------------------------------------------------------------


def compute_sparkline(index: ResultIndex) -> list[SparklinePoint]:
    """Daily evaluation counts and pass rates, plus daily transcript volume."""
    results_by_day: dict[str, list[EvaluationResult]] = {}
    for result in index.filtered_results:
        results_by_day.setdefault(_utc_date(result.created_at).isoformat(), []).append(result)

    transcripts_by_day: dict[str, int] = {}
    for transcript in index.transcripts:
        day = _utc_date(transcript.created_at).isoformat()
        transcripts_by_day[day] = transcripts_by_day.get(day, 0) + 1

    return [
        SparklinePoint(
            date=day,
            pass_rate=pass_rate(results_by_day.get(day, [])),
            evaluations=len(results_by_day.get(day, [])),
            transcripts=transcripts_by_day.get(day, 0),
        )
        for day in sorted(results_by_day.keys() | transcripts_by_day.keys())
    ]


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def compute_dashboard(filters: DashboardFilters, dataset: DashboardDataset) -> DashboardSummary:
    """Compute every dashboard aggregate from one retrieved dataset."""
    current = build_index(dataset.current, dataset.criteria, filters.criteria_ids)
    previous = build_index(dataset.previous, dataset.criteria, filters.criteria_ids)

    criteria_rates = compute_criteria_pass_rates(current, dataset.criteria)

    return DashboardSummary(
        overview=compute_overview(current, previous, dataset.technicians, criteria_rates),
        criteria_pass_rates=criteria_rates,
        heatmap_data=compute_heatmap(current, dataset.technicians, dataset.criteria),
        trend_data=compute_trend(current, dataset.technicians, filters.uses_monthly_buckets()),
        needs_attention=compute_needs_attention(current, dataset.technicians),
        sparkline_data=compute_sparkline(current),
        available_technicians=[TechnicianRef(id=t.id, name=t.name) for t in dataset.technicians],
        available_criteria=[CriterionRef(id=c.id, name=c.name) for c in dataset.criteria],
    )


# ---------------------------------------------------------------------------
# Technician stats
# ---------------------------------------------------------------------------


def compute_technician_stats(
    technician_ids: list[UUID],
    transcripts: list[Transcript],
    results: list[EvaluationResult],
) -> dict[UUID, TechnicianStats]:
    """All-time call counts and pass rates for the given technicians.

    ``total_calls`` counts every transcript; the pass rate only uses results
    of completed transcripts.
    """
    call_counts: dict[UUID, int] = {}
    completed_by_technician: dict[UUID, set[UUID]] = {}
    for transcript in transcripts:
        if transcript.technician_id is None:
            continue
        call_counts[transcript.technician_id] = call_counts.get(transcript.technician_id, 0) + 1
        if transcript.is_completed:
            completed_by_technician.setdefault(transcript.technician_id, set()).add(transcript.id)

    stats: dict[UUID, TechnicianStats] = {}
    for technician_id in technician_ids:
        completed = completed_by_technician.get(technician_id, set())
        own = [r for r in results if r.transcript_id in completed]
        stats[technician_id] = TechnicianStats(
            technician_id=technician_id,
            total_calls=call_counts.get(technician_id, 0),
            pass_rate=pass_rate(own),
        )
    return stats
