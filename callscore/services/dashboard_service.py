"""Dashboard service: retrieve one dataset and hand it to the aggregator."""

import asyncio
import time
from typing import Any, Awaitable, Coroutine, Optional, TypeVar
from uuid import UUID

import structlog

from callscore.analytics.aggregator import compute_dashboard, compute_technician_stats
from callscore.analytics.errors import (
    DashboardRetrievalError,
    DashboardSupersededError,
    DashboardTimeoutError,
)
from callscore.analytics.filters import DashboardFilters
from callscore.analytics.models import (
    DashboardDataset,
    DashboardSummary,
    PeriodData,
    TechnicianStats,
)
from callscore.config import get_settings
from callscore.services.store import PostgresEvaluationStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def _guard(stage: str, awaitable: Awaitable[T]) -> T:
    """Await one store read, converting failures into DashboardRetrievalError."""
    try:
        return await awaitable
    except asyncio.TimeoutError:
        logger.error("dashboard_retrieval_timeout", stage=stage)
        raise DashboardTimeoutError(stage, get_settings().store_timeout_seconds)
    except Exception as e:
        logger.error("dashboard_retrieval_failed", stage=stage, error=str(e))
        raise DashboardRetrievalError(stage) from e


class DashboardService:
    """Loads dashboard data from the store and computes the summary."""

    def __init__(self, store: Optional[Any] = None, timeout_seconds: Optional[float] = None):
        self.store = store or PostgresEvaluationStore()
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else get_settings().store_timeout_seconds
        )

    async def _load_period(
        self, stage: str, filters: DashboardFilters, start, end
    ) -> PeriodData:
        transcripts = await _guard(
            f"{stage}_transcripts",
            self.store.fetch_transcripts(
                filters.organization_id,
                start,
                end,
                filters.technician_ids,
                filters.exclude_mock,
            ),
        )
        completed_ids = [t.id for t in transcripts if t.is_completed]
        results = await _guard(
            f"{stage}_results", self.store.fetch_eval_results(completed_ids)
        )
        return PeriodData(transcripts=transcripts, results=results)

    async def load_dataset(self, filters: DashboardFilters) -> DashboardDataset:
        """Fetch current and comparison periods concurrently.

        Raises:
            DashboardTimeoutError: If retrieval exceeds the store timeout.
            DashboardRetrievalError: If any read fails.
        """
        prev_start, prev_end = filters.comparison_period()
        org_id = filters.organization_id

        try:
            async with asyncio.timeout(self.timeout_seconds):
                try:
                    # A failed read cancels its siblings before the group exits
                    async with asyncio.TaskGroup() as tg:
                        technicians = tg.create_task(
                            _guard("technicians", self.store.fetch_technicians(org_id))
                        )
                        criteria = tg.create_task(
                            _guard("criteria", self.store.fetch_criteria(org_id))
                        )
                        current = tg.create_task(
                            self._load_period(
                                "current", filters, filters.start_date, filters.end_date
                            )
                        )
                        previous = tg.create_task(
                            self._load_period("previous", filters, prev_start, prev_end)
                        )
                except ExceptionGroup as group:
                    raise group.exceptions[0]
        except TimeoutError:
            logger.error(
                "dashboard_retrieval_timeout",
                stage="retrieval",
                organization_id=str(org_id),
                timeout_seconds=self.timeout_seconds,
            )
            raise DashboardTimeoutError("retrieval", self.timeout_seconds)

        return DashboardDataset(
            technicians=technicians.result(),
            criteria=criteria.result(),
            current=current.result(),
            previous=previous.result(),
        )

    async def get_dashboard(self, filters: DashboardFilters) -> DashboardSummary:
        start_time = time.perf_counter()
        dataset = await self.load_dataset(filters)
        summary = compute_dashboard(filters, dataset)

        logger.info(
            "dashboard_computed",
            organization_id=str(filters.organization_id),
            transcripts=summary.overview.total_transcripts,
            evaluations=summary.overview.total_evaluations,
            monthly_buckets=filters.uses_monthly_buckets(),
            duration_ms=int((time.perf_counter() - start_time) * 1000),
        )
        return summary

    async def get_technician_stats(
        self, organization_id: UUID, technician_ids: list[UUID]
    ) -> dict[UUID, TechnicianStats]:
        if not technician_ids:
            return {}

        try:
            async with asyncio.timeout(self.timeout_seconds):
                transcripts = await _guard(
                    "technician_transcripts",
                    self.store.fetch_technician_transcripts(organization_id, technician_ids),
                )
                results = await _guard(
                    "technician_results",
                    self.store.fetch_eval_results(
                        [t.id for t in transcripts if t.is_completed]
                    ),
                )
        except TimeoutError:
            raise DashboardTimeoutError("technician_stats", self.timeout_seconds)

        return compute_technician_stats(technician_ids, transcripts, results)


# ---------------------------------------------------------------------------
# Supersession of in-flight requests
# ---------------------------------------------------------------------------


class InFlightRegistry:
    """Tracks the newest in-flight computation per session key.

    Starting a computation for a key cancels the one already running for it,
    so a slower stale request can never answer after a newer one started.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task] = {}

    async def run(self, key: str, coro: Coroutine[Any, Any, T]) -> T:
        """Run ``coro`` as the latest computation for ``key``.

        Raises:
            DashboardSupersededError: If a newer computation for ``key``
                started before this one finished.
        """
        previous = self._tasks.get(key)
        if previous is not None and not previous.done():
            previous.cancel()
            logger.info("dashboard_request_superseded", session=key)

        task = asyncio.create_task(coro)
        self._tasks[key] = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._tasks.get(key) is not task:
                raise DashboardSupersededError() from None
            raise
        finally:
            if self._tasks.get(key) is task:
                del self._tasks[key]


_in_flight = InFlightRegistry()


def get_in_flight_registry() -> InFlightRegistry:
    return _in_flight
