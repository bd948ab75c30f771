"""Read-only Postgres queries for transcripts, results, criteria and technicians."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from callscore.analytics.models import (
    MOCK_SOURCE,
    Criterion,
    EvaluationResult,
    Technician,
    Transcript,
)
from callscore.database import get_pool


class QueryConditions:
    """AND-joined SQL predicate with positional asyncpg parameters."""

    def __init__(self) -> None:
        self.clauses: list[str] = []
        self.params: list[Any] = []

    def add(self, template: str, value: Any) -> "QueryConditions":
        """Append a clause; ``{}`` in the template is replaced by the next $n."""
        self.params.append(value)
        self.clauses.append(template.format(f"${len(self.params)}"))
        return self

    def sql(self) -> str:
        return " AND ".join(self.clauses) if self.clauses else "TRUE"


def transcript_conditions(
    organization_id: UUID,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    technician_ids: Optional[list[UUID]] = None,
    exclude_mock: bool = True,
) -> QueryConditions:
    """Build the transcript predicate for one dashboard window."""
    conditions = QueryConditions().add("organization_id = {}", organization_id)
    if start is not None:
        conditions.add("created_at >= {}", start)
    if end is not None:
        conditions.add("created_at <= {}", end)
    if technician_ids:
        conditions.add("technician_id = ANY({})", list(technician_ids))
    if exclude_mock:
        conditions.add("source <> {}", MOCK_SOURCE)
    return conditions


class PostgresEvaluationStore:
    """Fetches the rows the dashboard aggregates over."""

    async def fetch_technicians(self, organization_id: UUID) -> list[Technician]:
        pool = await get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, name FROM technicians
                WHERE organization_id = $1
                ORDER BY name, id
                """,
                organization_id,
            )
        return [Technician(id=row["id"], name=row["name"]) for row in rows]

    async def fetch_criteria(self, organization_id: UUID) -> list[Criterion]:
        """Active, published criteria in display order."""
        pool = await get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, name, category, target_pass_rate FROM eval_criteria
                WHERE organization_id = $1 AND is_active AND status = 'published'
                ORDER BY sort_order, name, id
                """,
                organization_id,
            )
        return [
            Criterion(
                id=row["id"],
                name=row["name"],
                category=row["category"],
                target_pass_rate=row["target_pass_rate"],
            )
            for row in rows
        ]

    async def fetch_transcripts(
        self,
        organization_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        technician_ids: Optional[list[UUID]] = None,
        exclude_mock: bool = True,
    ) -> list[Transcript]:
        conditions = transcript_conditions(
            organization_id, start, end, technician_ids, exclude_mock
        )
        sql = f"""
            SELECT id, technician_id, source, service_type, eval_status, created_at
            FROM transcripts
            WHERE {conditions.sql()}
            ORDER BY created_at, id
        """

        pool = await get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql, *conditions.params)

        return [
            Transcript(
                id=row["id"],
                technician_id=row["technician_id"],
                source=row["source"],
                service_type=row["service_type"],
                eval_status=row["eval_status"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    async def fetch_eval_results(self, transcript_ids: list[UUID]) -> list[EvaluationResult]:
        # An empty id list would be a pointless ANY('{}') round trip
        if not transcript_ids:
            return []

        pool = await get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, transcript_id, eval_criteria_id, passed, created_at
                FROM eval_results
                WHERE transcript_id = ANY($1)
                ORDER BY created_at, id
                """,
                list(transcript_ids),
            )

        return [
            EvaluationResult(
                id=row["id"],
                transcript_id=row["transcript_id"],
                criterion_id=row["eval_criteria_id"],
                passed=row["passed"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    async def fetch_technician_transcripts(
        self, organization_id: UUID, technician_ids: list[UUID]
    ) -> list[Transcript]:
        """All-time transcripts of the given technicians, mock calls included."""
        if not technician_ids:
            return []
        return await self.fetch_transcripts(
            organization_id, technician_ids=technician_ids, exclude_mock=False
        )
