"""Click CLI commands for inspecting dashboard analytics."""

from __future__ import annotations

import asyncio
import json
import sys
from uuid import UUID

import click

from callscore.analytics.errors import DashboardError
from callscore.analytics.filters import parse_id_list, parse_organization_id, resolve_filters
from callscore.analytics.models import DashboardSummary, TechnicianStats
from callscore.models.dashboard import DashboardResponse, TechnicianStatsResponse
from callscore.services.dashboard_service import DashboardService


async def _with_database(coro_factory):
    """Open the pool, run one coroutine, and always close the pool."""
    from callscore.database import close_database, init_database

    await init_database()
    try:
        return await coro_factory()
    finally:
        await close_database()


def _fmt_rate(rate: float | None) -> str:
    return "--" if rate is None else f"{rate:.1%}"


@click.group()
def analytics() -> None:
    """Call evaluation analytics: dashboard summaries and technician stats."""
    pass


# ---------------------------------------------------------------------------
# dashboard command
# ---------------------------------------------------------------------------


@analytics.command()
@click.option("--org-id", required=True, help="Organization UUID.")
@click.option("--start-date", default=None, help="ISO-8601 start (default: 30 days ago).")
@click.option("--end-date", default=None, help="ISO-8601 end (default: now).")
@click.option("--technician-ids", default=None, help="Comma-separated technician UUIDs.")
@click.option("--criteria-ids", default=None, help="Comma-separated criterion UUIDs.")
@click.option("--include-mock", is_flag=True, default=False, help="Include mock calls.")
@click.option(
    "--format",
    "output_format",
    default="table",
    type=click.Choice(["table", "json"]),
    help="Output format.",
)
def dashboard(
    org_id: str,
    start_date: str | None,
    end_date: str | None,
    technician_ids: str | None,
    criteria_ids: str | None,
    include_mock: bool,
    output_format: str,
) -> None:
    """Compute the dashboard for an organization and time range."""
    try:
        filters = resolve_filters(
            org_id,
            start_date=start_date,
            end_date=end_date,
            technician_ids=technician_ids,
            criteria_ids=criteria_ids,
            exclude_mock="false" if include_mock else None,
        )
        summary = asyncio.run(_with_database(lambda: DashboardService().get_dashboard(filters)))
    except DashboardError as e:
        click.echo(f"Error: {e.detail}", err=True)
        sys.exit(2 if e.status_code < 500 else 1)

    if output_format == "json":
        payload = DashboardResponse.model_validate(summary).model_dump(mode="json", by_alias=True)
        click.echo(json.dumps(payload, indent=2))
    else:
        _print_dashboard_table(summary)


def _print_dashboard_table(summary: DashboardSummary) -> None:
    overview = summary.overview

    click.echo()
    click.echo("Dashboard Overview")
    click.echo("=" * 60)
    click.echo(f"  Transcripts:       {overview.total_transcripts}")
    click.echo(f"  Evaluations:       {overview.total_evaluations}")
    click.echo(f"  Pass rate:         {_fmt_rate(overview.overall_pass_rate)}")
    if overview.pass_rate_change is not None:
        click.echo(f"  Change vs prior:   {overview.pass_rate_change * 100:+.1f}pp")
    if overview.most_improved_technician is not None:
        mit = overview.most_improved_technician
        click.echo(f"  Most improved:     {mit.name} ({mit.improvement * 100:+.1f}pp)")
    if overview.weakest_criterion is not None:
        wc = overview.weakest_criterion
        click.echo(f"  Weakest criterion: {wc.name} ({_fmt_rate(wc.fail_rate)} fail)")
    click.echo()

    if overview.total_evaluations == 0:
        click.echo("No evaluations in this range.")
        click.echo()
        return

    click.echo(f"  {'Criterion':<32} {'Pass Rate':<12} {'Target':<10} {'Evals'}")
    for rate in summary.criteria_pass_rates:
        click.echo(
            f"  {rate.criteria_name[:30]:<32} {_fmt_rate(rate.pass_rate):<12} "
            f"{rate.target_pass_rate:<10.0%} {rate.total_evals}"
        )
    click.echo()

    click.echo(f"  {'Period':<14} {'Pass Rate'}")
    for point in summary.trend_data:
        click.echo(f"  {point.period:<14} {_fmt_rate(point.overall_pass_rate)}")
    click.echo()

    if summary.needs_attention:
        click.echo("Needs Attention:")
        for item in summary.needs_attention:
            click.echo(
                f"  {item.date.strftime('%Y-%m-%d %H:%M')}  {item.technician_name:<20} "
                f"{item.passed}/{item.total} passed"
            )
        click.echo()


# ---------------------------------------------------------------------------
# technician-stats command
# ---------------------------------------------------------------------------


@analytics.command("technician-stats")
@click.option("--org-id", required=True, help="Organization UUID.")
@click.option("--technician-ids", required=True, help="Comma-separated technician UUIDs.")
@click.option(
    "--format",
    "output_format",
    default="table",
    type=click.Choice(["table", "json"]),
    help="Output format.",
)
def technician_stats(org_id: str, technician_ids: str, output_format: str) -> None:
    """All-time call volume and pass rate per technician."""
    try:
        organization_id = parse_organization_id(org_id)
    except DashboardError as e:
        click.echo(f"Error: {e.detail}", err=True)
        sys.exit(2)

    ids: list[UUID] = parse_id_list(technician_ids) or []
    if not ids:
        click.echo("No valid technician IDs given.", err=True)
        sys.exit(2)

    try:
        stats: dict[UUID, TechnicianStats] = asyncio.run(
            _with_database(lambda: DashboardService().get_technician_stats(organization_id, ids))
        )
    except DashboardError as e:
        click.echo(f"Error: {e.detail}", err=True)
        sys.exit(1)

    if output_format == "json":
        payload = [
            TechnicianStatsResponse.model_validate(stats[tid]).model_dump(mode="json", by_alias=True)
            for tid in ids
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(f"  {'Technician':<38} {'Calls':<8} {'Pass Rate'}")
    for tid in ids:
        entry = stats[tid]
        click.echo(f"  {str(tid):<38} {entry.total_calls:<8} {_fmt_rate(entry.pass_rate)}")
