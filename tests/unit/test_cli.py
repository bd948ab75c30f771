"""Unit tests for the analytics CLI commands."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID, uuid4

import pytest
from click.testing import CliRunner

from callscore.analytics.aggregator import compute_dashboard
from callscore.analytics.cli import analytics
from callscore.analytics.errors import DashboardRetrievalError
from callscore.analytics.filters import DashboardFilters
from callscore.analytics.models import (
    Criterion,
    DashboardDataset,
    EvaluationResult,
    PeriodData,
    Technician,
    TechnicianStats,
    Transcript,
)

ORG_ID = "3f2b9c1e-8a4d-4e2b-9c1a-7d5e6f8a9b0c"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_summary(with_results: bool = True):
    tech = Technician(id=uuid4(), name="Ana")
    criterion = Criterion(id=uuid4(), name="Greeting")
    created = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
    transcript = Transcript(uuid4(), tech.id, "recording", "AC repair", "completed", created)
    results = [EvaluationResult(uuid4(), transcript.id, criterion.id, False, created)]
    filters = DashboardFilters(
        organization_id=UUID(ORG_ID),
        start_date=datetime(2026, 3, 1, tzinfo=timezone.utc),
        end_date=datetime(2026, 3, 31, tzinfo=timezone.utc),
    )
    dataset = DashboardDataset(
        technicians=[tech],
        criteria=[criterion],
        current=PeriodData([transcript], results if with_results else []),
        previous=PeriodData([], []),
    )
    return compute_dashboard(filters, dataset)


@pytest.fixture
def mock_database():
    with (
        patch("callscore.database.init_database", new_callable=AsyncMock) as mock_init,
        patch("callscore.database.close_database", new_callable=AsyncMock) as mock_close,
    ):
        yield mock_init, mock_close


def _service_returning(method: str, value=None, side_effect=None) -> MagicMock:
    service = MagicMock()
    setattr(service, method, AsyncMock(return_value=value, side_effect=side_effect))
    return MagicMock(return_value=service)


# ---------------------------------------------------------------------------
# dashboard command
# ---------------------------------------------------------------------------


class TestDashboardCommand:
    def test_table_output(self, mock_database):
        service_cls = _service_returning("get_dashboard", _make_summary())

        with patch("callscore.analytics.cli.DashboardService", service_cls):
            result = CliRunner().invoke(analytics, ["dashboard", "--org-id", ORG_ID])

        assert result.exit_code == 0
        assert "Dashboard Overview" in result.output
        assert "Pass rate:         0.0%" in result.output
        assert "Weakest criterion: Greeting" in result.output
        assert "Needs Attention:" in result.output
        assert "0/1 passed" in result.output

    def test_pool_opened_and_closed(self, mock_database):
        mock_init, mock_close = mock_database
        service_cls = _service_returning("get_dashboard", _make_summary())

        with patch("callscore.analytics.cli.DashboardService", service_cls):
            CliRunner().invoke(analytics, ["dashboard", "--org-id", ORG_ID])

        mock_init.assert_awaited_once()
        mock_close.assert_awaited_once()

    def test_json_output_uses_wire_keys(self, mock_database):
        service_cls = _service_returning("get_dashboard", _make_summary())

        with patch("callscore.analytics.cli.DashboardService", service_cls):
            result = CliRunner().invoke(
                analytics, ["dashboard", "--org-id", ORG_ID, "--format", "json"]
            )

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["overview"]["totalTranscripts"] == 1
        assert payload["needsAttention"][0]["technicianName"] == "Ana"

    def test_empty_range_message(self, mock_database):
        service_cls = _service_returning("get_dashboard", _make_summary(with_results=False))

        with patch("callscore.analytics.cli.DashboardService", service_cls):
            result = CliRunner().invoke(analytics, ["dashboard", "--org-id", ORG_ID])

        assert result.exit_code == 0
        assert "Pass rate:         --" in result.output
        assert "No evaluations in this range." in result.output

    def test_include_mock_flag(self, mock_database):
        service_cls = _service_returning("get_dashboard", _make_summary())

        with patch("callscore.analytics.cli.DashboardService", service_cls):
            CliRunner().invoke(analytics, ["dashboard", "--org-id", ORG_ID, "--include-mock"])

        filters = service_cls.return_value.get_dashboard.call_args.args[0]
        assert filters.exclude_mock is False

    def test_invalid_org_exits_2_without_database(self, mock_database):
        mock_init, _ = mock_database

        result = CliRunner().invoke(analytics, ["dashboard", "--org-id", "nope"])

        assert result.exit_code == 2
        assert "Invalid org ID" in result.output
        mock_init.assert_not_awaited()

    def test_retrieval_error_exits_1(self, mock_database):
        service_cls = _service_returning(
            "get_dashboard", side_effect=DashboardRetrievalError("criteria")
        )

        with patch("callscore.analytics.cli.DashboardService", service_cls):
            result = CliRunner().invoke(analytics, ["dashboard", "--org-id", ORG_ID])

        assert result.exit_code == 1
        assert "criteria" in result.output


# ---------------------------------------------------------------------------
# technician-stats command
# ---------------------------------------------------------------------------


class TestTechnicianStatsCommand:
    def test_table_output(self, mock_database):
        tech_id = uuid4()
        stats = {tech_id: TechnicianStats(technician_id=tech_id, total_calls=12, pass_rate=0.75)}
        service_cls = _service_returning("get_technician_stats", stats)

        with patch("callscore.analytics.cli.DashboardService", service_cls):
            result = CliRunner().invoke(
                analytics,
                ["technician-stats", "--org-id", ORG_ID, "--technician-ids", str(tech_id)],
            )

        assert result.exit_code == 0
        assert str(tech_id) in result.output
        assert "75.0%" in result.output

    def test_json_output(self, mock_database):
        tech_id = uuid4()
        stats = {tech_id: TechnicianStats(technician_id=tech_id, total_calls=0, pass_rate=None)}
        service_cls = _service_returning("get_technician_stats", stats)

        with patch("callscore.analytics.cli.DashboardService", service_cls):
            result = CliRunner().invoke(
                analytics,
                [
                    "technician-stats",
                    "--org-id", ORG_ID,
                    "--technician-ids", str(tech_id),
                    "--format", "json",
                ],
            )

        assert json.loads(result.output) == [
            {"technicianId": str(tech_id), "totalCalls": 0, "passRate": None}
        ]

    def test_no_valid_ids_exits_2(self, mock_database):
        result = CliRunner().invoke(
            analytics, ["technician-stats", "--org-id", ORG_ID, "--technician-ids", "x,y"]
        )
        assert result.exit_code == 2
        assert "No valid technician IDs" in result.output
