"""Tests for report generation and export."""

import json
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from pm_analytics.domain import ProjectRecord
from pm_analytics.errors import InvalidArgumentError
from pm_analytics.services.export import ExportFormat
from pm_analytics.services.reports import (
    ReportGenerator, ReportType, generate_report, variance_percent,
)
from pm_analytics.storage import InMemoryRecordSource, RecordSource

START, END = "2024-01-01", "2024-06-30"


@pytest.fixture
def generator(source):
    return ReportGenerator(source)


class TestValidation:

    def test_invalid_report_type_fails_before_reading_records(self):
        source = Mock(spec=RecordSource)

        with pytest.raises(InvalidArgumentError) as exc_info:
            generate_report(source, "invalid_type", START, END)

        assert exc_info.value.field_name == "report_type"
        assert source.method_calls == []

    @pytest.mark.parametrize("start,end", [
        ("not-a-date", END),
        (START, "2024-02-30"),
        (None, END),
        (START, ""),
    ])
    def test_invalid_dates(self, start, end):
        source = Mock(spec=RecordSource)

        with pytest.raises(InvalidArgumentError):
            generate_report(source, "financial_summary", start, end)

        assert source.method_calls == []

    def test_end_before_start(self, generator):
        with pytest.raises(InvalidArgumentError, match="before start_date"):
            generator.generate("project_summary", "2024-03-01", "2024-02-01")

    def test_invalid_format(self, generator):
        with pytest.raises(InvalidArgumentError):
            generator.generate("project_summary", START, END, "xml")

    def test_invalid_argument_is_a_value_error(self, generator):
        with pytest.raises(ValueError):
            generator.generate("bogus", START, END)


class TestProjectSummary:

    def test_aggregates_projects_created_in_range(self, generator):
        report = generator.generate(ReportType.PROJECT_SUMMARY, START, END)
        payload = report.payload

        assert payload.total_projects == 2
        assert payload.completed_projects == 1
        assert payload.active_projects == 1
        assert payload.total_budget == 3000
        assert payload.total_actual_cost == 3000
        assert payload.by_status == {
            "planning": 0, "in_progress": 1, "on_hold": 0, "completed": 1, "cancelled": 0,
        }
        assert [row["name"] for row in payload.projects] == ["Website Redesign", "Data Migration"]
        assert payload.projects[0]["manager"] == "Maria Lopez"

    def test_end_date_is_inclusive(self):
        late = ProjectRecord(
            id="late", name="Late", start_date=datetime(2024, 7, 1, tzinfo=timezone.utc),
            end_date=datetime(2024, 8, 1, tzinfo=timezone.utc),
            created_at=datetime(2024, 6, 30, 23, 30, tzinfo=timezone.utc),
        )
        generator = ReportGenerator(InMemoryRecordSource([late]))

        assert generator.generate("project_summary", START, END).payload.total_projects == 1
        assert generator.generate("project_summary", START, "2024-06-29").payload.total_projects == 0


class TestTeamPerformance:

    def test_members_and_averages(self, generator):
        payload = generator.generate("team_performance", START, END).payload

        assert payload.total_members == 3
        assert payload.completed_tasks == 2
        members = {m["id"]: m for m in payload.team_members}
        assert set(members) == {"u1", "u2", "u3"}
        assert members["u1"]["completion_rate"] == 0
        assert members["u1"]["average_time"] == 0
        assert members["u2"]["tasks_assigned"] == 3
        assert members["u2"]["tasks_completed"] == 2
        assert members["u2"]["completion_rate"] == pytest.approx(200 / 3)
        assert members["u2"]["average_time"] == 7
        assert members["u3"]["tasks_assigned"] == 2
        assert payload.average_productivity == pytest.approx(200 / 9)

    def test_no_members(self):
        payload = ReportGenerator(InMemoryRecordSource()).generate("team_performance", START, END).payload

        assert payload.total_members == 0
        assert payload.average_productivity == 0


class TestFinancialSummary:

    def test_totals_and_variance(self, generator):
        payload = generator.generate("financial_summary", START, END).payload

        assert payload.total_budget == 3000
        assert payload.total_actual_cost == 3000
        assert payload.total_variance == 0
        assert [row["variance"] for row in payload.projects] == [pytest.approx(20), pytest.approx(-10)]

    def test_variance_without_budget(self):
        assert variance_percent(500, 0) == 0
        assert variance_percent(1500, 1000) == 50


class TestRendering:

    def test_json_render(self, generator):
        report = generator.generate("financial_summary", START, END, "json")

        data = json.loads(report.render())

        assert report.filename == "financial_summary_2024-01-01_2024-06-30.json"
        assert report.content_type == "application/json"
        assert data["report_type"] == "financial_summary"
        assert data["total_variance"] == 0

    def test_csv_render(self, generator):
        report = generator.generate("financial_summary", START, END, ExportFormat.CSV)

        lines = report.render().splitlines()

        assert report.filename == "financial_summary_2024-01-01_2024-06-30.csv"
        assert report.content_type == "text/csv"
        assert lines[:4] == [
            "field,value",
            "total_budget,3000.00",
            "total_actual_cost,3000.00",
            "total_variance,0.00",
        ]
        assert lines[4] == ""
        assert lines[5] == "id,name,budget,actual_cost,variance"
        assert lines[6] == "p1,Website Redesign,1000.00,1200.00,20.00"
        assert lines[7] == "p2,Data Migration,2000.00,1800.00,-10.00"

    def test_csv_project_summary_includes_status_counts(self, generator):
        text = generator.generate("project_summary", START, END, "csv").render()

        assert "status_completed,1" in text
        assert "id,name,status,progress,budget,actual_cost,manager_id,manager" in text
        assert "p2,Data Migration,Completed,100.00,2000.00,1800.00,u1,Maria Lopez" in text

    def test_datetime_inputs_are_accepted(self, generator):
        report = generator.generate(
            "project_summary",
            datetime(2024, 1, 1, 15, 0, tzinfo=timezone.utc),
            "2024-06-30T08:00:00Z",
        )

        assert report.start_date.isoformat() == "2024-01-01"
        assert report.payload.total_projects == 2


class TestNaiveRecords:

    def test_naive_record_dates_are_compared_as_utc(self):
        project = ProjectRecord(
            id="p1", name="Naive", start_date=datetime(2024, 1, 1),
            end_date=datetime(2024, 3, 1), created_at=datetime(2024, 1, 5),
            budget=100, actual_cost=110,
        )
        generator = ReportGenerator(InMemoryRecordSource([project]))

        summary = generator.generate("project_summary", START, END).payload
        financial = generator.generate("financial_summary", START, END).payload

        assert summary.total_projects == 1
        assert financial.total_variance == pytest.approx(10)
