"""Tests for team performance analytics."""

from datetime import datetime, timezone

import pytest

from pm_analytics.domain import TaskStatus
from pm_analytics.services.team_analytics import TeamAnalyzer

from conftest import NOW, make_task, make_user


@pytest.fixture
def analyzer():
    return TeamAnalyzer()


class TestUserPerformance:

    def test_rates(self, analyzer):
        user = make_user("u1")
        tasks = [
            make_task("a", status=TaskStatus.COMPLETED, assignees=["u1"],
                      due_date=datetime(2024, 6, 10, tzinfo=timezone.utc),
                      completed_date=datetime(2024, 6, 9, tzinfo=timezone.utc),
                      estimated_hours=6, actual_hours=8),
            make_task("b", status=TaskStatus.COMPLETED, assignees=["u1"],
                      due_date=datetime(2024, 6, 1, tzinfo=timezone.utc),
                      completed_date=datetime(2024, 6, 3, tzinfo=timezone.utc),
                      estimated_hours=4, actual_hours=2),
            make_task("c", assignees=["u1"], due_date=datetime(2024, 6, 1, tzinfo=timezone.utc)),
            make_task("d", assignees=["someone-else"]),
        ]

        performance = analyzer.user_performance(user, tasks, NOW)

        assert performance.total_tasks == 3
        assert performance.completed_tasks == 2
        assert performance.overdue_tasks == 1
        assert performance.completion_rate == pytest.approx(200 / 3)
        assert performance.on_time_rate == 50
        assert performance.average_hours_per_task == pytest.approx(10 / 3)
        assert performance.efficiency == 100

    def test_efficiency_without_logged_hours(self, analyzer):
        performance = analyzer.user_performance(
            make_user("u1"), [make_task("a", assignees=["u1"], estimated_hours=5)], NOW,
        )

        assert performance.efficiency == 0
        assert performance.on_time_rate == 0

    def test_missing_department_is_unassigned(self, analyzer):
        performance = analyzer.user_performance(make_user("u1"), [], NOW)

        assert performance.department == "Unassigned"
        assert performance.to_dict()["department"] is None


class TestTeamAnalyzer:

    def test_active_users_only(self, analyzer, source):
        analytics = analyzer.analyze_source(source, now=NOW)

        assert [m.user.id for m in analytics.members] == ["u1", "u2", "u3", "u5"]

    def test_member_metrics(self, analyzer, source):
        members = {m.user.id: m for m in analyzer.analyze_source(source, now=NOW).members}

        assert members["u2"].total_tasks == 3
        assert members["u2"].on_time_rate == 100
        assert members["u2"].total_hours == 30
        assert members["u2"].efficiency == 93.33
        assert members["u3"].overdue_tasks == 1
        assert members["u3"].efficiency == 0

    def test_department_stats(self, analyzer, source):
        stats = analyzer.analyze_source(source, now=NOW).department_stats

        assert set(stats) == {"PMO", "Engineering", "Unassigned"}
        assert stats["Engineering"].member_count == 2
        assert stats["Engineering"].total_tasks == 5
        assert stats["Engineering"].total_hours == 34
        assert stats["PMO"].total_tasks == 0

    def test_department_filter(self, analyzer, source):
        analytics = analyzer.analyze_source(source, department="Engineering", now=NOW)

        assert [m.user.id for m in analytics.members] == ["u2", "u3"]
        assert list(analytics.department_stats) == ["Engineering"]

    def test_creation_window(self, analyzer, source):
        start = datetime(2024, 5, 1, tzinfo=timezone.utc)
        end = datetime(2024, 5, 31, tzinfo=timezone.utc)

        analytics = analyzer.analyze_source(source, start_date=start, end_date=end, now=NOW)
        members = {m.user.id: m for m in analytics.members}

        assert members["u2"].total_tasks == 2
        assert analytics.to_dict()["period"]["start_date"].startswith("2024-05-01")

    def test_team_averages(self, analyzer, source):
        averages = analyzer.analyze_source(source, now=NOW).team_averages()

        assert averages["total_tasks"] == 5
        assert averages["total_completed_tasks"] == 2
        assert averages["average_efficiency"] == pytest.approx(93.33 / 4)

    def test_empty_team(self, analyzer):
        analytics = analyzer.analyze([], [], NOW)

        assert analytics.team_averages()["average_completion_rate"] == 0
        assert analytics.to_dict()["total_members"] == 0

    def test_naive_task_dates(self, analyzer):
        tasks = [
            make_task("a", status=TaskStatus.COMPLETED, assignees=["u1"],
                      due_date=datetime(2024, 6, 10), completed_date=datetime(2024, 6, 9)),
            make_task("b", assignees=["u1"], due_date=datetime(2024, 6, 1)),
        ]

        analytics = analyzer.analyze([make_user("u1")], tasks, NOW)
        [member] = analytics.members

        assert member.overdue_tasks == 1
        assert member.on_time_rate == 100
