"""Tests for the metrics aggregator."""

import pytest

from pm_analytics.domain import (
    QualityMetrics, TaskPriority, TaskStatus, TaskType, TimeTracking,
)
from pm_analytics.services.metrics import MetricsAggregator, count_by, round_half_up, safe_ratio

from conftest import NOW, make_project, make_task


@pytest.fixture
def aggregator():
    return MetricsAggregator()


class TestTaskBreakdown:

    def test_closed_categories_are_zero_filled(self, aggregator):
        tasks = [
            make_task("t1", status=TaskStatus.COMPLETED, priority=TaskPriority.HIGH, type=TaskType.BUG),
            make_task("t2", status=TaskStatus.COMPLETED, priority=TaskPriority.LOW, type=TaskType.BUG),
            make_task("t3", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH, type=TaskType.FEATURE),
        ]

        breakdown = aggregator.task_breakdown(tasks)

        assert breakdown.total == 3
        assert set(breakdown.by_status) == {s.name.lower() for s in TaskStatus}
        assert breakdown.by_status["completed"] == 2
        assert breakdown.by_status["in_progress"] == 1
        assert breakdown.by_status["blocked"] == 0
        assert breakdown.by_priority == {"low": 1, "medium": 0, "high": 2, "critical": 0, "urgent": 0}
        assert breakdown.by_type["bug"] == 2
        assert breakdown.by_type["maintenance"] == 0

    def test_unknown_values_are_excluded(self, aggregator):
        tasks = [make_task("t1", status=None, type=None), make_task("t2", status=TaskStatus.REVIEW)]

        breakdown = aggregator.task_breakdown(tasks)

        assert breakdown.total == 2
        assert sum(breakdown.by_status.values()) == 1
        assert sum(breakdown.by_type.values()) == 0

    def test_undeclared_categories_only_show_observed(self):
        counts = count_by([TaskStatus.REVIEW, TaskStatus.REVIEW, None])

        assert counts == {"review": 2}


class TestRollups:

    def test_time_tracking_sums_and_average(self, aggregator):
        tasks = [
            make_task("t1", actual_hours=6, time_tracking=TimeTracking(10, 8, 2)),
            make_task("t2", actual_hours=2, time_tracking=TimeTracking(4, 1, 3)),
        ]

        summary = aggregator.time_tracking(tasks)

        assert summary.total_logged == 14
        assert summary.billable_hours == 9
        assert summary.non_billable_hours == 5
        assert summary.average_task_time == 4

    def test_quality_rollup(self, aggregator):
        tasks = [make_task("t1"), make_task("t2")]
        tasks[0].quality = QualityMetrics(bugs_found=3, bugs_fixed=2, test_coverage=90, code_quality_score=8)
        tasks[1].quality = QualityMetrics(bugs_found=1, bugs_fixed=1, test_coverage=50, code_quality_score=6)

        quality = aggregator.quality(tasks)

        assert quality.total_bugs == 4
        assert quality.fixed_bugs == 3
        assert quality.average_test_coverage == 70
        assert quality.average_code_quality == 7

    def test_empty_task_set_yields_zeros(self, aggregator):
        assert aggregator.time_tracking([]).average_task_time == 0
        quality = aggregator.quality([])
        assert quality.average_test_coverage == 0
        assert quality.average_code_quality == 0
        assert aggregator.task_breakdown([]).total == 0

    def test_safe_ratio(self):
        assert safe_ratio(5, 0) == 0
        assert safe_ratio(6, 3) == 2

    @pytest.mark.parametrize("value,expected", [(12.5, 13), (2.5, 3), (12.4, 12), (0, 0), (100, 100)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestTeamPerformance:

    def test_per_member_rollup(self, aggregator):
        project = make_project(team=["u1", "u2", "u3"])
        tasks = [
            make_task("t1", status=TaskStatus.COMPLETED, assignees=["u1"], actual_hours=5),
            make_task("t2", assignees=["u1", "u2"], actual_hours=3),
            make_task("t3", status=TaskStatus.COMPLETED, assignees=["u2"], actual_hours=4),
        ]

        team = aggregator.team_performance(project, tasks)

        assert [m.user_id for m in team] == ["u1", "u2", "u3"]
        u1, u2, u3 = team
        assert (u1.tasks_assigned, u1.tasks_completed, u1.total_hours) == (2, 1, 8)
        assert u1.completion_rate == 50
        assert u1.average_hours_per_task == 4
        assert u2.completion_rate == 50
        assert u3.tasks_assigned == 0
        assert u3.completion_rate == 0
        assert u3.average_hours_per_task == 0

    def test_completion_rate_stays_in_range(self, aggregator):
        project = make_project(team=["u1"])
        tasks = [make_task(f"t{i}", status=TaskStatus.COMPLETED, assignees=["u1"]) for i in range(4)]

        member = aggregator.team_performance(project, tasks)[0]

        assert member.completion_rate == 100

    def test_velocity(self, aggregator):
        project = make_project(start_offset=-10)
        tasks = [
            make_task("t1", status=TaskStatus.COMPLETED, start_date=project.start_date, completed_date=NOW),
            make_task("t2", status=TaskStatus.COMPLETED, start_date=project.start_date, completed_date=NOW),
            make_task("t3"),
        ]

        assert aggregator.velocity(project, tasks, NOW) == 0.2
        assert aggregator.velocity(project, [tasks[2]], NOW) == 0
