"""Metrics aggregation over task and project records.

Every rollup here is a pure function of its inputs. Ratios and averages
fall back to 0 on empty inputs instead of raising.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type

from ..domain import (
    ProjectRecord, TaskPriority, TaskRecord, TaskStatus, TaskType, TeamMember, UserRecord,
)
from ..utils.datetime import days_between, now_utc


def category_key(member: Enum) -> str:
    """Output label for a category: ``In Progress`` -> ``in_progress``."""
    return member.name.lower()


def safe_ratio(numerator: float, denominator: float) -> float:
    """``numerator / denominator``, or 0 when the denominator is 0."""
    return numerator / denominator if denominator else 0.0


def percentage(numerator: float, denominator: float) -> float:
    return safe_ratio(numerator, denominator) * 100


def round_half_up(value: float) -> int:
    """Nearest whole number, halves rounded up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def count_by(values: Iterable[Optional[Enum]],
             categories: Optional[Type[Enum]] = None) -> Dict[str, int]:
    """Count enum values by category.
    
    When ``categories`` declares the closed set, every category appears,
    zero-filled, in declaration order. Otherwise only observed categories
    appear. ``None`` values never land in a bucket.
    """
    counts: Dict[str, int] = {}
    if categories is not None:
        counts = {category_key(member): 0 for member in categories}
    for value in values:
        if value is None:
            continue
        if categories is not None and not isinstance(value, categories):
            continue
        key = category_key(value)
        counts[key] = counts.get(key, 0) + 1
    return counts


@dataclass
class TaskBreakdown:
    """Task counts grouped by status, priority and type."""
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_type: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'by_status': dict(self.by_status),
            'by_priority': dict(self.by_priority),
            'by_type': dict(self.by_type),
        }


@dataclass
class TimeTrackingSummary:
    total_logged: float = 0.0
    billable_hours: float = 0.0
    non_billable_hours: float = 0.0
    average_task_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_logged': self.total_logged,
            'billable_hours': self.billable_hours,
            'non_billable_hours': self.non_billable_hours,
            'average_task_time': self.average_task_time,
        }


@dataclass
class QualitySummary:
    total_bugs: int = 0
    fixed_bugs: int = 0
    average_test_coverage: float = 0.0
    average_code_quality: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_bugs': self.total_bugs,
            'fixed_bugs': self.fixed_bugs,
            'average_test_coverage': self.average_test_coverage,
            'average_code_quality': self.average_code_quality,
        }


@dataclass
class MemberPerformance:
    """Workload and completion figures for one team member."""
    user_id: str
    tasks_assigned: int
    tasks_completed: int
    total_hours: float
    role: str = ""
    allocation: float = 1.0
    username: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def completion_rate(self) -> float:
        return percentage(self.tasks_completed, self.tasks_assigned)

    @property
    def average_hours_per_task(self) -> float:
        return safe_ratio(self.total_hours, self.tasks_assigned)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'username': self.username,
            'full_name': self.full_name,
            'role': self.role,
            'allocation': self.allocation,
            'tasks_assigned': self.tasks_assigned,
            'tasks_completed': self.tasks_completed,
            'completion_rate': self.completion_rate,
            'total_hours': self.total_hours,
            'average_hours_per_task': self.average_hours_per_task,
        }


@dataclass
class ProjectMetrics:
    """All rollups for one project."""
    tasks: TaskBreakdown
    time_tracking: TimeTrackingSummary
    quality: QualitySummary
    velocity: float
    team: List[MemberPerformance] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tasks': self.tasks.to_dict(),
            'time_tracking': self.time_tracking.to_dict(),
            'quality': self.quality.to_dict(),
            'velocity': self.velocity,
        }


class MetricsAggregator:
    """Computes grouped counts and sums from flat record lists."""

    def task_breakdown(self, tasks: Sequence[TaskRecord]) -> TaskBreakdown:
        return TaskBreakdown(
            total=len(tasks),
            by_status=count_by((t.status for t in tasks), TaskStatus),
            by_priority=count_by((t.priority for t in tasks), TaskPriority),
            by_type=count_by((t.type for t in tasks), TaskType),
        )

    def time_tracking(self, tasks: Sequence[TaskRecord]) -> TimeTrackingSummary:
        return TimeTrackingSummary(
            total_logged=sum(t.time_tracking.total_logged for t in tasks),
            billable_hours=sum(t.time_tracking.billable_hours for t in tasks),
            non_billable_hours=sum(t.time_tracking.non_billable_hours for t in tasks),
            average_task_time=safe_ratio(sum(t.actual_hours for t in tasks), len(tasks)),
        )

    def quality(self, tasks: Sequence[TaskRecord]) -> QualitySummary:
        return QualitySummary(
            total_bugs=sum(t.quality.bugs_found for t in tasks),
            fixed_bugs=sum(t.quality.bugs_fixed for t in tasks),
            average_test_coverage=safe_ratio(sum(t.quality.test_coverage for t in tasks), len(tasks)),
            average_code_quality=safe_ratio(sum(t.quality.code_quality_score for t in tasks), len(tasks)),
        )

    def member_performance(self, member: TeamMember, tasks: Sequence[TaskRecord],
                           user: Optional[UserRecord] = None) -> MemberPerformance:
        member_tasks = [t for t in tasks if t.is_assigned_to(member.user_id)]
        return MemberPerformance(
            user_id=member.user_id,
            role=member.role,
            allocation=member.allocation,
            tasks_assigned=len(member_tasks),
            tasks_completed=sum(1 for t in member_tasks if t.is_completed),
            total_hours=sum(t.actual_hours for t in member_tasks),
            username=user.username if user else None,
            full_name=user.display_name if user else None,
        )

    def team_performance(self, project: ProjectRecord, tasks: Sequence[TaskRecord],
                         users: Optional[Mapping[str, UserRecord]] = None) -> List[MemberPerformance]:
        """Per-member rollup in team order."""
        users = users or {}
        return [
            self.member_performance(member, tasks, users.get(member.user_id))
            for member in project.team
        ]

    def velocity(self, project: ProjectRecord, tasks: Sequence[TaskRecord],
                 now: Optional[datetime] = None) -> float:
        """Tasks with start and completion dates per elapsed day, 2 dp."""
        dated = [t for t in tasks if t.start_date and t.completed_date]
        if not dated:
            return 0.0
        elapsed = max(days_between(now or now_utc(), project.start_date), 1)
        return round(len(dated) / elapsed, 2)

    def project_metrics(self, project: ProjectRecord, tasks: Sequence[TaskRecord],
                        users: Optional[Mapping[str, UserRecord]] = None,
                        now: Optional[datetime] = None) -> ProjectMetrics:
        return ProjectMetrics(
            tasks=self.task_breakdown(tasks),
            time_tracking=self.time_tracking(tasks),
            quality=self.quality(tasks),
            velocity=self.velocity(project, tasks, now),
            team=self.team_performance(project, tasks, users),
        )
