"""Team performance analytics across active users."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple

from ..domain import TaskRecord, UserRecord
from ..storage import RecordSource
from ..utils.datetime import now_utc, to_iso_string
from .metrics import percentage, safe_ratio

logger = logging.getLogger(__name__)

UNASSIGNED_DEPARTMENT = "Unassigned"


@dataclass
class UserPerformance:
    """Task throughput and efficiency for one user"""
    user: UserRecord
    total_tasks: int
    completed_tasks: int
    overdue_tasks: int
    on_time_tasks: int
    total_hours: float
    estimated_hours: float

    @property
    def completion_rate(self) -> float:
        return percentage(self.completed_tasks, self.total_tasks)

    @property
    def on_time_rate(self) -> float:
        return percentage(self.on_time_tasks, self.completed_tasks)

    @property
    def average_hours_per_task(self) -> float:
        return safe_ratio(self.total_hours, self.total_tasks)

    @property
    def efficiency(self) -> float:
        """Estimated over actual hours, percent; 0 without logged hours."""
        return round(percentage(self.estimated_hours, self.total_hours), 2)

    @property
    def department(self) -> str:
        return self.user.department or UNASSIGNED_DEPARTMENT

    def metrics(self) -> Dict[str, Any]:
        return {
            'total_tasks': self.total_tasks,
            'completed_tasks': self.completed_tasks,
            'overdue_tasks': self.overdue_tasks,
            'completion_rate': self.completion_rate,
            'on_time_rate': self.on_time_rate,
            'total_hours': self.total_hours,
            'average_hours_per_task': self.average_hours_per_task,
            'efficiency': self.efficiency,
            'productivity_score': self.user.productivity_score,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user.id,
            'username': self.user.username,
            'full_name': self.user.display_name,
            'department': self.user.department or None,
            'position': self.user.position,
            'metrics': self.metrics(),
            'recent_activity': self.user.activity.to_dict(),
        }


@dataclass
class DepartmentStats:
    member_count: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    total_hours: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'member_count': self.member_count,
            'total_tasks': self.total_tasks,
            'completed_tasks': self.completed_tasks,
            'total_hours': self.total_hours,
        }


@dataclass
class TeamAnalytics:
    detail_columns: ClassVar[Tuple[str, ...]] = (
        'user_id', 'username', 'full_name', 'department', 'total_tasks', 'completed_tasks',
        'overdue_tasks', 'completion_rate', 'on_time_rate', 'total_hours', 'efficiency',
    )

    members: List[UserPerformance]
    department_stats: Dict[str, DepartmentStats]
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    department: Optional[str] = None

    def team_averages(self) -> Dict[str, Any]:
        count = len(self.members)
        return {
            'average_completion_rate': safe_ratio(sum(m.completion_rate for m in self.members), count),
            'average_efficiency': safe_ratio(sum(m.efficiency for m in self.members), count),
            'total_tasks': sum(m.total_tasks for m in self.members),
            'total_completed_tasks': sum(m.completed_tasks for m in self.members),
            'total_hours': sum(m.total_hours for m in self.members),
        }

    def summary_fields(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {'total_members': len(self.members)}
        summary.update(self.team_averages())
        return summary

    def detail_rows(self) -> List[Dict[str, Any]]:
        rows = []
        for member in self.members:
            row = {
                'user_id': member.user.id,
                'username': member.user.username,
                'full_name': member.user.display_name,
                'department': member.department,
            }
            row.update(member.metrics())
            rows.append(row)
        return rows

    def to_dict(self) -> Dict[str, Any]:
        return {
            'team_performance': [m.to_dict() for m in self.members],
            'team_averages': self.team_averages(),
            'department_stats': {k: v.to_dict() for k, v in self.department_stats.items()},
            'total_members': len(self.members),
            'period': {
                'start_date': to_iso_string(self.start_date),
                'end_date': to_iso_string(self.end_date),
            },
        }


class TeamAnalyzer:
    """Aggregates per-user performance for active team members"""

    def user_performance(self, user: UserRecord, tasks: Sequence[TaskRecord],
                         now: Optional[datetime] = None) -> UserPerformance:
        now = now or now_utc()
        user_tasks = [t for t in tasks if t.is_assigned_to(user.id)]
        completed = [t for t in user_tasks if t.is_completed]
        return UserPerformance(
            user=user,
            total_tasks=len(user_tasks),
            completed_tasks=len(completed),
            overdue_tasks=sum(1 for t in user_tasks if t.is_overdue(now)),
            on_time_tasks=sum(
                1 for t in completed
                if t.completed_date and t.due_date and t.completed_date < t.due_date
            ),
            total_hours=sum(t.actual_hours for t in user_tasks),
            estimated_hours=sum(t.estimated_hours for t in user_tasks),
        )

    def analyze(self, users: Sequence[UserRecord], tasks: Sequence[TaskRecord],
                now: Optional[datetime] = None, start_date: Optional[datetime] = None,
                end_date: Optional[datetime] = None,
                department: Optional[str] = None) -> TeamAnalytics:
        members = [self.user_performance(user, tasks, now) for user in users]

        departments: Dict[str, DepartmentStats] = {}
        for member in members:
            stats = departments.setdefault(member.department, DepartmentStats())
            stats.member_count += 1
            stats.total_tasks += member.total_tasks
            stats.completed_tasks += member.completed_tasks
            stats.total_hours += member.total_hours

        return TeamAnalytics(
            members=members,
            department_stats=departments,
            start_date=start_date,
            end_date=end_date,
            department=department,
        )

    def analyze_source(self, source: RecordSource, department: Optional[str] = None,
                       start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                       now: Optional[datetime] = None) -> TeamAnalytics:
        """Active users (optionally one department) and their tasks in a creation window."""
        users = source.list_users(active_only=True, department=department)
        tasks = source.list_tasks(
            assignee_ids=[u.id for u in users],
            created_from=start_date,
            created_to=end_date,
        )
        logger.info(f"Team analytics over {len(users)} users and {len(tasks)} tasks")
        return self.analyze(users, tasks, now, start_date, end_date, department)
