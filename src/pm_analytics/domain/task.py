"""Task record model consumed by the analytics engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.datetime import ensure_aware, now_utc, parse_datetime, to_iso_string
from ..utils.validation import (
    as_id, as_id_list, as_int, as_number, as_str_list, first_present, parse_enum,
)


class TaskStatus(Enum):
    """Task workflow states."""
    BACKLOG = "Backlog"
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    TESTING = "Testing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    BLOCKED = "Blocked"


class TaskPriority(Enum):
    """Task priority levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"
    URGENT = "Urgent"


class TaskType(Enum):
    """Kinds of work a task represents."""
    FEATURE = "Feature"
    BUG = "Bug"
    IMPROVEMENT = "Improvement"
    DOCUMENTATION = "Documentation"
    RESEARCH = "Research"
    DESIGN = "Design"
    TESTING = "Testing"
    DEPLOYMENT = "Deployment"
    MAINTENANCE = "Maintenance"


CLOSED_STATUSES = (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


@dataclass
class QualityMetrics:
    """Per-task quality measurements."""
    bugs_found: int = 0
    bugs_fixed: int = 0
    test_coverage: float = 0.0  # percent
    code_quality_score: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "QualityMetrics":
        data = data or {}
        return cls(
            bugs_found=as_int(first_present(data, "bugs_found", "bugsFound")),
            bugs_fixed=as_int(first_present(data, "bugs_fixed", "bugsFixed")),
            test_coverage=as_number(first_present(data, "test_coverage", "testCoverage"), maximum=100),
            code_quality_score=as_number(first_present(data, "code_quality_score", "codeQualityScore")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bugs_found': self.bugs_found,
            'bugs_fixed': self.bugs_fixed,
            'test_coverage': self.test_coverage,
            'code_quality_score': self.code_quality_score,
        }


@dataclass
class TimeTracking:
    """Logged hours for a task."""
    total_logged: float = 0.0
    billable_hours: float = 0.0
    non_billable_hours: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TimeTracking":
        data = data or {}
        return cls(
            total_logged=as_number(first_present(data, "total_logged", "totalLogged")),
            billable_hours=as_number(first_present(data, "billable_hours", "billableHours")),
            non_billable_hours=as_number(first_present(data, "non_billable_hours", "nonBillableHours")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_logged': self.total_logged,
            'billable_hours': self.billable_hours,
            'non_billable_hours': self.non_billable_hours,
        }


@dataclass
class TaskRecord:
    """Read-only snapshot of a task.
    
    Unknown status, priority or type values are stored as None and are
    excluded from category breakdowns.
    """
    id: str
    title: str
    project_id: Optional[str] = None
    status: Optional[TaskStatus] = TaskStatus.TODO
    priority: Optional[TaskPriority] = TaskPriority.MEDIUM
    type: Optional[TaskType] = None
    assignees: List[str] = field(default_factory=list)

    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    estimated_hours: float = 0.0
    actual_hours: float = 0.0
    progress: float = 0.0  # 0-100

    dependencies: List[str] = field(default_factory=list)
    quality: QualityMetrics = field(default_factory=QualityMetrics)
    time_tracking: TimeTracking = field(default_factory=TimeTracking)
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        # Naive datetimes are taken as UTC
        self.due_date = ensure_aware(self.due_date)
        self.start_date = ensure_aware(self.start_date)
        self.completed_date = ensure_aware(self.completed_date)
        self.created_at = ensure_aware(self.created_at)

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_active(self) -> bool:
        """Neither completed nor cancelled."""
        return self.status not in CLOSED_STATUSES

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        if self.due_date is None or self.is_completed:
            return False
        return (now or now_utc()) > self.due_date

    def is_assigned_to(self, user_id: str) -> bool:
        return user_id in self.assignees

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskRecord":
        """Build a task from a mapping, accepting snake_case or camelCase keys."""
        return cls(
            id=as_id(first_present(data, "id", "_id")) or "",
            title=str(first_present(data, "title", "name", default="")),
            project_id=as_id(first_present(data, "project_id", "projectId", "project")),
            status=parse_enum(TaskStatus, data.get("status", TaskStatus.TODO.value)),
            priority=parse_enum(TaskPriority, data.get("priority", TaskPriority.MEDIUM.value)),
            type=parse_enum(TaskType, data.get("type")),
            assignees=as_id_list(first_present(data, "assignees", "assigned_to", "assignedTo")),
            due_date=parse_datetime(first_present(data, "due_date", "dueDate")),
            start_date=parse_datetime(first_present(data, "start_date", "startDate")),
            completed_date=parse_datetime(first_present(data, "completed_date", "completedDate")),
            created_at=parse_datetime(first_present(data, "created_at", "createdAt")),
            estimated_hours=as_number(first_present(data, "estimated_hours", "estimatedHours")),
            actual_hours=as_number(first_present(data, "actual_hours", "actualHours")),
            progress=as_number(data.get("progress"), maximum=100),
            dependencies=as_id_list(data.get("dependencies")),
            quality=QualityMetrics.from_dict(data.get("quality")),
            time_tracking=TimeTracking.from_dict(first_present(data, "time_tracking", "timeTracking")),
            tags=as_str_list(data.get("tags")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'project_id': self.project_id,
            'status': self.status.value if self.status else None,
            'priority': self.priority.value if self.priority else None,
            'type': self.type.value if self.type else None,
            'assignees': list(self.assignees),
            'due_date': to_iso_string(self.due_date),
            'start_date': to_iso_string(self.start_date),
            'completed_date': to_iso_string(self.completed_date),
            'created_at': to_iso_string(self.created_at),
            'estimated_hours': self.estimated_hours,
            'actual_hours': self.actual_hours,
            'progress': self.progress,
            'dependencies': list(self.dependencies),
            'quality': self.quality.to_dict(),
            'time_tracking': self.time_tracking.to_dict(),
            'tags': list(self.tags),
        }
