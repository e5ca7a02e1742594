"""Domain records consumed by the analytics engine."""

from .project import (
    ProjectRecord,
    ProjectStatus,
    ProjectPriority,
    TeamMember,
    ACTIVE_PROJECT_STATUSES,
    FINISHED_PROJECT_STATUSES,
)
from .task import (
    TaskRecord,
    TaskStatus,
    TaskPriority,
    TaskType,
    QualityMetrics,
    TimeTracking,
)
from .user import UserRecord, UserRole, UserActivity

__all__ = [
    "ProjectRecord",
    "ProjectStatus",
    "ProjectPriority",
    "TeamMember",
    "ACTIVE_PROJECT_STATUSES",
    "FINISHED_PROJECT_STATUSES",
    "TaskRecord",
    "TaskStatus",
    "TaskPriority",
    "TaskType",
    "QualityMetrics",
    "TimeTracking",
    "UserRecord",
    "UserRole",
    "UserActivity",
]
