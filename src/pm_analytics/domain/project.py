"""Project record model consumed by the analytics engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.datetime import days_between, ensure_aware, now_utc, parse_datetime, to_iso_string
from ..utils.validation import (
    as_id, as_number, as_str_list, first_present, parse_enum,
)


class ProjectStatus(Enum):
    """Project lifecycle states."""
    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ProjectPriority(Enum):
    """Project priority levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


ACTIVE_PROJECT_STATUSES = (ProjectStatus.PLANNING, ProjectStatus.IN_PROGRESS)
FINISHED_PROJECT_STATUSES = (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED)


@dataclass
class TeamMember:
    """A user's membership in a project team."""
    user_id: str
    role: str = ""
    allocation: float = 1.0  # fraction of the member's time

    @classmethod
    def from_value(cls, value: Any) -> Optional["TeamMember"]:
        """Accept a bare user id or a ``{user, role, allocation}`` mapping."""
        if isinstance(value, dict):
            user_id = as_id(first_present(value, "user_id", "userId", "user", "id", "_id"))
            if user_id is None:
                return None
            allocation = value.get("allocation")
            return cls(
                user_id=user_id,
                role=str(value.get("role") or ""),
                allocation=1.0 if allocation is None else as_number(allocation),
            )
        user_id = as_id(value)
        return cls(user_id=user_id) if user_id is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {'user_id': self.user_id, 'role': self.role, 'allocation': self.allocation}


@dataclass
class ProjectRecord:
    """Read-only snapshot of a project.
    
    ``start_date < end_date`` is enforced upstream and assumed here.
    """
    id: str
    name: str
    start_date: datetime
    end_date: datetime
    description: str = ""
    status: Optional[ProjectStatus] = ProjectStatus.PLANNING
    priority: Optional[ProjectPriority] = ProjectPriority.MEDIUM
    budget: float = 0.0
    actual_cost: float = 0.0
    progress: float = 0.0  # 0-100
    manager_id: Optional[str] = None
    team: List[TeamMember] = field(default_factory=list)
    required_skills: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    burndown_data: List[Any] = field(default_factory=list)

    def __post_init__(self):
        self.start_date = ensure_aware(self.start_date)
        self.end_date = ensure_aware(self.end_date)
        self.created_at = ensure_aware(self.created_at)

    @property
    def duration(self) -> int:
        """Planned length in whole days."""
        return days_between(self.end_date, self.start_date)

    @property
    def team_ids(self) -> List[str]:
        return [member.user_id for member in self.team]

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_PROJECT_STATUSES

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_PROJECT_STATUSES

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        return not self.is_finished and (now or now_utc()) > self.end_date

    def involves(self, user_id: str) -> bool:
        """True when the user manages the project or sits on its team."""
        return self.manager_id == user_id or user_id in self.team_ids

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectRecord":
        """Build a project from a mapping, accepting snake_case or camelCase keys."""
        start_date = parse_datetime(first_present(data, "start_date", "startDate"))
        end_date = parse_datetime(first_present(data, "end_date", "endDate"))
        if start_date is None or end_date is None:
            raise ValueError(f"Project {data.get('name', '?')!r} requires start and end dates")

        resources = data.get("resources") or {}
        skills = first_present(data, "required_skills", "requiredSkills")
        if skills is None:
            skills = first_present(resources, "required_skills", "requiredSkills")

        analytics = data.get("analytics") or {}
        burndown = first_present(data, "burndown_data", "burndownData")
        if burndown is None:
            burndown = first_present(analytics, "burndown_data", "burndownData", default=[])

        team = [TeamMember.from_value(member) for member in data.get("team") or []]

        return cls(
            id=as_id(first_present(data, "id", "_id")) or "",
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            status=parse_enum(ProjectStatus, data.get("status", ProjectStatus.PLANNING.value)),
            priority=parse_enum(ProjectPriority, data.get("priority", ProjectPriority.MEDIUM.value)),
            start_date=start_date,
            end_date=end_date,
            budget=as_number(data.get("budget")),
            actual_cost=as_number(first_present(data, "actual_cost", "actualCost")),
            progress=as_number(data.get("progress"), maximum=100),
            manager_id=as_id(first_present(data, "manager_id", "managerId", "manager")),
            team=[member for member in team if member is not None],
            required_skills=as_str_list(skills),
            created_at=parse_datetime(first_present(data, "created_at", "createdAt")),
            burndown_data=list(burndown),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'status': self.status.value if self.status else None,
            'priority': self.priority.value if self.priority else None,
            'start_date': to_iso_string(self.start_date),
            'end_date': to_iso_string(self.end_date),
            'budget': self.budget,
            'actual_cost': self.actual_cost,
            'progress': self.progress,
            'manager_id': self.manager_id,
            'team': [member.to_dict() for member in self.team],
            'required_skills': list(self.required_skills),
            'created_at': to_iso_string(self.created_at),
        }
