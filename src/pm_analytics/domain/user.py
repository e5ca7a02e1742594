"""User record model consumed by the analytics engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.datetime import ensure_aware, parse_datetime, to_iso_string
from ..utils.validation import (
    as_bool, as_id, as_int, as_number, as_str_list, first_present, parse_enum,
)


class UserRole(Enum):
    """Access roles."""
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    CLIENT = "client"


@dataclass
class UserActivity:
    last_login: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    total_logins: int = 0

    def __post_init__(self):
        self.last_login = ensure_aware(self.last_login)
        self.last_activity = ensure_aware(self.last_activity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'last_login': to_iso_string(self.last_login),
            'last_activity': to_iso_string(self.last_activity),
            'total_logins': self.total_logins,
        }


@dataclass
class UserRecord:
    """Read-only snapshot of a user."""
    id: str
    username: str
    first_name: str = ""
    last_name: str = ""
    role: Optional[UserRole] = UserRole.EMPLOYEE
    department: str = ""
    position: str = ""
    skills: List[str] = field(default_factory=list)
    is_active: bool = True
    productivity_score: float = 0.0
    activity: UserActivity = field(default_factory=UserActivity)

    @property
    def display_name(self) -> str:
        """Full name, falling back to the username."""
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        performance = data.get("performance") or {}
        activity = data.get("activity") or {}
        is_active = first_present(data, "is_active", "isActive", default=True)
        return cls(
            id=as_id(first_present(data, "id", "_id")) or "",
            username=str(data.get("username") or ""),
            first_name=str(first_present(data, "first_name", "firstName", default="")),
            last_name=str(first_present(data, "last_name", "lastName", default="")),
            role=parse_enum(UserRole, data.get("role", UserRole.EMPLOYEE.value)),
            department=str(data.get("department") or ""),
            position=str(data.get("position") or ""),
            skills=as_str_list(data.get("skills")),
            is_active=as_bool(is_active, default=True),
            productivity_score=as_number(
                first_present(performance, "productivity_score", "productivityScore")
            ),
            activity=UserActivity(
                last_login=parse_datetime(
                    first_present(data, "last_login", "lastLogin",
                                  default=first_present(activity, "last_login", "lastLogin"))
                ),
                last_activity=parse_datetime(
                    first_present(data, "last_activity", "lastActivity",
                                  default=first_present(activity, "last_activity", "lastActivity"))
                ),
                total_logins=as_int(first_present(activity, "total_logins", "totalLogins")),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'username': self.username,
            'full_name': self.display_name,
            'role': self.role.value if self.role else None,
            'department': self.department or None,
            'position': self.position,
            'skills': list(self.skills),
            'is_active': self.is_active,
            'productivity_score': self.productivity_score,
            'activity': self.activity.to_dict(),
        }
