"""Record sources feeding the analytics engine.

The engine never talks to a database. It reads projects, tasks and users
through a ``RecordSource``; ``InMemoryRecordSource`` serves a materialized
snapshot, typically loaded from a JSON or YAML export.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import yaml

from .domain import ProjectRecord, TaskRecord, UserRecord, UserRole
from .errors import NotFoundError, SnapshotError

logger = logging.getLogger(__name__)


def _created_within(created_at: Optional[datetime], start: Optional[datetime],
                    end: Optional[datetime]) -> bool:
    if start is None and end is None:
        return True
    if created_at is None:
        return False
    if start is not None and created_at < start:
        return False
    if end is not None and created_at > end:
        return False
    return True


class RecordSource(ABC):
    """Read-only access to project, task and user records."""

    @abstractmethod
    def get_project(self, project_id: str) -> ProjectRecord:
        """Return one project or raise NotFoundError."""

    @abstractmethod
    def get_user(self, user_id: str) -> UserRecord:
        """Return one user or raise NotFoundError."""

    @abstractmethod
    def list_projects(self, created_from: Optional[datetime] = None,
                      created_to: Optional[datetime] = None) -> List[ProjectRecord]:
        """Projects, optionally restricted to a creation window."""

    @abstractmethod
    def list_tasks(self, project_ids: Optional[Iterable[str]] = None,
                   assignee_ids: Optional[Iterable[str]] = None,
                   created_from: Optional[datetime] = None,
                   created_to: Optional[datetime] = None) -> List[TaskRecord]:
        """Tasks, optionally restricted by project, assignee and creation window."""

    @abstractmethod
    def list_users(self, roles: Optional[Iterable[UserRole]] = None,
                   active_only: bool = False,
                   department: Optional[str] = None) -> List[UserRecord]:
        """Users, optionally restricted by role, activity and department."""

    def users_by_id(self, user_ids: Optional[Iterable[str]] = None) -> Dict[str, UserRecord]:
        """Map of users keyed by id; unknown ids are skipped."""
        users = {user.id: user for user in self.list_users()}
        if user_ids is None:
            return users
        wanted = set(user_ids)
        return {uid: user for uid, user in users.items() if uid in wanted}


class InMemoryRecordSource(RecordSource):
    """Serves records from in-memory lists."""

    def __init__(self, projects: Sequence[ProjectRecord] = (),
                 tasks: Sequence[TaskRecord] = (),
                 users: Sequence[UserRecord] = ()):
        self.projects = list(projects)
        self.tasks = list(tasks)
        self.users = list(users)

    def get_project(self, project_id: str) -> ProjectRecord:
        for project in self.projects:
            if project.id == project_id:
                return project
        raise NotFoundError("project", project_id)

    def get_user(self, user_id: str) -> UserRecord:
        for user in self.users:
            if user.id == user_id:
                return user
        raise NotFoundError("user", user_id)

    def list_projects(self, created_from=None, created_to=None):
        return [p for p in self.projects if _created_within(p.created_at, created_from, created_to)]

    def list_tasks(self, project_ids=None, assignee_ids=None, created_from=None, created_to=None):
        project_filter = set(project_ids) if project_ids is not None else None
        assignee_filter = set(assignee_ids) if assignee_ids is not None else None
        return [
            t for t in self.tasks
            if (project_filter is None or t.project_id in project_filter)
            and (assignee_filter is None or assignee_filter.intersection(t.assignees))
            and _created_within(t.created_at, created_from, created_to)
        ]

    def list_users(self, roles=None, active_only=False, department=None):
        role_filter = set(roles) if roles is not None else None
        return [
            u for u in self.users
            if (role_filter is None or u.role in role_filter)
            and (not active_only or u.is_active)
            and (department is None or u.department == department)
        ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryRecordSource":
        """Build a source from ``{"projects": [...], "tasks": [...], "users": [...]}``."""
        try:
            projects = [ProjectRecord.from_dict(item) for item in data.get("projects") or []]
            tasks = [TaskRecord.from_dict(item) for item in data.get("tasks") or []]
            users = [UserRecord.from_dict(item) for item in data.get("users") or []]
        except (TypeError, ValueError, AttributeError) as e:
            raise SnapshotError(f"Invalid record in snapshot: {e}") from e
        logger.debug(f"Snapshot holds {len(projects)} projects, {len(tasks)} tasks, {len(users)} users")
        return cls(projects, tasks, users)


def load_snapshot(path: Union[str, Path]) -> InMemoryRecordSource:
    """Load a record snapshot from a JSON or YAML file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"Cannot read snapshot {path}: {e}") from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SnapshotError(f"Cannot parse snapshot {path}: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot {path} must contain a mapping")

    logger.info(f"Loaded snapshot from {path}")
    return InMemoryRecordSource.from_dict(data)
