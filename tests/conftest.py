"""Pytest configuration and shared fixtures."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pm_analytics.config import AnalyticsConfig, Config  # noqa: E402
from pm_analytics.domain import (  # noqa: E402
    ProjectRecord, ProjectStatus, QualityMetrics, TaskRecord, TaskStatus, TeamMember,
    UserRecord, UserRole,
)
from pm_analytics.storage import InMemoryRecordSource  # noqa: E402

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def default_config():
    """Isolate tests from any config file on the machine."""
    Config._instance = AnalyticsConfig()
    yield Config._instance
    Config.reset()


@pytest.fixture
def now():
    return NOW


def make_project(id="p1", name="Apollo", start_offset=-20, end_offset=10, team=(),
                 **kwargs):
    kwargs.setdefault("status", ProjectStatus.IN_PROGRESS)
    return ProjectRecord(
        id=id,
        name=name,
        start_date=NOW + timedelta(days=start_offset),
        end_date=NOW + timedelta(days=end_offset),
        team=[TeamMember(user_id=uid) for uid in team],
        **kwargs,
    )


def make_task(id, status=TaskStatus.TODO, assignees=(), project_id="p1", bugs=0,
              dependencies=(), **kwargs):
    return TaskRecord(
        id=id,
        title=f"Task {id}",
        project_id=project_id,
        status=status,
        assignees=list(assignees),
        dependencies=list(dependencies),
        quality=QualityMetrics(bugs_found=bugs),
        **kwargs,
    )


def make_user(id, role=UserRole.EMPLOYEE, **kwargs):
    return UserRecord(id=id, username=id, role=role, **kwargs)


@pytest.fixture
def sample_snapshot():
    """Raw snapshot in the camelCase shape exported by the web backend."""
    return {
        "projects": [
            {
                "_id": "p1",
                "name": "Website Redesign",
                "status": "In Progress",
                "startDate": "2024-05-01T00:00:00Z",
                "endDate": "2024-07-01T00:00:00Z",
                "budget": 1000,
                "actualCost": 1200,
                "progress": 40,
                "manager": "u1",
                "team": [{"user": "u2", "role": "developer", "allocation": 0.5}, "u3"],
                "resources": {"requiredSkills": ["python", "react"]},
                "createdAt": "2024-01-10T09:00:00Z",
            },
            {
                "_id": "p2",
                "name": "Data Migration",
                "status": "Completed",
                "startDate": "2024-01-01",
                "endDate": "2024-03-01",
                "budget": 2000,
                "actualCost": 1800,
                "progress": 100,
                "manager": "u1",
                "team": ["u2"],
                "createdAt": "2024-01-20T09:00:00Z",
            },
            {
                "_id": "p3",
                "name": "Legacy Cleanup",
                "status": "Planning",
                "startDate": "2024-08-01",
                "endDate": "2024-09-01",
                "budget": 0,
                "manager": "u4",
                "createdAt": "2023-11-01T00:00:00Z",
            },
        ],
        "tasks": [
            {
                "_id": "t1", "title": "Design mockups", "status": "Completed",
                "priority": "High", "type": "Design", "project": "p1",
                "assignedTo": ["u2"], "dueDate": "2024-05-20",
                "startDate": "2024-05-02", "completedDate": "2024-05-06",
                "estimatedHours": 8, "actualHours": 10,
                "quality": {"bugsFound": 1, "bugsFixed": 1, "testCoverage": 80, "codeQualityScore": 7},
                "timeTracking": {"totalLogged": 10, "billableHours": 8, "nonBillableHours": 2},
                "createdAt": "2024-05-01T10:00:00Z",
            },
            {
                "_id": "t2", "title": "Build header", "status": "In Progress",
                "priority": "Medium", "type": "Feature", "project": "p1",
                "assignedTo": ["u2", "u3"], "dueDate": "2024-06-30",
                "startDate": "2024-05-10", "actualHours": 4,
                "dependencies": ["t1"],
                "createdAt": "2024-05-05T10:00:00Z",
            },
            {
                "_id": "t3", "title": "Write docs", "status": "Shelved",
                "priority": "Low", "type": "Documentation", "project": "p1",
                "assignedTo": ["u3"], "dueDate": "2024-06-01",
                "createdAt": "2024-05-06T10:00:00Z",
            },
            {
                "_id": "t4", "title": "Migrate tables", "status": "Completed",
                "priority": "Critical", "type": "Maintenance", "project": "p2",
                "assignedTo": ["u2"], "dueDate": "2024-02-20",
                "startDate": "2024-01-05", "completedDate": "2024-01-15",
                "estimatedHours": 20, "actualHours": 16,
                "createdAt": "2024-01-03T10:00:00Z",
            },
        ],
        "users": [
            {"_id": "u1", "username": "mgr", "firstName": "Maria", "lastName": "Lopez",
             "role": "manager", "department": "PMO", "skills": ["planning"]},
            {"_id": "u2", "username": "dev1", "firstName": "Sam", "lastName": "Okafor",
             "role": "employee", "department": "Engineering", "skills": ["python"],
             "performance": {"productivityScore": 82}},
            {"_id": "u3", "username": "dev2", "role": "employee", "department": "Engineering"},
            {"_id": "u4", "username": "admin", "role": "admin", "isActive": False},
            {"_id": "u5", "username": "client", "role": "client"},
        ],
    }


@pytest.fixture
def source(sample_snapshot):
    return InMemoryRecordSource.from_dict(sample_snapshot)
