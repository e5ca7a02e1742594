"""Report generation over a time-bounded query.

Three report kinds are supported. Each produces a payload carrying
aggregate fields plus detail rows, and can be rendered as JSON or CSV.
Arguments are validated before the record source is touched.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Union

from ..domain import ACTIVE_PROJECT_STATUSES, ProjectStatus, TaskRecord, UserRole
from ..errors import InvalidArgumentError
from ..storage import RecordSource
from ..utils.datetime import days_between, end_of_day, parse_datetime, start_of_day
from .export import ExportFormat, export_payload, get_exporter
from .metrics import count_by, percentage, safe_ratio

logger = logging.getLogger(__name__)

DateInput = Union[str, date, datetime]


class ReportType(Enum):
    PROJECT_SUMMARY = "project_summary"
    TEAM_PERFORMANCE = "team_performance"
    FINANCIAL_SUMMARY = "financial_summary"


TEAM_REPORT_ROLES = (UserRole.EMPLOYEE, UserRole.MANAGER)


def variance_percent(actual: float, budget: float) -> float:
    """Signed cost deviation from budget in percent; 0 without a budget."""
    return percentage(actual - budget, budget)


@dataclass
class ProjectSummaryReport:
    report_type: ClassVar[ReportType] = ReportType.PROJECT_SUMMARY
    detail_columns: ClassVar[Tuple[str, ...]] = (
        'id', 'name', 'status', 'progress', 'budget', 'actual_cost', 'manager_id', 'manager',
    )

    total_projects: int
    completed_projects: int
    active_projects: int
    total_budget: float
    total_actual_cost: float
    by_status: Dict[str, int] = field(default_factory=dict)
    projects: List[Dict[str, Any]] = field(default_factory=list)

    def summary_fields(self) -> Dict[str, Any]:
        summary = {
            'total_projects': self.total_projects,
            'completed_projects': self.completed_projects,
            'active_projects': self.active_projects,
            'total_budget': self.total_budget,
            'total_actual_cost': self.total_actual_cost,
        }
        summary.update({f"status_{key}": count for key, count in self.by_status.items()})
        return summary

    def detail_rows(self) -> List[Dict[str, Any]]:
        return self.projects

    def to_dict(self) -> Dict[str, Any]:
        return {
            'report_type': self.report_type.value,
            'total_projects': self.total_projects,
            'completed_projects': self.completed_projects,
            'active_projects': self.active_projects,
            'by_status': dict(self.by_status),
            'total_budget': self.total_budget,
            'total_actual_cost': self.total_actual_cost,
            'projects': list(self.projects),
        }


@dataclass
class TeamPerformanceReport:
    report_type: ClassVar[ReportType] = ReportType.TEAM_PERFORMANCE
    detail_columns: ClassVar[Tuple[str, ...]] = (
        'id', 'username', 'first_name', 'last_name', 'tasks_assigned',
        'tasks_completed', 'completion_rate', 'average_time',
    )

    total_members: int
    completed_tasks: int
    average_productivity: float
    team_members: List[Dict[str, Any]] = field(default_factory=list)

    def summary_fields(self) -> Dict[str, Any]:
        return {
            'total_members': self.total_members,
            'completed_tasks': self.completed_tasks,
            'average_productivity': self.average_productivity,
        }

    def detail_rows(self) -> List[Dict[str, Any]]:
        return self.team_members

    def to_dict(self) -> Dict[str, Any]:
        return {
            'report_type': self.report_type.value,
            'total_members': self.total_members,
            'completed_tasks': self.completed_tasks,
            'average_productivity': self.average_productivity,
            'team_members': list(self.team_members),
        }


@dataclass
class FinancialSummaryReport:
    report_type: ClassVar[ReportType] = ReportType.FINANCIAL_SUMMARY
    detail_columns: ClassVar[Tuple[str, ...]] = ('id', 'name', 'budget', 'actual_cost', 'variance')

    total_budget: float
    total_actual_cost: float
    total_variance: float
    projects: List[Dict[str, Any]] = field(default_factory=list)

    def summary_fields(self) -> Dict[str, Any]:
        return {
            'total_budget': self.total_budget,
            'total_actual_cost': self.total_actual_cost,
            'total_variance': self.total_variance,
        }

    def detail_rows(self) -> List[Dict[str, Any]]:
        return self.projects

    def to_dict(self) -> Dict[str, Any]:
        return {
            'report_type': self.report_type.value,
            'total_budget': self.total_budget,
            'total_actual_cost': self.total_actual_cost,
            'total_variance': self.total_variance,
            'projects': list(self.projects),
        }


ReportPayload = Union[ProjectSummaryReport, TeamPerformanceReport, FinancialSummaryReport]


@dataclass
class GeneratedReport:
    """A report payload together with its query and output format."""
    report_type: ReportType
    start_date: date
    end_date: date
    format: ExportFormat
    payload: ReportPayload

    @property
    def filename(self) -> str:
        extension = get_exporter(self.format).get_file_extension()
        return (f"{self.report_type.value}_{self.start_date.isoformat()}_"
                f"{self.end_date.isoformat()}.{extension}")

    @property
    def content_type(self) -> str:
        return get_exporter(self.format).get_content_type()

    def render(self) -> str:
        return export_payload(self.payload, self.format)

    def to_dict(self) -> Dict[str, Any]:
        return self.payload.to_dict()


def parse_report_type(value: Union[str, ReportType]) -> ReportType:
    if isinstance(value, ReportType):
        return value
    try:
        return ReportType(str(value).strip().lower())
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid report type: {value!r}. Expected one of: "
            f"{', '.join(t.value for t in ReportType)}",
            field_name="report_type", value=value,
        ) from None


def parse_format(value: Union[str, ExportFormat, None]) -> ExportFormat:
    if value is None:
        return ExportFormat.JSON
    if isinstance(value, ExportFormat):
        return value
    try:
        return ExportFormat(str(value).strip().lower())
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid format: {value!r}. Expected json or csv",
            field_name="format", value=value,
        ) from None


def parse_report_date(value: Optional[DateInput], field_name: str) -> date:
    if value is None or value == "":
        raise InvalidArgumentError(f"{field_name} is required", field_name=field_name)
    try:
        parsed = parse_datetime(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(
            f"Invalid {field_name}: {value!r}", field_name=field_name, value=value,
        ) from None
    return parsed.date()


def parse_date_range(start_date: Optional[DateInput],
                     end_date: Optional[DateInput]) -> Tuple[date, date]:
    start = parse_report_date(start_date, "start_date")
    end = parse_report_date(end_date, "end_date")
    if end < start:
        raise InvalidArgumentError(
            f"end_date {end.isoformat()} is before start_date {start.isoformat()}",
            field_name="end_date", value=end_date,
        )
    return start, end


def task_duration_days(task: TaskRecord) -> int:
    if task.start_date and task.completed_date:
        return days_between(task.completed_date, task.start_date)
    return 0


class ReportGenerator:
    """Builds report payloads from a record source."""

    def __init__(self, source: RecordSource):
        self.source = source
        self._builders: Dict[ReportType, Callable[[datetime, datetime], ReportPayload]] = {
            ReportType.PROJECT_SUMMARY: self.project_summary,
            ReportType.TEAM_PERFORMANCE: self.team_performance,
            ReportType.FINANCIAL_SUMMARY: self.financial_summary,
        }

    def generate(self, report_type: Union[str, ReportType],
                 start_date: Optional[DateInput], end_date: Optional[DateInput],
                 format: Union[str, ExportFormat, None] = ExportFormat.JSON) -> GeneratedReport:
        """Validate the query, then build the requested report."""
        kind = parse_report_type(report_type)
        start, end = parse_date_range(start_date, end_date)
        export_format = parse_format(format)

        logger.info(f"Generating {kind.value} report for {start.isoformat()}..{end.isoformat()}")
        payload = self._builders[kind](start_of_day(start), end_of_day(end))
        return GeneratedReport(
            report_type=kind,
            start_date=start,
            end_date=end,
            format=export_format,
            payload=payload,
        )

    def project_summary(self, start: datetime, end: datetime) -> ProjectSummaryReport:
        projects = self.source.list_projects(created_from=start, created_to=end)
        managers = self.source.users_by_id(p.manager_id for p in projects if p.manager_id)

        rows = []
        for project in projects:
            manager = managers.get(project.manager_id)
            rows.append({
                'id': project.id,
                'name': project.name,
                'status': project.status.value if project.status else None,
                'progress': project.progress,
                'budget': project.budget,
                'actual_cost': project.actual_cost,
                'manager_id': project.manager_id,
                'manager': manager.display_name if manager else None,
            })

        return ProjectSummaryReport(
            total_projects=len(projects),
            completed_projects=sum(1 for p in projects if p.status == ProjectStatus.COMPLETED),
            active_projects=sum(1 for p in projects if p.status in ACTIVE_PROJECT_STATUSES),
            total_budget=sum(p.budget for p in projects),
            total_actual_cost=sum(p.actual_cost for p in projects),
            by_status=count_by((p.status for p in projects), ProjectStatus),
            projects=rows,
        )

    def team_performance(self, start: datetime, end: datetime) -> TeamPerformanceReport:
        users = self.source.list_users(roles=TEAM_REPORT_ROLES)
        tasks = self.source.list_tasks(created_from=start, created_to=end)

        members = []
        for user in users:
            user_tasks = [t for t in tasks if t.is_assigned_to(user.id)]
            completed = [t for t in user_tasks if t.is_completed]
            members.append({
                'id': user.id,
                'username': user.username,
                'first_name': user.first_name,
                'last_name': user.last_name,
                'tasks_assigned': len(user_tasks),
                'tasks_completed': len(completed),
                'completion_rate': percentage(len(completed), len(user_tasks)),
                'average_time': safe_ratio(sum(task_duration_days(t) for t in completed), len(completed)),
            })

        return TeamPerformanceReport(
            total_members=len(members),
            completed_tasks=sum(1 for t in tasks if t.is_completed),
            average_productivity=safe_ratio(sum(m['completion_rate'] for m in members), len(members)),
            team_members=members,
        )

    def financial_summary(self, start: datetime, end: datetime) -> FinancialSummaryReport:
        projects = self.source.list_projects(created_from=start, created_to=end)

        total_budget = sum(p.budget for p in projects)
        total_actual = sum(p.actual_cost for p in projects)
        rows = [
            {
                'id': p.id,
                'name': p.name,
                'budget': p.budget,
                'actual_cost': p.actual_cost,
                'variance': variance_percent(p.actual_cost, p.budget),
            }
            for p in projects
        ]

        return FinancialSummaryReport(
            total_budget=total_budget,
            total_actual_cost=total_actual,
            total_variance=variance_percent(total_actual, total_budget),
            projects=rows,
        )


def generate_report(source: RecordSource, report_type: Union[str, ReportType],
                    start_date: Optional[DateInput], end_date: Optional[DateInput],
                    format: Union[str, ExportFormat, None] = ExportFormat.JSON) -> GeneratedReport:
    """Convenience wrapper around ``ReportGenerator.generate``."""
    return ReportGenerator(source).generate(report_type, start_date, end_date, format)
