"""Project Analytics for PM Analytics.

This module assembles the per-project analytics view and the per-user
dashboard from the individual engines:
- Task, time-tracking and quality rollups
- Team performance
- Completion prediction
- Risk assessment
- Resource recommendations
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config import AnalyticsConfig, get_config
from ..domain import ProjectRecord, ProjectStatus, TaskRecord, TaskStatus, UserRecord
from ..storage import RecordSource
from ..utils.datetime import days_between, now_utc, to_iso_string
from .forecast import CompletionForecast, CompletionPredictor
from .metrics import (
    MemberPerformance, MetricsAggregator, ProjectMetrics, percentage, round_half_up,
)
from .recommendations import ResourceRecommendation, ResourceRecommender
from .reports import variance_percent
from .risk import RiskAssessment, RiskAssessor

logger = logging.getLogger(__name__)


@dataclass
class ProjectInsights:
    forecast: CompletionForecast
    risk_assessment: RiskAssessment
    resource_recommendations: List[ResourceRecommendation] = field(default_factory=list)
    burndown_data: List[Any] = field(default_factory=list)

    @property
    def completion_prediction(self) -> datetime:
        return self.forecast.predicted_completion

    def to_dict(self) -> Dict[str, Any]:
        return {
            'completion_prediction': to_iso_string(self.completion_prediction),
            'forecast': self.forecast.to_dict(),
            'risk_assessment': self.risk_assessment.to_dict(),
            'resource_recommendations': [r.to_dict() for r in self.resource_recommendations],
            'burndown_data': list(self.burndown_data),
        }


@dataclass
class ProjectAnalytics:
    """Comprehensive analytics for one project"""
    detail_columns: ClassVar[Tuple[str, ...]] = (
        'user_id', 'username', 'full_name', 'role', 'allocation', 'tasks_assigned',
        'tasks_completed', 'completion_rate', 'total_hours', 'average_hours_per_task',
    )

    project: ProjectRecord
    metrics: ProjectMetrics
    insights: ProjectInsights
    manager: Optional[UserRecord] = None

    @property
    def team(self) -> List[MemberPerformance]:
        return self.metrics.team

    def project_summary(self) -> Dict[str, Any]:
        p = self.project
        return {
            'id': p.id,
            'name': p.name,
            'description': p.description,
            'status': p.status.value if p.status else None,
            'progress': p.progress,
            'start_date': to_iso_string(p.start_date),
            'end_date': to_iso_string(p.end_date),
            'budget': p.budget,
            'actual_cost': p.actual_cost,
            'manager_id': p.manager_id,
            'manager': self.manager.display_name if self.manager else None,
        }

    def summary_fields(self) -> Dict[str, Any]:
        risk = self.insights.risk_assessment
        summary = {
            'project': self.project.name,
            'status': self.project.status.value if self.project.status else None,
            'progress': self.project.progress,
            'total_tasks': self.metrics.tasks.total,
            'velocity': self.metrics.velocity,
            'completion_prediction': to_iso_string(self.insights.completion_prediction),
            'risk_score': risk.score,
            'risk_level': risk.level.value,
            'risk_factors': risk.factors,
        }
        summary.update(self.metrics.time_tracking.to_dict())
        summary.update(self.metrics.quality.to_dict())
        return summary

    def detail_rows(self) -> List[Dict[str, Any]]:
        return [member.to_dict() for member in self.team]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'project': self.project_summary(),
            'metrics': self.metrics.to_dict(),
            'team': self.detail_rows(),
            'insights': self.insights.to_dict(),
        }


@dataclass
class ProjectInsightSummary:
    """Condensed insights for one project on the dashboard"""
    project_id: str
    project_name: str
    completion_prediction: datetime
    risk_assessment: RiskAssessment
    resource_recommendations: List[ResourceRecommendation]
    progress: float
    status: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'project_id': self.project_id,
            'project_name': self.project_name,
            'completion_prediction': to_iso_string(self.completion_prediction),
            'risk_assessment': self.risk_assessment.to_dict(),
            'resource_recommendations': [r.to_dict() for r in self.resource_recommendations],
            'progress': self.progress,
            'status': self.status,
        }


@dataclass
class DashboardAnalytics:
    """Portfolio view for a single user"""
    detail_columns: ClassVar[Tuple[str, ...]] = (
        'project_id', 'project_name', 'status', 'progress', 'risk_score', 'risk_level',
        'completion_prediction', 'recommendations',
    )

    user_id: str
    overview: Dict[str, int]
    productivity: Dict[str, Any]
    financial: Dict[str, Any]
    project_insights: List[ProjectInsightSummary] = field(default_factory=list)
    high_risk_projects: List[ProjectInsightSummary] = field(default_factory=list)
    upcoming_deadlines: List[Dict[str, Any]] = field(default_factory=list)
    team_performance: List[ProjectInsightSummary] = field(default_factory=list)

    def summary_fields(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {'user_id': self.user_id}
        summary.update(self.overview)
        summary.update(self.productivity)
        summary.update(self.financial)
        return summary

    def detail_rows(self) -> List[Dict[str, Any]]:
        return [
            {
                'project_id': item.project_id,
                'project_name': item.project_name,
                'status': item.status,
                'progress': item.progress,
                'risk_score': item.risk_assessment.score,
                'risk_level': item.risk_assessment.level.value,
                'completion_prediction': to_iso_string(item.completion_prediction),
                'recommendations': len(item.resource_recommendations),
            }
            for item in self.project_insights
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overview': dict(self.overview),
            'productivity': dict(self.productivity),
            'financial': dict(self.financial),
            'insights': {
                'high_risk_projects': [p.to_dict() for p in self.high_risk_projects],
                'upcoming_deadlines': list(self.upcoming_deadlines),
                'team_performance': [p.to_dict() for p in self.team_performance],
            },
        }


class ProjectAnalyzer:
    """Advanced project analytics engine"""

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or get_config()
        self.aggregator = MetricsAggregator()
        self.predictor = CompletionPredictor()
        self.risk_assessor = RiskAssessor()
        self.recommender = ResourceRecommender()

    def analyze_project(self, project: ProjectRecord, tasks: Sequence[TaskRecord],
                        users: Optional[Mapping[str, UserRecord]] = None,
                        now: Optional[datetime] = None) -> ProjectAnalytics:
        """Full analytics for one project and the tasks referencing it."""
        now = now or now_utc()
        users = users or {}
        tasks = [t for t in tasks if t.project_id in (None, project.id)]

        return ProjectAnalytics(
            project=project,
            metrics=self.aggregator.project_metrics(project, tasks, users, now),
            insights=ProjectInsights(
                forecast=self.predictor.forecast(project, tasks, now),
                risk_assessment=self.risk_assessor.assess(project, tasks, now),
                resource_recommendations=self.recommender.recommend(project, tasks, users),
                burndown_data=project.burndown_data,
            ),
            manager=users.get(project.manager_id) if project.manager_id else None,
        )

    def analyze_project_by_id(self, source: RecordSource, project_id: str,
                              now: Optional[datetime] = None) -> ProjectAnalytics:
        """Resolve a project through ``source``; raises NotFoundError if absent."""
        project = source.get_project(project_id)
        tasks = source.list_tasks(project_ids=[project.id])
        related = project.team_ids + ([project.manager_id] if project.manager_id else [])
        users = source.users_by_id(related)
        return self.analyze_project(project, tasks, users, now)

    def summarize_project(self, project: ProjectRecord, tasks: Sequence[TaskRecord],
                          users: Optional[Mapping[str, UserRecord]] = None,
                          now: Optional[datetime] = None) -> ProjectInsightSummary:
        limit = self.config.recommendations_per_project
        recommendations = self.recommender.recommend(project, tasks, users)
        return ProjectInsightSummary(
            project_id=project.id,
            project_name=project.name,
            completion_prediction=self.predictor.predict_completion(project, tasks, now),
            risk_assessment=self.risk_assessor.assess(project, tasks, now),
            resource_recommendations=recommendations[:limit],
            progress=project.progress,
            status=project.status.value if project.status else None,
        )

    def dashboard(self, source: RecordSource, user_id: str,
                  now: Optional[datetime] = None) -> DashboardAnalytics:
        """Portfolio dashboard for the projects a user manages or works on."""
        now = now or now_utc()
        source.get_user(user_id)

        projects = [p for p in source.list_projects() if p.involves(user_id)]
        tasks = source.list_tasks(project_ids=[p.id for p in projects])
        users = source.users_by_id()
        logger.info(f"Dashboard for user {user_id}: {len(projects)} projects, {len(tasks)} tasks")

        overview = {
            'total_projects': len(projects),
            'active_projects': sum(1 for p in projects if p.is_active),
            'completed_projects': sum(1 for p in projects if p.status == ProjectStatus.COMPLETED),
            'overdue_projects': sum(1 for p in projects if p.is_overdue(now)),
            'total_tasks': len(tasks),
            'completed_tasks': sum(1 for t in tasks if t.is_completed),
            'overdue_tasks': sum(1 for t in tasks if t.is_overdue(now)),
            'in_progress_tasks': sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        }

        user_completed = sum(1 for t in tasks if t.is_assigned_to(user_id) and t.is_completed)
        window_start = now - timedelta(days=self.config.recent_window_days)
        recent = [t for t in tasks if t.created_at and t.created_at > window_start]
        recent_completed = sum(1 for t in recent if t.is_completed)
        productivity = {
            'user_productivity': round_half_up(percentage(user_completed, len(tasks))),
            'completion_trend': round_half_up(percentage(recent_completed, len(recent))),
            'tasks_completed_this_month': recent_completed,
        }

        total_budget = sum(p.budget for p in projects)
        total_actual = sum(p.actual_cost for p in projects)
        financial = {
            'total_budget': total_budget,
            'total_actual_cost': total_actual,
            'budget_variance': round(variance_percent(total_actual, total_budget), 2),
            'currency': self.config.currency,
        }

        insights = [
            self.summarize_project(p, [t for t in tasks if t.project_id == p.id], users, now)
            for p in projects
        ]

        upcoming = sorted((p for p in projects if not p.is_finished), key=lambda p: p.end_date)
        upcoming_deadlines = [
            {
                'id': p.id,
                'name': p.name,
                'end_date': to_iso_string(p.end_date),
                'progress': p.progress,
                'days_remaining': days_between(p.end_date, now),
            }
            for p in upcoming[:self.config.upcoming_deadline_limit]
        ]

        return DashboardAnalytics(
            user_id=user_id,
            overview=overview,
            productivity=productivity,
            financial=financial,
            project_insights=insights,
            high_risk_projects=[i for i in insights if i.risk_assessment.is_high_risk],
            upcoming_deadlines=upcoming_deadlines,
            team_performance=[i for i in insights if i.resource_recommendations][
                :self.config.team_performance_limit
            ],
        )
