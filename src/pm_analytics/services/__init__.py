"""Analytics services for PM Analytics."""

from .metrics import MetricsAggregator, ProjectMetrics, MemberPerformance
from .forecast import CompletionPredictor, CompletionForecast
from .risk import RiskAssessor, RiskAssessment, RiskLevel
from .recommendations import (
    ResourceRecommender,
    ResourceRecommendation,
    RecommendationType,
    RecommendationPriority,
)
from .export import ExportFormat, JSONExporter, CSVExporter, export_payload
from .reports import ReportGenerator, ReportType, GeneratedReport, generate_report
from .project_analytics import ProjectAnalyzer, ProjectAnalytics, DashboardAnalytics
from .team_analytics import TeamAnalyzer, TeamAnalytics

__all__ = [
    "MetricsAggregator",
    "ProjectMetrics",
    "MemberPerformance",
    "CompletionPredictor",
    "CompletionForecast",
    "RiskAssessor",
    "RiskAssessment",
    "RiskLevel",
    "ResourceRecommender",
    "ResourceRecommendation",
    "RecommendationType",
    "RecommendationPriority",
    "ExportFormat",
    "JSONExporter",
    "CSVExporter",
    "export_payload",
    "ReportGenerator",
    "ReportType",
    "GeneratedReport",
    "generate_report",
    "ProjectAnalyzer",
    "ProjectAnalytics",
    "DashboardAnalytics",
    "TeamAnalyzer",
    "TeamAnalytics",
]
