"""Additive project risk scoring.

Each signal adds a fixed weight when its threshold trips. The total is
clamped to 0-100 and mapped to a level.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..domain import ProjectRecord, TaskRecord
from ..utils.datetime import days_between, now_utc
from .metrics import safe_ratio

logger = logging.getLogger(__name__)

BUDGET_UTILIZATION_THRESHOLD = 80.0
BUDGET_WEIGHT = 25
SCHEDULE_TOLERANCE = 10.0
SCHEDULE_WEIGHT = 30
WORKLOAD_THRESHOLD = 5.0
WORKLOAD_WEIGHT = 20
BUG_RATE_THRESHOLD = 0.3
QUALITY_WEIGHT = 15
DEPENDENCY_RATE_THRESHOLD = 0.4
DEPENDENCY_WEIGHT = 10


class RiskLevel(Enum):
    """Risk assessment levels"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @classmethod
    def from_score(cls, score: float) -> "RiskLevel":
        if score >= 70:
            return cls.CRITICAL
        if score >= 50:
            return cls.HIGH
        if score >= 30:
            return cls.MEDIUM
        return cls.LOW


@dataclass
class RiskAssessment:
    score: int
    level: RiskLevel
    factors: List[str] = field(default_factory=list)

    @property
    def is_high_risk(self) -> bool:
        return self.level in (RiskLevel.HIGH, RiskLevel.CRITICAL)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'level': self.level.value,
            'factors': list(self.factors),
        }


def clamp_score(score: float) -> int:
    return int(max(0, min(100, score)))


class RiskAssessor:
    """Scores project risk from budget, schedule, workload, quality and dependencies."""

    def assess(self, project: ProjectRecord, tasks: Sequence[TaskRecord],
               now: Optional[datetime] = None) -> RiskAssessment:
        now = now or now_utc()
        score = 0
        factors: List[str] = []

        for check in (self._budget, self._schedule, self._workload,
                      self._quality, self._dependencies):
            weight, message = check(project, tasks, now)
            if weight:
                score += weight
                factors.append(message)

        clamped = clamp_score(score)
        level = RiskLevel.from_score(clamped)
        logger.debug(f"Risk for {project.name!r}: {clamped} ({level.value})")
        return RiskAssessment(score=clamped, level=level, factors=factors)

    @staticmethod
    def _budget(project, tasks, now):
        if project.budget <= 0:
            return 0, None
        utilization = project.actual_cost / project.budget * 100
        if utilization > BUDGET_UTILIZATION_THRESHOLD:
            return BUDGET_WEIGHT, f"Budget utilization at {utilization:.1f}%"
        return 0, None

    @staticmethod
    def _schedule(project, tasks, now):
        duration = project.duration
        if duration == 0:
            return 0, None
        days_until_deadline = days_between(project.end_date, now)
        expected = 100 - (days_until_deadline / duration) * 100
        if project.progress < expected - SCHEDULE_TOLERANCE:
            return SCHEDULE_WEIGHT, (
                f"Behind schedule: {project.progress:g}% vs expected {expected:.1f}%"
            )
        return 0, None

    @staticmethod
    def _workload(project, tasks, now):
        active = sum(1 for t in tasks if t.is_active)
        per_member = safe_ratio(active, len(project.team))
        if per_member > WORKLOAD_THRESHOLD:
            return WORKLOAD_WEIGHT, f"High workload: {per_member:.1f} tasks per team member"
        return 0, None

    @staticmethod
    def _quality(project, tasks, now):
        bug_rate = safe_ratio(sum(1 for t in tasks if t.quality.bugs_found > 0), len(tasks))
        if bug_rate > BUG_RATE_THRESHOLD:
            return QUALITY_WEIGHT, f"High bug rate: {bug_rate * 100:.1f}% of tasks have bugs"
        return 0, None

    @staticmethod
    def _dependencies(project, tasks, now):
        dependency_rate = safe_ratio(sum(1 for t in tasks if t.dependencies), len(tasks))
        if dependency_rate > DEPENDENCY_RATE_THRESHOLD:
            return DEPENDENCY_WEIGHT, (
                f"High dependency risk: {dependency_rate * 100:.1f}% tasks have dependencies"
            )
        return 0, None
