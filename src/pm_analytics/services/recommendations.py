"""
Resource Recommendation Engine

Flags workload imbalance across a project team and required skills the
team does not cover.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..domain import ProjectRecord, TaskRecord, UserRecord

OVERLOAD_FACTOR = 1.5
UNDERLOAD_FACTOR = 0.5


class RecommendationType(Enum):
    WORKLOAD_REDUCTION = "workload_reduction"
    WORKLOAD_INCREASE = "workload_increase"
    SKILL_GAP = "skill_gap"


class RecommendationPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class MemberLoad:
    user_id: str
    tasks: int
    hours: float
    allocation: float


@dataclass
class ResourceRecommendation:
    """A single staffing recommendation"""
    type: RecommendationType
    priority: RecommendationPriority
    message: str
    user_id: Optional[str] = None
    skills: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'type': self.type.value,
            'priority': self.priority.value,
            'message': self.message,
        }
        if self.user_id is not None:
            data['user_id'] = self.user_id
        if self.skills is not None:
            data['skills'] = list(self.skills)
        return data


class ResourceRecommender:
    """Analyzes team allocation and suggests staffing changes"""

    def recommend(self, project: ProjectRecord, tasks: Sequence[TaskRecord],
                  users: Optional[Mapping[str, UserRecord]] = None) -> List[ResourceRecommendation]:
        """Workload recommendations in team order, then the skill gap, if any."""
        recommendations = self._workload_recommendations(self.team_loads(project, tasks))

        skill_gap = self._skill_gap(project, users or {})
        if skill_gap is not None:
            recommendations.append(skill_gap)

        return recommendations

    @staticmethod
    def team_loads(project: ProjectRecord, tasks: Sequence[TaskRecord]) -> List[MemberLoad]:
        loads = []
        for member in project.team:
            member_tasks = [t for t in tasks if t.is_assigned_to(member.user_id)]
            loads.append(MemberLoad(
                user_id=member.user_id,
                tasks=len(member_tasks),
                hours=sum(t.actual_hours for t in member_tasks),
                allocation=member.allocation,
            ))
        return loads

    @staticmethod
    def _workload_recommendations(loads: List[MemberLoad]) -> List[ResourceRecommendation]:
        if not loads:
            return []

        avg_tasks = sum(load.tasks for load in loads) / len(loads)
        recommendations = []
        for load in loads:
            if load.tasks > avg_tasks * OVERLOAD_FACTOR:
                recommendations.append(ResourceRecommendation(
                    type=RecommendationType.WORKLOAD_REDUCTION,
                    priority=RecommendationPriority.HIGH,
                    message=(
                        f"Consider reducing workload for team member "
                        f"({load.tasks} tasks vs avg {avg_tasks:.1f})"
                    ),
                    user_id=load.user_id,
                ))
            elif load.tasks < avg_tasks * UNDERLOAD_FACTOR:
                recommendations.append(ResourceRecommendation(
                    type=RecommendationType.WORKLOAD_INCREASE,
                    priority=RecommendationPriority.MEDIUM,
                    message=(
                        f"Consider increasing workload for team member "
                        f"({load.tasks} tasks vs avg {avg_tasks:.1f})"
                    ),
                    user_id=load.user_id,
                ))
        return recommendations

    @staticmethod
    def _skill_gap(project: ProjectRecord,
                   users: Mapping[str, UserRecord]) -> Optional[ResourceRecommendation]:
        required = project.required_skills
        if not required:
            return None

        known = [users[uid] for uid in project.team_ids if uid in users]
        if known:
            team_skills = {skill.lower() for user in known for skill in user.skills}
            missing = [skill for skill in required if skill.lower() not in team_skills]
        else:
            # No skill data for the team; recommend everything required.
            missing = list(required)

        if not missing:
            return None

        return ResourceRecommendation(
            type=RecommendationType.SKILL_GAP,
            priority=RecommendationPriority.MEDIUM,
            message=f"Consider adding team members with skills: {', '.join(missing)}",
            skills=missing,
        )
