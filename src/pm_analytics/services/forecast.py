"""Project completion forecasting from historical task velocity."""

import logging
import statistics
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..domain import ProjectRecord, TaskRecord, TaskStatus
from ..utils.datetime import add_days, days_between, now_utc, to_iso_string

logger = logging.getLogger(__name__)

DEFAULT_TASK_DURATION_DAYS = 3.0
# Velocity used before the project has started by clock time.
UNSTARTED_VELOCITY = 0.5
MIN_VELOCITY = 0.1
OPTIMISTIC_FACTOR = 1.5
PESSIMISTIC_FACTOR = 0.7


@dataclass
class CompletionForecast:
    """Project completion forecast"""
    predicted_completion: datetime
    velocity: float  # tasks per day
    average_task_duration: float  # days
    completed_tasks: int
    in_progress_tasks: int
    remaining_tasks: int
    estimated_days_to_complete: float
    optimistic_date: datetime
    pessimistic_date: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'predicted_completion': to_iso_string(self.predicted_completion),
            'velocity': self.velocity,
            'average_task_duration': self.average_task_duration,
            'completed_tasks': self.completed_tasks,
            'in_progress_tasks': self.in_progress_tasks,
            'remaining_tasks': self.remaining_tasks,
            'estimated_days_to_complete': self.estimated_days_to_complete,
            'optimistic_date': to_iso_string(self.optimistic_date),
            'pessimistic_date': to_iso_string(self.pessimistic_date),
        }


class CompletionPredictor:
    """Heuristic completion-date forecaster.
    
    The forecast always returns a date. With nothing left to do it returns
    the project's recorded end date unchanged.
    """

    def predict_completion(self, project: ProjectRecord, tasks: Sequence[TaskRecord],
                           now: Optional[datetime] = None) -> datetime:
        return self.forecast(project, tasks, now).predicted_completion

    def forecast(self, project: ProjectRecord, tasks: Sequence[TaskRecord],
                 now: Optional[datetime] = None) -> CompletionForecast:
        now = now or now_utc()

        completed = [t for t in tasks if t.status == TaskStatus.COMPLETED]
        in_progress = [t for t in tasks if t.status == TaskStatus.IN_PROGRESS]
        remaining = [t for t in tasks if t.is_active]

        avg_duration = self.average_task_duration(completed)
        velocity = self.velocity(project, len(completed), now)

        if not remaining:
            return CompletionForecast(
                predicted_completion=project.end_date,
                velocity=velocity,
                average_task_duration=avg_duration,
                completed_tasks=len(completed),
                in_progress_tasks=len(in_progress),
                remaining_tasks=0,
                estimated_days_to_complete=0.0,
                optimistic_date=project.end_date,
                pessimistic_date=project.end_date,
            )

        effective = max(velocity, MIN_VELOCITY)
        days_to_complete = len(remaining) / effective
        logger.debug(
            f"Forecast for {project.name!r}: {len(remaining)} remaining at "
            f"{effective:.2f} tasks/day -> {days_to_complete:.1f} days"
        )

        return CompletionForecast(
            predicted_completion=add_days(now, days_to_complete),
            velocity=velocity,
            average_task_duration=avg_duration,
            completed_tasks=len(completed),
            in_progress_tasks=len(in_progress),
            remaining_tasks=len(remaining),
            estimated_days_to_complete=days_to_complete,
            optimistic_date=add_days(now, len(remaining) / (effective * OPTIMISTIC_FACTOR)),
            pessimistic_date=add_days(now, len(remaining) / (effective * PESSIMISTIC_FACTOR)),
        )

    @staticmethod
    def average_task_duration(completed: Sequence[TaskRecord]) -> float:
        """Mean positive start-to-completion span in whole days."""
        durations = [
            days_between(t.completed_date, t.start_date)
            for t in completed
            if t.start_date and t.completed_date
        ]
        durations = [d for d in durations if d > 0]
        if not durations:
            return DEFAULT_TASK_DURATION_DAYS
        return statistics.mean(durations)

    @staticmethod
    def velocity(project: ProjectRecord, completed_count: int, now: datetime) -> float:
        """Completed tasks per elapsed day since project start."""
        days_since_start = days_between(now, project.start_date)
        if days_since_start > 0:
            return completed_count / days_since_start
        return UNSTARTED_VELOCITY
