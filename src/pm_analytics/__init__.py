"""PM Analytics - project completion forecasting, risk scoring and reporting."""

__version__ = "0.1.0"
__author__ = "PM Analytics Team"

from .domain import (
    ProjectRecord,
    TaskRecord,
    UserRecord,
)
from .errors import AnalyticsError, InvalidArgumentError, NotFoundError

__all__ = [
    "ProjectRecord",
    "TaskRecord",
    "UserRecord",
    "AnalyticsError",
    "InvalidArgumentError",
    "NotFoundError",
    "__version__",
]
