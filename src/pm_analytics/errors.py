"""Exception hierarchy for PM Analytics."""

from typing import Any, Optional


class AnalyticsError(Exception):
    """Base class for all analytics failures."""


class InvalidArgumentError(AnalyticsError, ValueError):
    """Raised when a caller passes an unusable argument.
    
    Covers unknown report types and formats, unparseable dates and
    inverted date ranges. Raised before any record is read.
    """

    def __init__(self, message: str, field_name: Optional[str] = None, value: Any = None):
        self.field_name = field_name
        self.value = value
        super().__init__(message)


class NotFoundError(AnalyticsError, LookupError):
    """Raised when a referenced project or user cannot be resolved."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found: {entity_id}")


class SnapshotError(AnalyticsError):
    """Raised when a record snapshot file cannot be read or parsed."""
