"""
Export System for PM Analytics

Serializes analytics payloads to JSON or flat CSV. Any payload exposing
``to_dict()``, ``summary_fields()``, ``detail_rows()`` and
``detail_columns`` can be exported.
"""

import csv
import json
from abc import ABC, abstractmethod
from enum import Enum
from io import StringIO
from typing import Any, Dict, Sequence


class ExportFormat(Enum):
    """Supported export formats"""
    JSON = "json"
    CSV = "csv"


def _cell(value: Any) -> Any:
    """Flatten one value into a CSV cell."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set)):
        return ';'.join(str(_cell(v)) for v in value)
    if isinstance(value, dict):
        return ';'.join(f"{k}={_cell(v)}" for k, v in value.items())
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return value


class BaseExporter(ABC):
    """Abstract base class for exporters"""

    @abstractmethod
    def export(self, payload: Any, **kwargs) -> str:
        """Export a payload to string format"""

    @abstractmethod
    def get_file_extension(self) -> str:
        """Get recommended file extension"""

    @abstractmethod
    def get_content_type(self) -> str:
        """Media type for HTTP responses"""


class JSONExporter(BaseExporter):
    """Export to JSON format"""

    def export(self, payload: Any, **kwargs) -> str:
        indent = kwargs.get('indent', 2)
        data = payload.to_dict() if hasattr(payload, 'to_dict') else payload
        return json.dumps(data, indent=indent, ensure_ascii=False, default=str)

    def get_file_extension(self) -> str:
        return "json"

    def get_content_type(self) -> str:
        return "application/json"


class CSVExporter(BaseExporter):
    """Export to CSV format.
    
    Layout: one ``field,value`` row per summary field, a blank line, then
    a header row and one row per detail entry.
    """

    def export(self, payload: Any, **kwargs) -> str:
        delimiter = kwargs.get('delimiter', ',')
        output = StringIO()
        writer = csv.writer(output, delimiter=delimiter, lineterminator='\n')

        writer.writerow(['field', 'value'])
        for key, value in payload.summary_fields().items():
            writer.writerow([key, _cell(value)])

        columns: Sequence[str] = payload.detail_columns
        writer.writerow([])
        writer.writerow(list(columns))
        for row in payload.detail_rows():
            writer.writerow([_cell(row.get(column)) for column in columns])

        return output.getvalue()

    def get_file_extension(self) -> str:
        return "csv"

    def get_content_type(self) -> str:
        return "text/csv"


EXPORTERS: Dict[ExportFormat, BaseExporter] = {
    ExportFormat.JSON: JSONExporter(),
    ExportFormat.CSV: CSVExporter(),
}


def get_exporter(export_format: ExportFormat) -> BaseExporter:
    return EXPORTERS[export_format]


def export_payload(payload: Any, export_format: ExportFormat, **kwargs) -> str:
    """Serialize ``payload`` in the requested format."""
    return get_exporter(export_format).export(payload, **kwargs)
