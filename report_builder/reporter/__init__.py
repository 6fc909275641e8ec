"""
Report Rendering Module

Components:
- formatter: per-metric cell formatting and column labels
- export: CSV export and pagination
"""

from .formatter import (
    PLACEHOLDER,
    EMPTY_SLOT_HEADER,
    format_metric_value,
    column_labels,
    render_cells,
    display_headers,
    render_display_row,
    export_headers,
    render_export_row,
)
from .export import (
    CSV_FILENAME,
    CSV_MEDIA_TYPE,
    ROWS_PER_PAGE_OPTIONS,
    ExportScope,
    Pagination,
    export_csv,
)

__all__ = [
    "PLACEHOLDER",
    "EMPTY_SLOT_HEADER",
    "format_metric_value",
    "column_labels",
    "render_cells",
    "display_headers",
    "render_display_row",
    "export_headers",
    "render_export_row",
    "CSV_FILENAME",
    "CSV_MEDIA_TYPE",
    "ROWS_PER_PAGE_OPTIONS",
    "ExportScope",
    "Pagination",
    "export_csv",
]
