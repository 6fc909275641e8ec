"""
Error taxonomy for the report builder.

Fetch-path errors abort a whole fetch cycle. Layout errors reject a single
column edit and leave the layout untouched. Classification problems are not
errors at all; see AnnotationResult.
"""

from typing import Any, Optional


class ReportBuilderError(Exception):
    """Base class for all report builder errors."""


class InvalidRangeFormat(ReportBuilderError, ValueError):
    """An explicit time range is not a valid YYYY-MM-DD pair."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value


class AnalyticsFetchFailed(ReportBuilderError):
    """One time range could not be fetched; the whole cycle is aborted."""

    def __init__(self, time_range: Any, cause: Optional[BaseException] = None):
        super().__init__(f"Analytics fetch failed for {time_range}: {cause}")
        self.time_range = time_range
        self.cause = cause


class NoMetricsSelected(ReportBuilderError):
    """A fetch was requested but the layout holds no metric blocks."""


class ReportNotFound(ReportBuilderError):
    """No persisted report with the given id."""


class ExportEmpty(ReportBuilderError):
    """Export was attempted with no rows to write."""


# =============================================================================
# LAYOUT ERRORS
# =============================================================================

class LayoutError(ReportBuilderError):
    """A column edit was rejected."""


class DuplicateMetric(LayoutError):
    """The (metric, time range) pair is already shown in another column."""


class SlotOccupied(LayoutError):
    """The target column already holds a block."""


class SlotOutOfRange(LayoutError, IndexError):
    """The target column index does not exist."""


class BlockNotFound(LayoutError):
    """No column holds a block with the given id."""


class LastColumnError(LayoutError):
    """The last remaining column cannot be deleted."""
