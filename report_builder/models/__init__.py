"""
GSC Report Builder - Data Models

Shared domain types used across collector, aggregation, layout and reporter.
"""

from .metrics import (
    MetricKind,
    PredefinedRange,
    CustomRange,
    TimeRange,
    MetricKey,
    range_key,
    parse_time_range,
    time_range_to_json,
)
from .blocks import (
    MetricBlock,
    IntentBlock,
    Block,
    new_block_id,
    block_to_dict,
    block_from_dict,
)
from .rows import (
    NO_DATA,
    CellValue,
    IntentCategory,
    DEFAULT_INTENT_DESCRIPTION,
    QueryIntent,
    AnalyticsRow,
    ReconciledRow,
)
from .report import ReportSnapshot

__all__ = [
    # Metrics and ranges
    "MetricKind",
    "PredefinedRange",
    "CustomRange",
    "TimeRange",
    "MetricKey",
    "range_key",
    "parse_time_range",
    "time_range_to_json",
    # Blocks
    "MetricBlock",
    "IntentBlock",
    "Block",
    "new_block_id",
    "block_to_dict",
    "block_from_dict",
    # Rows
    "NO_DATA",
    "CellValue",
    "IntentCategory",
    "DEFAULT_INTENT_DESCRIPTION",
    "QueryIntent",
    "AnalyticsRow",
    "ReconciledRow",
    # Snapshot
    "ReportSnapshot",
]
