"""
GSC Report Builder - Data Collection Package

Handles everything between a requested time range and normalized rows:
- Time range resolution (symbolic tags to concrete dates)
- Search Console HTTP client
- Per-range fetching with all-or-nothing failure semantics
"""

from .client import SearchConsoleClient, SearchConsoleError, RetryConfig
from .fetcher import (
    AnalyticsFetcher,
    DEFAULT_ROW_LIMIT,
    MAX_ROW_LIMIT,
    normalize_rows,
    validate_row_limit,
)
from .time_range import (
    ResolvedRange,
    resolve_time_range,
    describe_time_range,
    short_range_label,
)

__all__ = [
    # Client
    "SearchConsoleClient",
    "SearchConsoleError",
    "RetryConfig",

    # Fetcher
    "AnalyticsFetcher",
    "DEFAULT_ROW_LIMIT",
    "MAX_ROW_LIMIT",
    "normalize_rows",
    "validate_row_limit",

    # Time ranges
    "ResolvedRange",
    "resolve_time_range",
    "describe_time_range",
    "short_range_label",
]
