"""
Time Range Resolver

Turns a TimeRange into concrete start/end dates for a Search Console query.
Symbolic ranges end today and start a fixed number of days back; "last 3
months" is 90 days, not calendar-month arithmetic, so resolved windows stay
the same length whatever the month.
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Optional

from ..exceptions import InvalidRangeFormat
from ..models import CustomRange, PredefinedRange, TimeRange

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

RANGE_OFFSET_DAYS: Dict[PredefinedRange, int] = {
    PredefinedRange.LAST_7_DAYS: 7,
    PredefinedRange.LAST_28_DAYS: 28,
    PredefinedRange.LAST_3_MONTHS: 90,
}

RANGE_DESCRIPTIONS: Dict[PredefinedRange, str] = {
    PredefinedRange.LAST_7_DAYS: "Last 7 Days",
    PredefinedRange.LAST_28_DAYS: "Last 28 Days",
    PredefinedRange.LAST_3_MONTHS: "Last 3 Months",
}

RANGE_SHORT_LABELS: Dict[PredefinedRange, str] = {
    PredefinedRange.LAST_7_DAYS: "L7D",
    PredefinedRange.LAST_28_DAYS: "L28D",
    PredefinedRange.LAST_3_MONTHS: "L3M",
}


@dataclass(frozen=True)
class ResolvedRange:
    """Concrete dates sent to Search Console."""
    start_date: str
    end_date: str


def resolve_time_range(time_range: TimeRange, today: Optional[date] = None) -> ResolvedRange:
    """
    Resolve a time range to ISO start/end dates.

    Args:
        time_range: Symbolic tag or explicit range
        today: Reference day for symbolic ranges (defaults to date.today())

    Returns:
        ResolvedRange with YYYY-MM-DD strings

    Raises:
        InvalidRangeFormat: explicit range with malformed or inverted dates
    """
    if isinstance(time_range, PredefinedRange):
        today = today or date.today()
        start = today - timedelta(days=RANGE_OFFSET_DAYS[time_range])
        return ResolvedRange(start_date=start.isoformat(), end_date=today.isoformat())

    if isinstance(time_range, CustomRange):
        start = _parse_iso_date(time_range.start_date)
        end = _parse_iso_date(time_range.end_date)
        if start > end:
            raise InvalidRangeFormat(
                f"Start date {time_range.start_date} is after end date {time_range.end_date}",
                value=time_range,
            )
        return ResolvedRange(start_date=time_range.start_date, end_date=time_range.end_date)

    raise InvalidRangeFormat(f"Unsupported time range: {time_range!r}", value=time_range)


def _parse_iso_date(value: str) -> date:
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
        raise InvalidRangeFormat(f"Expected YYYY-MM-DD, got {value!r}", value=value)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidRangeFormat(f"Not a calendar date: {value!r}", value=value) from None


def describe_time_range(time_range: TimeRange) -> str:
    """Human-readable range, e.g. "Last 28 Days" or "2024-01-01 to 2024-01-31"."""
    if isinstance(time_range, PredefinedRange):
        return RANGE_DESCRIPTIONS[time_range]
    return f"{time_range.start_date} to {time_range.end_date}"


def short_range_label(time_range: TimeRange) -> str:
    """Short label used in column headers."""
    if isinstance(time_range, PredefinedRange):
        return RANGE_SHORT_LABELS[time_range]
    return "Custom"
