"""
Metric and time range types.

A time range is either a symbolic tag (resolved against "today" at fetch
time) or an explicit start/end pair. Both serialize to the same JSON shape
the report snapshot stores: the tag as a plain string, the explicit range as
{"startDate": ..., "endDate": ...}.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Union


class MetricKind(enum.Enum):
    """Search analytics metrics available per query."""
    CLICKS = "clicks"
    IMPRESSIONS = "impressions"
    CTR = "ctr"
    POSITION = "position"


class PredefinedRange(enum.Enum):
    """Symbolic time ranges relative to the day of the fetch."""
    LAST_7_DAYS = "last7days"
    LAST_28_DAYS = "last28days"
    LAST_3_MONTHS = "last3months"


@dataclass(frozen=True)
class CustomRange:
    """Explicit calendar range, both ends inclusive, ISO 8601 dates."""
    start_date: str
    end_date: str

    def __str__(self) -> str:
        return f"{self.start_date} to {self.end_date}"


TimeRange = Union[PredefinedRange, CustomRange]


@dataclass(frozen=True)
class MetricKey:
    """Composite key of a reconciled cell: one metric in one time range."""
    metric: MetricKind
    time_range: TimeRange

    @property
    def data_key(self) -> str:
        return f"{self.metric.value}_{range_key(self.time_range)}"


def range_key(time_range: TimeRange) -> str:
    """Stable identifier for a time range, used in persisted metric keys."""
    if isinstance(time_range, PredefinedRange):
        return time_range.value
    return f"custom_{time_range.start_date}_{time_range.end_date}"


def parse_time_range(value: Any) -> TimeRange:
    """
    Build a TimeRange from its JSON form.

    Accepts a PredefinedRange/CustomRange as-is, a tag string, or a mapping
    with startDate/endDate (snake_case keys are accepted too). Date format
    is not validated here; the resolver does that at fetch time.
    """
    if isinstance(value, (PredefinedRange, CustomRange)):
        return value

    if isinstance(value, str):
        try:
            return PredefinedRange(value)
        except ValueError:
            raise ValueError(f"Unknown time range: {value!r}") from None

    if isinstance(value, dict):
        start = value.get("startDate", value.get("start_date"))
        end = value.get("endDate", value.get("end_date"))
        if start is None or end is None:
            raise ValueError(f"Custom time range needs startDate and endDate: {value!r}")
        return CustomRange(start_date=str(start), end_date=str(end))

    raise ValueError(f"Unsupported time range value: {value!r}")


def time_range_to_json(time_range: TimeRange) -> Union[str, Dict[str, str]]:
    """Inverse of parse_time_range."""
    if isinstance(time_range, PredefinedRange):
        return time_range.value
    return {"startDate": time_range.start_date, "endDate": time_range.end_date}
