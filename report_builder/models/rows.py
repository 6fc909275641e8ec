"""
Analytics and reconciled row types.

NO_DATA marks a (metric, range) cell for a query that did not appear in that
range. It is distinct from 0, which is a real metric value.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .metrics import MetricKey, MetricKind, parse_time_range, time_range_to_json


class _NoData:
    """Singleton marker for an absent metric cell."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DATA"

    def __bool__(self) -> bool:
        return False


NO_DATA = _NoData()

CellValue = Union[int, float, _NoData]


class IntentCategory(enum.Enum):
    """Search intent categories the classifier may return."""
    INFORMATIONAL = "Informational"
    NAVIGATIONAL = "Navigational"
    TRANSACTIONAL = "Transactional"
    COMMERCIAL_INVESTIGATION = "Commercial Investigation"
    UNKNOWN = "Unknown"


DEFAULT_INTENT_DESCRIPTION = "Unable to determine intent"


@dataclass(frozen=True)
class QueryIntent:
    """Classified intent of a single query."""
    description: str
    category: str

    @classmethod
    def default(cls) -> "QueryIntent":
        return cls(description=DEFAULT_INTENT_DESCRIPTION, category=IntentCategory.UNKNOWN.value)

    @property
    def is_default(self) -> bool:
        return self == QueryIntent.default()


@dataclass(frozen=True)
class AnalyticsRow:
    """One query's metrics for one time range, as returned by Search Console."""
    query: str
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float = 0.0

    def value(self, metric: MetricKind) -> Union[int, float]:
        return getattr(self, metric.value)


@dataclass
class ReconciledRow:
    """One query across every requested (metric, range) pair."""
    query: str
    metrics: Dict[MetricKey, CellValue] = field(default_factory=dict)
    intent: Optional[QueryIntent] = None

    def get(self, key: MetricKey) -> CellValue:
        return self.metrics.get(key, NO_DATA)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize for the snapshot store.

        Metric keys flatten to "<metric>_<range_key>"; the key list is kept
        alongside so the composite keys can be rebuilt exactly.
        """
        return {
            "query": self.query,
            "metrics": {
                key.data_key: (None if value is NO_DATA else value)
                for key, value in self.metrics.items()
            },
            "keys": [
                {"metric": key.metric.value, "timeRange": time_range_to_json(key.time_range)}
                for key in self.metrics
            ],
            "intent": self.intent.description if self.intent else None,
            "category": self.intent.category if self.intent else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReconciledRow":
        values = data.get("metrics") or {}
        metrics: Dict[MetricKey, CellValue] = {}
        for entry in data.get("keys") or []:
            key = MetricKey(MetricKind(entry["metric"]), parse_time_range(entry["timeRange"]))
            value = values.get(key.data_key)
            metrics[key] = NO_DATA if value is None else value

        intent = None
        if data.get("intent") is not None or data.get("category") is not None:
            intent = QueryIntent(
                description=data.get("intent") or DEFAULT_INTENT_DESCRIPTION,
                category=data.get("category") or IntentCategory.UNKNOWN.value,
            )

        return cls(query=data["query"], metrics=metrics, intent=intent)
