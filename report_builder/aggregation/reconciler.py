"""
Row Reconciler

Merges per-range analytics rows into one row per distinct query.

Rules:
- The query set is the union across all ranges, in order of first
  appearance (ranges in request order, rows in API order). Not sorted.
- Queries match by exact string. "Shoes" and "shoes" are two rows; callers
  that want normalization must normalize before reconciling.
- Every requested (metric, range) cell is present on every row. A query
  missing from a range gets NO_DATA for that range, never 0.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..models import (
    NO_DATA,
    AnalyticsRow,
    MetricKey,
    MetricKind,
    ReconciledRow,
    TimeRange,
)

logger = logging.getLogger(__name__)


@dataclass
class ReconcileStats:
    """Counts describing one reconciliation."""
    ranges: int = 0
    queries: int = 0
    cells: int = 0
    missing_cells: int = 0
    rows_per_range: Dict[str, int] = field(default_factory=dict)


class RowReconciler:
    """
    Builds ReconciledRow objects from per-range AnalyticsRow sequences.

    Usage:
        reconciler = RowReconciler()
        rows = reconciler.reconcile(fetched, keys)
        reconciler.last_stats.missing_cells
    """

    def __init__(self):
        self.last_stats: Optional[ReconcileStats] = None

    def reconcile(
        self,
        fetched: Mapping[TimeRange, Iterable[AnalyticsRow]],
        keys: Optional[Sequence[MetricKey]] = None,
    ) -> List[ReconciledRow]:
        """
        Reconcile fetched ranges.

        Args:
            fetched: Rows per time range, in request order
            keys: (metric, range) cells to fill on every row. Defaults to
                every metric for every fetched range.

        Returns:
            One ReconciledRow per distinct query
        """
        # Materialize once; fetch results may be one-shot iterators
        per_range: Dict[TimeRange, List[AnalyticsRow]] = {
            time_range: list(rows) for time_range, rows in fetched.items()
        }

        if keys is None:
            keys = default_metric_keys(per_range.keys())
        keys = list(dict.fromkeys(keys))

        # First row wins if the source repeats a query within one range
        indexes: Dict[TimeRange, Dict[str, AnalyticsRow]] = {}
        for time_range, rows in per_range.items():
            index: Dict[str, AnalyticsRow] = {}
            for row in rows:
                index.setdefault(row.query, row)
            indexes[time_range] = index

        queries: Dict[str, None] = {}
        for rows in per_range.values():
            for row in rows:
                queries.setdefault(row.query, None)

        stats = ReconcileStats(
            ranges=len(per_range),
            queries=len(queries),
            rows_per_range={str(time_range): len(rows) for time_range, rows in per_range.items()},
        )

        reconciled: List[ReconciledRow] = []
        for query in queries:
            metrics = {}
            for key in keys:
                source = indexes.get(key.time_range, {}).get(query)
                if source is None:
                    metrics[key] = NO_DATA
                    stats.missing_cells += 1
                else:
                    metrics[key] = source.value(key.metric)
                stats.cells += 1
            reconciled.append(ReconciledRow(query=query, metrics=metrics))

        self.last_stats = stats
        logger.info(
            f"Reconciled {stats.queries} queries across {stats.ranges} ranges "
            f"({stats.missing_cells}/{stats.cells} cells without data)"
        )
        return reconciled


def default_metric_keys(time_ranges: Iterable[TimeRange]) -> List[MetricKey]:
    """Every metric for every range, range-major."""
    return [
        MetricKey(metric, time_range)
        for time_range in time_ranges
        for metric in MetricKind
    ]


def reconcile_rows(
    fetched: Mapping[TimeRange, Iterable[AnalyticsRow]],
    keys: Optional[Sequence[MetricKey]] = None,
) -> List[ReconciledRow]:
    """Convenience wrapper around RowReconciler.reconcile."""
    return RowReconciler().reconcile(fetched, keys)
