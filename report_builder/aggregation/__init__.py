"""Row reconciliation across time ranges."""

from .reconciler import (
    RowReconciler,
    ReconcileStats,
    default_metric_keys,
    reconcile_rows,
)

__all__ = [
    "RowReconciler",
    "ReconcileStats",
    "default_metric_keys",
    "reconcile_rows",
]
