"""Report sessions and the fetch cycle."""

from .report_service import (
    SnapshotStore,
    DatabaseSnapshotStore,
    FetchSummary,
    PageView,
    ReportSession,
    SessionRegistry,
)

__all__ = [
    "SnapshotStore",
    "DatabaseSnapshotStore",
    "FetchSummary",
    "PageView",
    "ReportSession",
    "SessionRegistry",
]
