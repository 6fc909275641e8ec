"""
Report Service

Holds one report's working state (column layout + reconciled rows) and runs
the fetch cycle:

    requested ranges -> concurrent per-range fetch -> reconcile -> annotate -> save

A failed fetch leaves the previous rows and the stored snapshot untouched.
Classification problems never fail the cycle.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from ..aggregation import RowReconciler
from ..analyzer import AnnotationResult, IntentAnnotator
from ..collector import AnalyticsFetcher
from ..database import repository
from ..exceptions import AnalyticsFetchFailed, NoMetricsSelected
from ..layout import ColumnLayout, DEFAULT_MIN_SLOTS
from ..models import Block, ReconciledRow, ReportSnapshot
from ..reporter import (
    ExportScope,
    Pagination,
    display_headers,
    export_csv,
    render_display_row,
)

logger = logging.getLogger(__name__)


# =============================================================================
# SNAPSHOT STORE
# =============================================================================

class SnapshotStore(ABC):
    """Read and whole-replace persisted report snapshots."""

    @abstractmethod
    def load(self, report_id: UUID) -> ReportSnapshot:
        ...

    @abstractmethod
    def save(
        self,
        report_id: UUID,
        blocks: Sequence[Tuple[int, Block]],
        rows: Sequence[ReconciledRow],
        fetched_at: Optional[datetime] = None,
    ) -> None:
        ...


class DatabaseSnapshotStore(SnapshotStore):
    """Snapshot store backed by the SQLAlchemy repository."""

    def load(self, report_id: UUID) -> ReportSnapshot:
        return repository.load_snapshot(report_id)

    def save(self, report_id, blocks, rows, fetched_at=None) -> None:
        repository.save_snapshot(report_id, blocks, rows, fetched_at=fetched_at)


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class FetchSummary:
    """Outcome of one completed fetch cycle."""
    ranges: int
    fetched_rows: int
    queries: int
    missing_cells: int
    annotation: AnnotationResult
    fetched_at: datetime

    @property
    def classification_degraded(self) -> bool:
        return self.annotation.degraded


@dataclass
class PageView:
    """One rendered page of the report grid."""
    headers: List[str]
    rows: List[List[str]]
    page: int
    rows_per_page: int
    total_pages: int
    total_rows: int


# =============================================================================
# SESSION
# =============================================================================

class ReportSession:
    """
    In-memory working state of one report.

    Usage:
        session = ReportSession.load(report_id, DatabaseSnapshotStore())
        session.layout.append_column(block)
        summary = await session.fetch_data(fetcher, annotator)
        view = session.render_page(Pagination(page=1, rows_per_page=20))
    """

    def __init__(
        self,
        report_id: UUID,
        name: str,
        property: str,
        store: SnapshotStore,
        min_slots: int = DEFAULT_MIN_SLOTS,
    ):
        self.report_id = report_id
        self.name = name
        self.property = property
        self.store = store
        self.layout = ColumnLayout(min_slots=min_slots)
        self.rows: List[ReconciledRow] = []
        self.fetched_at: Optional[datetime] = None
        self.reconciler = RowReconciler()

    @classmethod
    def hydrate(
        cls,
        snapshot: ReportSnapshot,
        store: SnapshotStore,
        min_slots: int = DEFAULT_MIN_SLOTS,
    ) -> "ReportSession":
        """Rebuild a session from a persisted snapshot; block ids are regenerated."""
        session = cls(snapshot.id, snapshot.name, snapshot.property, store, min_slots=min_slots)
        dropped = session.layout.reconcile_with_persisted(snapshot.blocks)
        if dropped:
            logger.warning(f"Report {snapshot.id}: dropped {len(dropped)} duplicate blocks on load")
        session.rows = list(snapshot.rows)
        session.fetched_at = snapshot.fetched_at
        return session

    @classmethod
    def load(cls, report_id: UUID, store: SnapshotStore, min_slots: int = DEFAULT_MIN_SLOTS) -> "ReportSession":
        return cls.hydrate(store.load(report_id), store, min_slots=min_slots)

    def save(self, fetched_at: Optional[datetime] = None) -> None:
        """Persist layout and rows as a whole."""
        self.store.save(self.report_id, self.layout.snapshot(), self.rows, fetched_at=fetched_at)

    async def fetch_data(
        self,
        fetcher: AnalyticsFetcher,
        annotator: IntentAnnotator,
        row_limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> FetchSummary:
        """
        Run one fetch cycle and replace the rows.

        Raises:
            NoMetricsSelected: the layout holds no metric blocks
            InvalidRangeFormat: an explicit range is malformed
            AnalyticsFetchFailed: any range failed; nothing is replaced
        """
        ranges = self.layout.requested_ranges()
        if not ranges:
            raise NoMetricsSelected("Add at least one metric column before fetching data")

        try:
            fetched = await fetcher.fetch_ranges(self.property, ranges, row_limit=row_limit, today=today)
        except AnalyticsFetchFailed as e:
            logger.error(f"Fetch cycle for report {self.report_id} aborted: {e}")
            raise

        reconciled = self.reconciler.reconcile(fetched, self.layout.requested_keys())
        annotation = await annotator.annotate(reconciled)

        fetched_at = datetime.utcnow()
        self.rows = annotation.rows
        self.fetched_at = fetched_at
        self.save(fetched_at=fetched_at)

        stats = self.reconciler.last_stats
        return FetchSummary(
            ranges=len(ranges),
            fetched_rows=sum(len(rows) for rows in fetched.values()),
            queries=stats.queries,
            missing_cells=stats.missing_cells,
            annotation=annotation,
            fetched_at=fetched_at,
        )

    def render_page(self, pagination: Pagination) -> PageView:
        slots = self.layout.slots
        return PageView(
            headers=display_headers(slots),
            rows=[render_display_row(row, slots) for row in pagination.page_rows(self.rows)],
            page=pagination.page,
            rows_per_page=pagination.rows_per_page,
            total_pages=pagination.total_pages(len(self.rows)),
            total_rows=len(self.rows),
        )

    def export(self, scope: ExportScope = ExportScope.ALL, pagination: Optional[Pagination] = None) -> bytes:
        """CSV of the current rows; never fetches."""
        return export_csv(self.rows, self.layout.blocks, scope=scope, pagination=pagination)


class SessionRegistry:
    """One live ReportSession per report id."""

    def __init__(self, store: Optional[SnapshotStore] = None, min_slots: int = DEFAULT_MIN_SLOTS):
        self.store = store or DatabaseSnapshotStore()
        self.min_slots = min_slots
        self._sessions: Dict[UUID, ReportSession] = {}

    def get(self, report_id: UUID, reload: bool = False) -> ReportSession:
        """
        Live session for a report, hydrated from the store on first use or
        when reload is requested.

        Raises:
            ReportNotFound: no such report
        """
        if reload or report_id not in self._sessions:
            self._sessions[report_id] = ReportSession.load(report_id, self.store, min_slots=self.min_slots)
        return self._sessions[report_id]

    def discard(self, report_id: UUID) -> None:
        self._sessions.pop(report_id, None)

    def __contains__(self, report_id: UUID) -> bool:
        return report_id in self._sessions
