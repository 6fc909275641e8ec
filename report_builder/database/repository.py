"""
Report Repository

Persistence for saved reports. A snapshot (blocks + reconciled rows) is
always written as a whole: the previous blocks and rows are deleted and the
new ones inserted in the same transaction. The later write wins.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from .models import Report, ReportBlock, QueryRow
from .session import get_db_context
from ..exceptions import ReportNotFound
from ..models import (
    Block,
    ReconciledRow,
    ReportSnapshot,
    block_from_dict,
    block_to_dict,
)

logger = logging.getLogger(__name__)


# =============================================================================
# REPORTS
# =============================================================================

def create_report(name: str, property: str) -> ReportSnapshot:
    """Create an empty report."""
    with get_db_context() as db:
        report = Report(name=name, property=property)
        db.add(report)
        db.flush()

        logger.info(f"Created report {report.id} ({name!r}) for {property}")
        return ReportSnapshot(
            id=report.id,
            name=report.name,
            property=report.property,
            created_at=report.created_at,
            updated_at=report.updated_at,
        )


def list_reports(property: Optional[str] = None) -> List[Dict[str, Any]]:
    """Report summaries, newest first, optionally for one property."""
    with get_db_context() as db:
        query = db.query(Report)
        if property is not None:
            query = query.filter(Report.property == property)
        reports = query.order_by(Report.created_at.desc()).all()
        return [_report_to_dict(r) for r in reports]


def rename_report(report_id: UUID, name: str) -> None:
    with get_db_context() as db:
        report = _get_report(db, report_id)
        report.name = name
        report.updated_at = datetime.utcnow()


def delete_report(report_id: UUID) -> None:
    """Delete a report with its blocks and rows."""
    with get_db_context() as db:
        report = _get_report(db, report_id)
        db.delete(report)
        logger.info(f"Deleted report {report_id}")


# =============================================================================
# SNAPSHOTS
# =============================================================================

def load_snapshot(report_id: UUID) -> ReportSnapshot:
    """
    Load a report with its blocks and rows.

    Raises:
        ReportNotFound: no such report
    """
    with get_db_context() as db:
        report = _get_report(db, report_id)
        return ReportSnapshot(
            id=report.id,
            name=report.name,
            property=report.property,
            blocks=[(b.position, _block_from_model(b)) for b in report.blocks],
            rows=[_row_from_model(r) for r in report.rows],
            created_at=report.created_at,
            updated_at=report.updated_at,
            fetched_at=report.fetched_at,
        )


def save_snapshot(
    report_id: UUID,
    blocks: Sequence[Tuple[int, Block]],
    rows: Sequence[ReconciledRow],
    fetched_at: Optional[datetime] = None,
) -> None:
    """
    Replace a report's blocks and rows.

    Args:
        report_id: Report to write
        blocks: (slot position, block) pairs
        rows: Reconciled rows in display order
        fetched_at: Set when the rows come from a new fetch cycle
    """
    with get_db_context() as db:
        report = _get_report(db, report_id)

        db.query(ReportBlock).filter(ReportBlock.report_id == report_id).delete(synchronize_session=False)
        db.query(QueryRow).filter(QueryRow.report_id == report_id).delete(synchronize_session=False)
        db.flush()

        db.add_all([_block_to_model(report_id, position, block) for position, block in blocks])
        db.add_all([_row_to_model(report_id, position, row) for position, row in enumerate(rows)])

        report.updated_at = datetime.utcnow()
        if fetched_at is not None:
            report.fetched_at = fetched_at

        logger.info(f"Saved report {report_id}: {len(blocks)} blocks, {len(rows)} rows")


# =============================================================================
# CONVERSIONS
# =============================================================================

def _get_report(db, report_id: UUID) -> Report:
    report = db.get(Report, report_id)
    if report is None:
        raise ReportNotFound(f"Report {report_id} not found")
    return report


def _report_to_dict(r: Report) -> Dict[str, Any]:
    return {
        "id": r.id,
        "name": r.name,
        "property": r.property,
        "created_at": r.created_at,
        "updated_at": r.updated_at,
        "fetched_at": r.fetched_at,
    }


def _block_to_model(report_id: UUID, position: int, block: Block) -> ReportBlock:
    data = block_to_dict(block)
    return ReportBlock(
        report_id=report_id,
        position=position,
        block_id=data["id"],
        block_type=data["type"],
        metric=data.get("metric"),
        time_range=data.get("timeRange"),
    )


def _block_from_model(b: ReportBlock) -> Block:
    data = {"id": b.block_id, "type": b.block_type}
    if b.block_type == "metric":
        data["metric"] = b.metric
        data["timeRange"] = b.time_range
    return block_from_dict(data)


def _row_to_model(report_id: UUID, position: int, row: ReconciledRow) -> QueryRow:
    data = row.to_dict()
    return QueryRow(
        report_id=report_id,
        position=position,
        query=data["query"],
        metrics=data["metrics"],
        metric_keys=data["keys"],
        intent=data["intent"],
        category=data["category"],
    )


def _row_from_model(r: QueryRow) -> ReconciledRow:
    return ReconciledRow.from_dict({
        "query": r.query,
        "metrics": r.metrics,
        "keys": r.metric_keys,
        "intent": r.intent,
        "category": r.category,
    })
