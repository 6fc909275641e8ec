"""
Cell formatting shared by the on-screen grid and CSV export.

- clicks / impressions: grouped integer ("125,000")
- ctr: percentage with two decimals ("5.34%")
- position: one decimal ("3.0")
- no data: "-"
"""

from typing import List, Optional, Sequence, Union

from ..collector.time_range import short_range_label
from ..models import (
    NO_DATA,
    Block,
    CellValue,
    IntentBlock,
    MetricBlock,
    MetricKind,
    ReconciledRow,
)

PLACEHOLDER = "-"
EMPTY_SLOT_HEADER = "Drop metric here"
QUERY_HEADER = "Query"
INTENT_HEADERS = ("Intent", "Category")

METRIC_LABELS = {
    MetricKind.CLICKS: "Clicks",
    MetricKind.IMPRESSIONS: "Impressions",
    MetricKind.CTR: "CTR",
    MetricKind.POSITION: "Position",
}


def format_metric_value(metric: MetricKind, value: Union[CellValue, None]) -> str:
    """Format one metric cell."""
    if value is None or value is NO_DATA:
        return PLACEHOLDER

    if metric is MetricKind.CTR:
        return f"{value * 100:.2f}%"
    if metric is MetricKind.POSITION:
        return f"{value:.1f}"

    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


def column_labels(block: Block) -> List[str]:
    """Header label(s) a block contributes; the intent block spans two."""
    if isinstance(block, MetricBlock):
        return [f"{METRIC_LABELS[block.metric]} ({short_range_label(block.time_range)})"]
    if isinstance(block, IntentBlock):
        return list(INTENT_HEADERS)
    raise TypeError(f"Unknown block type: {type(block).__name__}")


def render_cells(row: ReconciledRow, block: Optional[Block]) -> List[str]:
    """Cells a block contributes to one row; an empty slot gives one placeholder."""
    if block is None:
        return [PLACEHOLDER]
    if isinstance(block, MetricBlock):
        return [format_metric_value(block.metric, row.get(block.key))]
    if isinstance(block, IntentBlock):
        if row.intent is None:
            return [PLACEHOLDER, PLACEHOLDER]
        return [row.intent.description, row.intent.category]
    raise TypeError(f"Unknown block type: {type(block).__name__}")


def display_headers(slots: Sequence[Optional[Block]]) -> List[str]:
    """Grid header: query column, then every slot including empty ones."""
    headers = [QUERY_HEADER]
    for block in slots:
        headers.extend(column_labels(block) if block is not None else [EMPTY_SLOT_HEADER])
    return headers


def render_display_row(row: ReconciledRow, slots: Sequence[Optional[Block]]) -> List[str]:
    cells = [row.query]
    for block in slots:
        cells.extend(render_cells(row, block))
    return cells


def export_headers(blocks: Sequence[Block]) -> List[str]:
    """CSV header: query column, then non-empty blocks only."""
    headers = [QUERY_HEADER]
    for block in blocks:
        headers.extend(column_labels(block))
    return headers


def render_export_row(row: ReconciledRow, blocks: Sequence[Block]) -> List[str]:
    cells = [row.query]
    for block in blocks:
        cells.extend(render_cells(row, block))
    return cells
