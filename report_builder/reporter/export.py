"""
CSV Export and Pagination

Exports reconciled rows from memory; nothing here triggers a fetch. The file
is UTF-8 with a byte-order mark and every field quoted, which is what
spreadsheet importers handle most reliably.
"""

import csv
import enum
import io
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..exceptions import ExportEmpty
from ..models import Block, ReconciledRow
from .formatter import export_headers, render_export_row

logger = logging.getLogger(__name__)

CSV_FILENAME = "gsc-report.csv"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"

ROWS_PER_PAGE_OPTIONS = (10, 20, 50, 100)


class ExportScope(enum.Enum):
    CURRENT_PAGE = "current"
    ALL = "all"


@dataclass(frozen=True)
class Pagination:
    """1-based page over reconciled rows."""
    page: int = 1
    rows_per_page: int = 10

    def __post_init__(self):
        if self.rows_per_page not in ROWS_PER_PAGE_OPTIONS:
            raise ValueError(
                f"rows_per_page must be one of {ROWS_PER_PAGE_OPTIONS}, got {self.rows_per_page}"
            )
        if self.page < 1:
            raise ValueError(f"page must be at least 1, got {self.page}")

    def total_pages(self, total_rows: int) -> int:
        return max(1, math.ceil(total_rows / self.rows_per_page))

    def page_rows(self, rows: Sequence[ReconciledRow]) -> List[ReconciledRow]:
        start = (self.page - 1) * self.rows_per_page
        return list(rows[start:start + self.rows_per_page])


def export_csv(
    rows: Sequence[ReconciledRow],
    blocks: Sequence[Block],
    scope: ExportScope = ExportScope.ALL,
    pagination: Optional[Pagination] = None,
) -> bytes:
    """
    Render rows to CSV bytes.

    Args:
        rows: Reconciled rows in display order
        blocks: Non-empty blocks in slot order
        scope: Current page only, or every row
        pagination: Page to export when scope is CURRENT_PAGE

    Raises:
        ExportEmpty: nothing to export
    """
    if scope is ExportScope.CURRENT_PAGE:
        selected = (pagination or Pagination()).page_rows(rows)
    else:
        selected = list(rows)

    if not selected:
        raise ExportEmpty("No rows to export. Fetch data first.")

    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL)
    writer.writerow(export_headers(blocks))
    for row in selected:
        writer.writerow(render_export_row(row, blocks))

    logger.info(f"Exported {len(selected)} rows ({scope.value}) with {len(blocks)} blocks")
    return output.getvalue().encode("utf-8-sig")
