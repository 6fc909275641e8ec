"""Persisted report snapshot."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from .blocks import Block
from .rows import ReconciledRow


@dataclass
class ReportSnapshot:
    """
    Everything needed to redraw a report without re-fetching.

    blocks holds (slot position, block) pairs in slot order; rows are in
    reconciled order.
    """
    id: UUID
    name: str
    property: str
    blocks: List[Tuple[int, Block]] = field(default_factory=list)
    rows: List[ReconciledRow] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    fetched_at: Optional[datetime] = None
