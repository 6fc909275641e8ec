"""
Column Layout Manager

The report grid is a sparse row of slots. Each slot either holds a block or
is empty, and the same (metric, time range) may be shown in at most one slot.

State is kept as two synchronized views:
- _slots: ordered list of block ids (None for an empty slot)
- _blocks: block id -> Block

Every command either succeeds completely or raises a LayoutError with the
layout unchanged.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from ..exceptions import (
    BlockNotFound,
    DuplicateMetric,
    LastColumnError,
    SlotOccupied,
    SlotOutOfRange,
)
from ..models import (
    Block,
    IntentBlock,
    MetricBlock,
    MetricKey,
    TimeRange,
    new_block_id,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_SLOTS = 3


class ColumnLayout:
    """
    Ordered, sparse column layout for one report.

    Usage:
        layout = ColumnLayout()
        placed = layout.insert_at(MetricBlock("", MetricKind.CLICKS, PredefinedRange.LAST_7_DAYS), 0)
        layout.append_column(IntentBlock(""))
        layout.remove(placed.id, compact=True)
    """

    def __init__(self, min_slots: int = DEFAULT_MIN_SLOTS):
        if min_slots < 1:
            raise ValueError("min_slots must be at least 1")
        self.min_slots = min_slots
        self._slots: List[Optional[str]] = [None] * min_slots
        self._blocks: Dict[str, Block] = {}

    # =========================================================================
    # VIEWS
    # =========================================================================

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def slots(self) -> List[Optional[Block]]:
        """Block (or None) per slot, in slot order."""
        return [self._blocks[block_id] if block_id else None for block_id in self._slots]

    @property
    def blocks(self) -> List[Block]:
        """Non-empty slots only, in slot order."""
        return [self._blocks[block_id] for block_id in self._slots if block_id]

    def block_at(self, index: int) -> Optional[Block]:
        self._check_index(index)
        block_id = self._slots[index]
        return self._blocks[block_id] if block_id else None

    def index_of(self, block_id: str) -> int:
        try:
            return self._slots.index(block_id)
        except ValueError:
            raise BlockNotFound(f"No column holds block {block_id!r}") from None

    def has_intent(self) -> bool:
        return any(isinstance(block, IntentBlock) for block in self._blocks.values())

    def find_duplicate(self, block: Block) -> Optional[Block]:
        """Existing block showing the same data as `block`, if any."""
        for existing in self._blocks.values():
            if isinstance(block, MetricBlock) and isinstance(existing, MetricBlock):
                if existing.key == block.key:
                    return existing
            elif isinstance(block, IntentBlock) and isinstance(existing, IntentBlock):
                return existing
        return None

    def requested_ranges(self) -> List[TimeRange]:
        """Distinct time ranges of metric blocks, in slot order."""
        ranges = [block.time_range for block in self.blocks if isinstance(block, MetricBlock)]
        return list(dict.fromkeys(ranges))

    def requested_keys(self) -> List[MetricKey]:
        """(metric, range) keys of metric blocks, in slot order."""
        return [block.key for block in self.blocks if isinstance(block, MetricBlock)]

    def snapshot(self) -> List[Tuple[int, Block]]:
        """(position, block) for every non-empty slot."""
        return [
            (position, self._blocks[block_id])
            for position, block_id in enumerate(self._slots)
            if block_id
        ]

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def insert_at(self, block: Block, index: int) -> Block:
        """
        Place a block into an existing empty slot.

        Returns:
            The placed block, carrying a freshly generated id

        Raises:
            DuplicateMetric: the same metric and range is already shown
            SlotOutOfRange: no such slot
            SlotOccupied: the slot already holds a block
        """
        self._check_duplicate(block)
        self._check_index(index)
        if self._slots[index] is not None:
            logger.info(f"Rejected insert at column {index}: slot occupied")
            raise SlotOccupied(f"Column {index} already holds a block")
        return self._place(block, index)

    def append_column(self, block: Block) -> Block:
        """Grow the grid by one slot holding `block`."""
        self._check_duplicate(block)
        self._slots.append(None)
        return self._place(block, len(self._slots) - 1)

    def append_empty_column(self) -> int:
        """Grow the grid by one empty slot; returns its index."""
        self._slots.append(None)
        return len(self._slots) - 1

    def remove(self, block_id: str, compact: bool = False) -> Block:
        """
        Remove a block by id.

        With compact=True the slot itself is deleted and later slots shift
        left; otherwise the slot is cleared in place.

        Raises:
            BlockNotFound: no slot holds the block
            LastColumnError: compacting would delete the only slot left
        """
        index = self.index_of(block_id)
        if compact and len(self._slots) <= 1:
            logger.info("Rejected compacting remove: at least one column must remain")
            raise LastColumnError("At least one column must remain")
        block = self._blocks.pop(block_id)
        if compact:
            del self._slots[index]
        else:
            self._slots[index] = None
        logger.debug(f"Removed block {block_id} from column {index} (compact={compact})")
        return block

    def delete_column(self, index: int) -> Optional[Block]:
        """
        Delete a slot by position, whatever it holds.

        Raises:
            SlotOutOfRange: no such slot
            LastColumnError: it is the only slot left
        """
        self._check_index(index)
        if len(self._slots) <= 1:
            logger.info("Rejected column delete: at least one column must remain")
            raise LastColumnError("At least one column must remain")
        block_id = self._slots.pop(index)
        return self._blocks.pop(block_id) if block_id else None

    def move(self, from_index: int, to_index: int) -> None:
        """Move one slot to another position, shifting the slots between."""
        self._check_index(from_index)
        self._check_index(to_index)
        if from_index == to_index:
            return
        block_id = self._slots.pop(from_index)
        self._slots.insert(to_index, block_id)

    def clear(self) -> None:
        """Back to min_slots empty slots."""
        self._slots = [None] * self.min_slots
        self._blocks = {}

    def replace_layout(self, blocks: Iterable[Tuple[int, Block]]) -> None:
        """
        Replace the whole grid with a (position, block) list from the user.

        Unlike reconcile_with_persisted nothing is dropped or relocated: the
        list is placed into a fresh grid with insert_at, and the current grid
        is only swapped out once every block has been placed.

        Raises:
            DuplicateMetric: two blocks show the same data
            SlotOccupied: two blocks share a position
            SlotOutOfRange: a position is negative
        """
        submitted = list(blocks)
        highest = max((position for position, _ in submitted), default=-1)

        staged = ColumnLayout(min_slots=max(self.min_slots, highest + 1))
        for position, block in submitted:
            staged.insert_at(block, position)

        self._slots = staged._slots
        self._blocks = staged._blocks
        logger.info(f"Layout replaced: {len(self._blocks)} blocks in {len(self._slots)} columns")

    def reconcile_with_persisted(self, blocks: Iterable[Tuple[int, Block]]) -> List[Block]:
        """
        Rebuild the grid from a persisted (position, block) list.

        The grid gets max(block count, min_slots, highest position + 1)
        slots. Every block gets a new id. A block whose position is already
        taken is appended in a new column; a block duplicating one already
        placed is dropped.

        Returns:
            Blocks that were dropped as duplicates
        """
        persisted = list(blocks)
        highest = max((position for position, _ in persisted), default=-1)
        size = max(len(persisted), self.min_slots, highest + 1)

        self._slots = [None] * size
        self._blocks = {}

        dropped: List[Block] = []
        for position, block in persisted:
            if self.find_duplicate(block) is not None:
                logger.warning(f"Dropping duplicate persisted block {block.id!r} at column {position}")
                dropped.append(block)
                continue
            if 0 <= position < size and self._slots[position] is None:
                self._place(block, position)
            else:
                logger.warning(f"Column {position} unavailable for block {block.id!r}; appending")
                self._slots.append(None)
                self._place(block, len(self._slots) - 1)

        return dropped

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _place(self, block: Block, index: int) -> Block:
        placed = replace(block, id=new_block_id(block))
        self._blocks[placed.id] = placed
        self._slots[index] = placed.id
        return placed

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._slots):
            logger.info(f"Rejected layout edit: column {index} out of range (0..{len(self._slots) - 1})")
            raise SlotOutOfRange(f"Column {index} does not exist")

    def _check_duplicate(self, block: Block) -> None:
        existing = self.find_duplicate(block)
        if existing is None:
            return
        if isinstance(block, IntentBlock):
            message = "The intent column is already in the report"
        else:
            message = f"{block.metric.value} for {block.time_range} is already in the report"
        logger.info(f"Rejected layout edit: {message} (column {self._slots.index(existing.id)})")
        raise DuplicateMetric(message)
