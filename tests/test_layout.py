"""
Tests for the Column Layout Manager.
"""

import pytest

from report_builder.exceptions import (
    BlockNotFound,
    DuplicateMetric,
    LastColumnError,
    SlotOccupied,
    SlotOutOfRange,
)
from report_builder.layout import ColumnLayout
from report_builder.models import (
    CustomRange,
    IntentBlock,
    MetricBlock,
    MetricKey,
    MetricKind,
    PredefinedRange,
)

from conftest import JANUARY, intent_block, metric_block

LAST_7 = PredefinedRange.LAST_7_DAYS
LAST_28 = PredefinedRange.LAST_28_DAYS


@pytest.fixture
def layout():
    return ColumnLayout()


def state(layout: ColumnLayout):
    return [(block.id if block else None) for block in layout.slots]


class TestInsert:
    def test_starts_with_three_empty_slots(self, layout):
        assert len(layout) == 3
        assert layout.slots == [None, None, None]
        assert layout.blocks == []

    def test_insert_places_block_with_new_id(self, layout):
        placed = layout.insert_at(MetricBlock("external-id", MetricKind.CLICKS, LAST_7), 1)

        assert placed.id != "external-id"
        assert placed.id.startswith("clicks_last7days_")
        assert layout.block_at(1) == placed
        assert layout.slots[0] is None

    def test_same_block_inserted_twice_gets_distinct_ids(self):
        first, second = ColumnLayout(), ColumnLayout()
        block = metric_block(MetricKind.CLICKS, LAST_7)
        assert first.insert_at(block, 0).id != second.insert_at(block, 0).id

    def test_duplicate_metric_rejected_state_unchanged(self, layout):
        layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        before = state(layout)

        with pytest.raises(DuplicateMetric):
            layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 2)

        assert state(layout) == before
        assert len(layout.blocks) == 1

    def test_duplicate_checked_before_occupancy(self, layout):
        layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        with pytest.raises(DuplicateMetric):
            layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)

    def test_equal_custom_ranges_are_duplicates(self, layout):
        layout.insert_at(metric_block(MetricKind.CTR, CustomRange("2024-01-01", "2024-01-31")), 0)
        with pytest.raises(DuplicateMetric):
            layout.insert_at(metric_block(MetricKind.CTR, JANUARY), 1)

    def test_same_metric_other_range_allowed(self, layout):
        layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        layout.insert_at(metric_block(MetricKind.CLICKS, LAST_28), 1)
        assert len(layout.blocks) == 2

    def test_occupied_slot_rejected(self, layout):
        layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        with pytest.raises(SlotOccupied):
            layout.insert_at(metric_block(MetricKind.IMPRESSIONS, LAST_7), 0)

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_out_of_range_index(self, layout, index):
        with pytest.raises(SlotOutOfRange):
            layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), index)

    def test_single_intent_block(self, layout):
        layout.insert_at(intent_block(), 0)
        assert layout.has_intent()
        with pytest.raises(DuplicateMetric):
            layout.append_column(intent_block())


class TestAppend:
    def test_append_column_grows_grid(self, layout):
        placed = layout.append_column(metric_block(MetricKind.POSITION, LAST_28))
        assert len(layout) == 4
        assert layout.block_at(3) == placed

    def test_append_duplicate_rejected_without_growing(self, layout):
        layout.append_column(metric_block(MetricKind.POSITION, LAST_28))
        with pytest.raises(DuplicateMetric):
            layout.append_column(metric_block(MetricKind.POSITION, LAST_28))
        assert len(layout) == 4

    def test_append_empty_column(self, layout):
        assert layout.append_empty_column() == 3
        assert layout.slots[3] is None


class TestRemove:
    def test_remove_without_compaction_clears_slot(self, layout):
        a = layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        b = layout.insert_at(metric_block(MetricKind.CTR, LAST_7), 1)

        removed = layout.remove(a.id)

        assert removed == a
        assert len(layout) == 3
        assert state(layout) == [None, b.id, None]

    def test_remove_with_compaction_shifts_left(self, layout):
        a = layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        b = layout.insert_at(metric_block(MetricKind.CTR, LAST_7), 1)
        c = layout.insert_at(metric_block(MetricKind.POSITION, LAST_7), 2)

        layout.remove(b.id, compact=True)

        assert len(layout) == 2
        assert state(layout) == [a.id, c.id]

    def test_removed_metric_can_be_added_again(self, layout):
        a = layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        layout.remove(a.id)
        layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 2)
        assert len(layout.blocks) == 1

    def test_unknown_block(self, layout):
        with pytest.raises(BlockNotFound):
            layout.remove("missing")

    def test_delete_column(self, layout):
        a = layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 1)
        assert layout.delete_column(0) is None
        assert layout.delete_column(0) == a
        assert len(layout) == 1
        assert layout.blocks == []

    def test_last_column_cannot_be_deleted(self):
        layout = ColumnLayout(min_slots=1)
        with pytest.raises(LastColumnError):
            layout.delete_column(0)
        assert len(layout) == 1

    def test_compacting_remove_keeps_last_column(self):
        layout = ColumnLayout(min_slots=1)
        a = layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)

        with pytest.raises(LastColumnError):
            layout.remove(a.id, compact=True)

        assert state(layout) == [a.id]

    def test_clearing_last_column_allowed(self):
        layout = ColumnLayout(min_slots=1)
        a = layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        layout.remove(a.id)
        assert state(layout) == [None]


class TestMove:
    def test_move_keeps_block_set(self, layout):
        a = layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        b = layout.insert_at(metric_block(MetricKind.CTR, LAST_7), 2)

        layout.move(2, 0)

        assert state(layout) == [b.id, a.id, None]

    def test_move_out_of_range(self, layout):
        with pytest.raises(SlotOutOfRange):
            layout.move(0, 5)


class TestReconcileWithPersisted:
    def test_restores_positions_with_gaps(self, layout):
        persisted = [
            (0, MetricBlock("old-1", MetricKind.CLICKS, LAST_7)),
            (2, IntentBlock("old-2")),
        ]
        layout.reconcile_with_persisted(persisted)

        assert len(layout) == 3
        assert isinstance(layout.slots[0], MetricBlock)
        assert layout.slots[1] is None
        assert isinstance(layout.slots[2], IntentBlock)

    def test_regenerates_ids(self, layout):
        layout.reconcile_with_persisted([(0, MetricBlock("old-1", MetricKind.CLICKS, LAST_7))])
        assert layout.slots[0].id != "old-1"

    def test_grows_past_minimum(self, layout):
        persisted = [(i, metric_block(metric, LAST_7)) for i, metric in enumerate(MetricKind)]
        layout.reconcile_with_persisted(persisted)
        assert len(layout) == 4

    def test_high_position_extends_grid(self, layout):
        layout.reconcile_with_persisted([(5, metric_block(MetricKind.CLICKS, LAST_7))])
        assert len(layout) == 6
        assert layout.slots[5] is not None

    def test_empty_snapshot_gives_minimum(self, layout):
        layout.append_column(metric_block(MetricKind.CLICKS, LAST_7))
        layout.reconcile_with_persisted([])
        assert layout.slots == [None, None, None]

    def test_duplicates_dropped(self, layout):
        persisted = [
            (0, metric_block(MetricKind.CLICKS, LAST_7)),
            (1, metric_block(MetricKind.CLICKS, LAST_7)),
        ]
        dropped = layout.reconcile_with_persisted(persisted)
        assert len(dropped) == 1
        assert len(layout.blocks) == 1

    def test_position_collision_appends(self, layout):
        persisted = [
            (0, metric_block(MetricKind.CLICKS, LAST_7)),
            (0, metric_block(MetricKind.CTR, LAST_7)),
        ]
        layout.reconcile_with_persisted(persisted)
        assert len(layout.blocks) == 2
        assert layout.slots[3].metric is MetricKind.CTR


class TestReplaceLayout:
    def test_places_blocks_at_positions(self, layout):
        layout.replace_layout([
            (1, MetricBlock("client-id", MetricKind.CLICKS, LAST_7)),
            (4, IntentBlock("")),
        ])

        assert len(layout) == 5
        assert layout.slots[1].metric is MetricKind.CLICKS
        assert layout.slots[1].id != "client-id"
        assert isinstance(layout.slots[4], IntentBlock)

    def test_empty_list_gives_minimum(self, layout):
        layout.append_column(metric_block(MetricKind.CLICKS, LAST_7))
        layout.replace_layout([])
        assert layout.slots == [None, None, None]

    def test_duplicate_rejected_and_layout_unchanged(self, layout):
        a = layout.insert_at(metric_block(MetricKind.CTR, LAST_28), 2)

        with pytest.raises(DuplicateMetric):
            layout.replace_layout([
                (0, metric_block(MetricKind.CLICKS, LAST_7)),
                (1, metric_block(MetricKind.CLICKS, LAST_7)),
            ])

        assert state(layout) == [None, None, a.id]

    def test_shared_position_rejected(self, layout):
        with pytest.raises(SlotOccupied):
            layout.replace_layout([
                (0, metric_block(MetricKind.CLICKS, LAST_7)),
                (0, metric_block(MetricKind.CTR, LAST_7)),
            ])
        assert layout.blocks == []

    def test_negative_position_rejected(self, layout):
        with pytest.raises(SlotOutOfRange):
            layout.replace_layout([(-1, metric_block(MetricKind.CLICKS, LAST_7))])


class TestRequested:
    def test_ranges_and_keys_in_slot_order(self, layout):
        layout.insert_at(metric_block(MetricKind.CTR, JANUARY), 2)
        layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
        layout.insert_at(intent_block(), 1)
        layout.append_column(metric_block(MetricKind.CLICKS, JANUARY))

        assert layout.requested_ranges() == [LAST_7, JANUARY]
        assert layout.requested_keys() == [
            MetricKey(MetricKind.CLICKS, LAST_7),
            MetricKey(MetricKind.CTR, JANUARY),
            MetricKey(MetricKind.CLICKS, JANUARY),
        ]

    def test_snapshot_positions(self, layout):
        placed = layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 2)
        assert layout.snapshot() == [(2, placed)]

    def test_clear(self, layout):
        layout.append_column(metric_block(MetricKind.CLICKS, LAST_7))
        layout.clear()
        assert len(layout) == 3
        assert layout.blocks == []
