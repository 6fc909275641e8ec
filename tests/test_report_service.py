"""
Tests for ReportSession: the fetch -> reconcile -> annotate -> save cycle.
"""

import json
from uuid import uuid4

import pytest

from report_builder.analyzer import IntentAnnotator
from report_builder.database import create_report, load_snapshot
from report_builder.exceptions import AnalyticsFetchFailed, ExportEmpty, NoMetricsSelected, ReportNotFound
from report_builder.models import NO_DATA, MetricKey, MetricKind, PredefinedRange
from report_builder.reporter import ExportScope, Pagination
from report_builder.services import DatabaseSnapshotStore, ReportSession, SessionRegistry

from conftest import (
    JANUARY,
    JANUARY_WINDOW,
    FakeClassifier,
    gsc_transport,
    intent_block,
    make_fetcher,
    metric_block,
)

LAST_7 = PredefinedRange.LAST_7_DAYS

CLASSIFIER_REPLY = json.dumps([
    {"intent": "Buy shoes", "category": "Transactional"},
    {"intent": "Boot reviews", "category": "Commercial Investigation"},
])


@pytest.fixture
def session(database):
    report = create_report("Shoes report", "sc-domain:example.com")
    return ReportSession.load(report.id, DatabaseSnapshotStore())


def add_end_to_end_columns(session: ReportSession):
    session.layout.insert_at(metric_block(MetricKind.CLICKS, LAST_7), 0)
    session.layout.insert_at(metric_block(MetricKind.CLICKS, JANUARY), 1)
    session.layout.insert_at(intent_block(), 2)


@pytest.mark.asyncio
class TestFetchData:
    async def test_end_to_end(self, session, today, end_to_end_rows):
        add_end_to_end_columns(session)
        fetcher = make_fetcher(gsc_transport(end_to_end_rows))
        classifier = FakeClassifier(CLASSIFIER_REPLY)

        summary = await session.fetch_data(fetcher, IntentAnnotator(classifier), today=today)

        assert summary.ranges == 2
        assert summary.queries == 2
        assert summary.missing_cells == 1
        assert not summary.classification_degraded
        assert classifier.calls == [["shoes", "boots"]]

        shoes, boots = session.rows
        assert shoes.get(MetricKey(MetricKind.CLICKS, LAST_7)) == 10
        assert shoes.get(MetricKey(MetricKind.CLICKS, JANUARY)) == 40
        assert boots.get(MetricKey(MetricKind.CLICKS, LAST_7)) is NO_DATA
        assert boots.get(MetricKey(MetricKind.CLICKS, JANUARY)) == 5
        assert boots.intent.category == "Commercial Investigation"

    async def test_result_is_persisted(self, session, today, end_to_end_rows):
        add_end_to_end_columns(session)
        await session.fetch_data(
            make_fetcher(gsc_transport(end_to_end_rows)), IntentAnnotator(FakeClassifier(CLASSIFIER_REPLY)),
            today=today,
        )

        snapshot = load_snapshot(session.report_id)

        assert [row.query for row in snapshot.rows] == ["shoes", "boots"]
        assert len(snapshot.blocks) == 3
        assert snapshot.fetched_at is not None

    async def test_failed_range_keeps_previous_rows(self, session, today, end_to_end_rows):
        add_end_to_end_columns(session)
        annotator = IntentAnnotator(FakeClassifier(CLASSIFIER_REPLY))
        await session.fetch_data(make_fetcher(gsc_transport(end_to_end_rows)), annotator, today=today)
        previous = list(session.rows)

        failing = make_fetcher(gsc_transport(end_to_end_rows, failing_windows={JANUARY_WINDOW: 500}))
        with pytest.raises(AnalyticsFetchFailed):
            await session.fetch_data(failing, annotator, today=today)

        assert session.rows == previous
        assert len(load_snapshot(session.report_id).rows) == 2

    async def test_degraded_classification_still_completes(self, session, today, end_to_end_rows):
        add_end_to_end_columns(session)
        classifier = FakeClassifier(error="timeout")

        summary = await session.fetch_data(
            make_fetcher(gsc_transport(end_to_end_rows)), IntentAnnotator(classifier), today=today,
        )

        assert summary.classification_degraded
        assert summary.annotation.defaulted_count == 2
        assert all(row.intent.is_default for row in session.rows)

    async def test_no_metric_blocks(self, session, today):
        session.layout.insert_at(intent_block(), 0)
        with pytest.raises(NoMetricsSelected):
            await session.fetch_data(make_fetcher(gsc_transport({})), IntentAnnotator(None), today=today)


@pytest.mark.asyncio
class TestRenderingAndExport:
    async def test_render_page(self, session, today, end_to_end_rows):
        add_end_to_end_columns(session)
        await session.fetch_data(
            make_fetcher(gsc_transport(end_to_end_rows)), IntentAnnotator(FakeClassifier(CLASSIFIER_REPLY)),
            today=today,
        )

        view = session.render_page(Pagination(page=1, rows_per_page=10))

        assert view.headers == ["Query", "Clicks (L7D)", "Clicks (Custom)", "Intent", "Category"]
        assert view.rows[1] == ["boots", "-", "5", "Boot reviews", "Commercial Investigation"]
        assert view.total_pages == 1
        assert view.total_rows == 2

    async def test_export_all_does_not_fetch(self, session, today, end_to_end_rows):
        requests = []
        add_end_to_end_columns(session)
        fetcher = make_fetcher(gsc_transport(end_to_end_rows, requests=requests))
        await session.fetch_data(fetcher, IntentAnnotator(FakeClassifier(CLASSIFIER_REPLY)), today=today)
        sent = len(requests)

        content = session.export(ExportScope.ALL)

        assert len(requests) == sent
        assert content.startswith(b"\xef\xbb\xbf")
        assert b'"boots","-","5"' in content

    def test_export_before_fetch(self, session):
        with pytest.raises(ExportEmpty):
            session.export()


class TestHydration:
    def test_reload_restores_layout_with_new_ids(self, session):
        placed = session.layout.insert_at(metric_block(MetricKind.CTR, LAST_7), 2)
        session.save()

        reloaded = ReportSession.load(session.report_id, DatabaseSnapshotStore())

        restored = reloaded.layout.slots[2]
        assert restored.key == placed.key
        assert restored.id != placed.id
        assert reloaded.layout.slots[0] is None

    def test_registry_reuses_and_reloads(self, session):
        registry = SessionRegistry()
        live = registry.get(session.report_id)
        live.layout.append_column(metric_block(MetricKind.CLICKS, LAST_7))

        assert registry.get(session.report_id) is live
        reloaded = registry.get(session.report_id, reload=True)
        assert reloaded is not live
        assert reloaded.layout.blocks == []

    def test_registry_unknown_report(self, database):
        with pytest.raises(ReportNotFound):
            SessionRegistry().get(uuid4())
