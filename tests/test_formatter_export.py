"""
Tests for cell formatting, pagination, and CSV export.
"""

import csv
import io

import pytest

from report_builder.exceptions import ExportEmpty
from report_builder.models import (
    NO_DATA,
    IntentBlock,
    MetricBlock,
    MetricKey,
    MetricKind,
    PredefinedRange,
    QueryIntent,
    ReconciledRow,
)
from report_builder.reporter import (
    CSV_FILENAME,
    ExportScope,
    Pagination,
    column_labels,
    display_headers,
    export_csv,
    format_metric_value,
    render_display_row,
)

from conftest import JANUARY

LAST_7 = PredefinedRange.LAST_7_DAYS
CLICKS_7 = MetricBlock("b1", MetricKind.CLICKS, LAST_7)
CTR_JAN = MetricBlock("b2", MetricKind.CTR, JANUARY)
INTENT = IntentBlock("b3")


def make_rows(count: int):
    return [
        ReconciledRow(
            query=f"query {i}",
            metrics={CLICKS_7.key: i * 1000, CTR_JAN.key: NO_DATA},
            intent=QueryIntent("Buy things", "Transactional"),
        )
        for i in range(count)
    ]


def read_csv(content: bytes):
    assert content.startswith(b"\xef\xbb\xbf")
    return list(csv.reader(io.StringIO(content.decode("utf-8-sig"))))


class TestFormatMetricValue:
    def test_ctr_percentage(self):
        assert format_metric_value(MetricKind.CTR, 0.0534) == "5.34%"
        assert format_metric_value(MetricKind.CTR, 0) == "0.00%"
        assert format_metric_value(MetricKind.CTR, 1.0) == "100.00%"

    def test_position_one_decimal(self):
        assert format_metric_value(MetricKind.POSITION, 3.0) == "3.0"
        assert format_metric_value(MetricKind.POSITION, 12.345) == "12.3"

    def test_grouped_integers(self):
        assert format_metric_value(MetricKind.IMPRESSIONS, 125000) == "125,000"
        assert format_metric_value(MetricKind.CLICKS, 999) == "999"
        assert format_metric_value(MetricKind.CLICKS, 1234567.0) == "1,234,567"

    def test_zero_is_not_placeholder(self):
        assert format_metric_value(MetricKind.CLICKS, 0) == "0"

    @pytest.mark.parametrize("metric", list(MetricKind))
    def test_no_data_placeholder(self, metric):
        assert format_metric_value(metric, NO_DATA) == "-"
        assert format_metric_value(metric, None) == "-"


class TestLabelsAndRows:
    def test_column_labels(self):
        assert column_labels(CLICKS_7) == ["Clicks (L7D)"]
        assert column_labels(MetricBlock("x", MetricKind.POSITION, JANUARY)) == ["Position (Custom)"]
        assert column_labels(MetricBlock("y", MetricKind.CTR, PredefinedRange.LAST_28_DAYS)) == ["CTR (L28D)"]
        assert column_labels(INTENT) == ["Intent", "Category"]

    def test_display_headers_include_empty_slots(self):
        assert display_headers([CLICKS_7, None, INTENT]) == [
            "Query", "Clicks (L7D)", "Drop metric here", "Intent", "Category",
        ]

    def test_display_row(self):
        row = make_rows(2)[1]
        assert render_display_row(row, [CLICKS_7, None, CTR_JAN, INTENT]) == [
            "query 1", "1,000", "-", "-", "Buy things", "Transactional",
        ]

    def test_missing_intent_renders_placeholders(self):
        row = ReconciledRow(query="q")
        assert render_display_row(row, [INTENT]) == ["q", "-", "-"]

    def test_cell_not_requested_is_placeholder(self):
        row = ReconciledRow(query="q", metrics={MetricKey(MetricKind.CLICKS, LAST_7): 5})
        assert render_display_row(row, [CTR_JAN]) == ["q", "-"]


class TestPagination:
    def test_total_pages(self):
        assert Pagination(rows_per_page=10).total_pages(0) == 1
        assert Pagination(rows_per_page=10).total_pages(10) == 1
        assert Pagination(rows_per_page=10).total_pages(11) == 2

    def test_page_rows(self):
        rows = make_rows(25)
        page = Pagination(page=3, rows_per_page=10).page_rows(rows)
        assert [row.query for row in page] == ["query 20", "query 21", "query 22", "query 23", "query 24"]

    def test_page_past_end_is_empty(self):
        assert Pagination(page=9, rows_per_page=10).page_rows(make_rows(5)) == []

    @pytest.mark.parametrize("rows_per_page", [0, 15, 200])
    def test_rows_per_page_choices(self, rows_per_page):
        with pytest.raises(ValueError):
            Pagination(rows_per_page=rows_per_page)

    def test_page_must_be_positive(self):
        with pytest.raises(ValueError):
            Pagination(page=0)


class TestExportCsv:
    def test_bom_header_and_rows(self):
        content = export_csv(make_rows(2), [CLICKS_7, CTR_JAN, INTENT])
        table = read_csv(content)

        assert table[0] == ["Query", "Clicks (L7D)", "CTR (Custom)", "Intent", "Category"]
        assert table[2] == ["query 1", "1,000", "-", "Buy things", "Transactional"]
        assert len(table) == 3

    def test_every_field_quoted(self):
        content = export_csv(make_rows(1), [CLICKS_7]).decode("utf-8-sig")
        first_line = content.splitlines()[0]
        assert first_line == '"Query","Clicks (L7D)"'
        assert content.splitlines()[1] == '"query 0","0"'

    def test_grouped_numbers_survive_commas(self):
        table = read_csv(export_csv(make_rows(3), [CLICKS_7]))
        assert table[3][1] == "2,000"

    def test_current_page_scope(self):
        rows = make_rows(25)
        content = export_csv(rows, [CLICKS_7], ExportScope.CURRENT_PAGE, Pagination(page=2, rows_per_page=20))
        table = read_csv(content)
        assert len(table) == 1 + 5
        assert table[1][0] == "query 20"

    def test_all_scope_ignores_pagination(self):
        table = read_csv(export_csv(make_rows(25), [CLICKS_7], ExportScope.ALL, Pagination(page=2)))
        assert len(table) == 26

    def test_empty_rows_fail(self):
        with pytest.raises(ExportEmpty):
            export_csv([], [CLICKS_7])

    def test_empty_current_page_fails(self):
        with pytest.raises(ExportEmpty):
            export_csv(make_rows(3), [CLICKS_7], ExportScope.CURRENT_PAGE, Pagination(page=2))

    def test_filename(self):
        assert CSV_FILENAME == "gsc-report.csv"
