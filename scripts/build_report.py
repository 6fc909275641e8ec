#!/usr/bin/env python3
"""
Local Report Script

Build a one-off report for a property and write it as CSV, without the API
or the database.

Usage:
    python scripts/build_report.py sc-domain:example.com --range last7days --range 2024-01-01:2024-01-31
    python scripts/build_report.py https://example.com/ --metric clicks --metric ctr --intent -o report.csv
"""

import asyncio
import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from report_builder.aggregation import RowReconciler
from report_builder.analyzer import ClaudeClient, ClaudeIntentClassifier, IntentAnnotator
from report_builder.collector import AnalyticsFetcher, SearchConsoleClient, describe_time_range
from report_builder.exceptions import ReportBuilderError
from report_builder.layout import ColumnLayout
from report_builder.models import IntentBlock, MetricBlock, MetricKind, parse_time_range
from report_builder.reporter import CSV_FILENAME, export_csv


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
        ]
    )


def parse_range_arg(value: str):
    """"last7days" or "YYYY-MM-DD:YYYY-MM-DD"."""
    if ":" in value:
        start, end = value.split(":", 1)
        return parse_time_range({"startDate": start, "endDate": end})
    return parse_time_range(value)


async def build_report(
    property_url: str,
    ranges: list,
    metrics: list,
    row_limit: int,
    with_intent: bool,
    output_file: str,
):
    """Fetch, reconcile, annotate and export one report."""

    load_dotenv()

    token = os.getenv("GSC_ACCESS_TOKEN")
    if not token:
        print("ERROR: Missing GSC_ACCESS_TOKEN in .env")
        print("\nCreate a .env file with:")
        print("  GSC_ACCESS_TOKEN=ya29...")
        print("  ANTHROPIC_API_KEY=sk-ant-...   (optional, for intent)")
        return 1

    layout = ColumnLayout()
    for time_range in ranges:
        for metric in metrics:
            layout.append_column(MetricBlock(id="", metric=metric, time_range=time_range))
    if with_intent:
        layout.append_column(IntentBlock(id=""))

    print(f"\n{'='*60}")
    print(f"GSC REPORT BUILDER - LOCAL RUN")
    print(f"{'='*60}")
    print(f"Property: {property_url}")
    print(f"Ranges: {', '.join(describe_time_range(r) for r in ranges)}")
    print(f"Metrics: {', '.join(m.value for m in metrics)}")
    print(f"{'='*60}\n")

    async with SearchConsoleClient(access_token=token) as client:
        fetcher = AnalyticsFetcher(client, row_limit=row_limit)
        fetched = await fetcher.fetch_ranges(property_url, layout.requested_ranges())

    reconciler = RowReconciler()
    rows = reconciler.reconcile(fetched, layout.requested_keys())

    annotator = IntentAnnotator(None)
    if with_intent and os.getenv("ANTHROPIC_API_KEY"):
        annotator = IntentAnnotator(ClaudeIntentClassifier(ClaudeClient()))
    annotation = await annotator.annotate(rows)

    stats = reconciler.last_stats
    print(f"\nQueries: {stats.queries}")
    print(f"Cells without data: {stats.missing_cells}/{stats.cells}")
    if with_intent:
        print(f"Intent: {annotation.parse_method}, {annotation.defaulted_count} defaulted")

    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(export_csv(annotation.rows, layout.blocks))

    print(f"\n{'='*60}")
    print(f"Report saved to: {output_path}")
    print(f"{'='*60}")
    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Build a Search Console query report locally"
    )
    parser.add_argument(
        "property",
        help="Search Console property (e.g., sc-domain:example.com)"
    )
    parser.add_argument(
        "--range", "-r",
        dest="ranges",
        action="append",
        help="last7days, last28days, last3months or START:END (repeatable, default: last28days)"
    )
    parser.add_argument(
        "--metric", "-m",
        dest="metrics",
        action="append",
        choices=[m.value for m in MetricKind],
        help="Metric column per range (repeatable, default: all)"
    )
    parser.add_argument(
        "--row-limit",
        type=int,
        default=1000,
        help="Rows per range, 1-25000 (default: 1000)"
    )
    parser.add_argument(
        "--intent",
        action="store_true",
        help="Add the intent column (needs ANTHROPIC_API_KEY)"
    )
    parser.add_argument(
        "--output", "-o",
        default=CSV_FILENAME,
        help=f"CSV file to write (default: {CSV_FILENAME})"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    try:
        ranges = [parse_range_arg(value) for value in (args.ranges or ["last28days"])]
    except ValueError as e:
        parser.error(str(e))
    metrics = [MetricKind(value) for value in (args.metrics or [m.value for m in MetricKind])]

    try:
        return asyncio.run(build_report(
            property_url=args.property,
            ranges=ranges,
            metrics=metrics,
            row_limit=args.row_limit,
            with_intent=args.intent,
            output_file=args.output,
        ))
    except (ReportBuilderError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
