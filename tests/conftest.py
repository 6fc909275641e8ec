"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import json
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from report_builder.analyzer import IntentClassificationError, IntentClassifier
from report_builder.collector import AnalyticsFetcher, RetryConfig, SearchConsoleClient
from report_builder.database import init_db, reset_engine
from report_builder.models import (
    CustomRange,
    IntentBlock,
    MetricBlock,
    MetricKind,
    PredefinedRange,
)


# Fixed "today" so symbolic ranges resolve deterministically:
# last7days -> 2024-03-08..2024-03-15
TODAY = date(2024, 3, 15)
LAST_7_WINDOW = ("2024-03-08", "2024-03-15")
JANUARY = CustomRange("2024-01-01", "2024-01-31")
JANUARY_WINDOW = ("2024-01-01", "2024-01-31")


# ============================================================================
# Mock Data Helpers
# ============================================================================

def gsc_row(query: str, clicks=0, impressions=0, ctr=0.0, position=0.0) -> Dict:
    """A row as returned by searchAnalytics.query."""
    return {
        "keys": [query],
        "clicks": clicks,
        "impressions": impressions,
        "ctr": ctr,
        "position": position,
    }


def metric_block(metric: MetricKind, time_range) -> MetricBlock:
    return MetricBlock(id="", metric=metric, time_range=time_range)


def intent_block() -> IntentBlock:
    return IntentBlock(id="")


def gsc_transport(
    rows_by_window: Dict[Tuple[str, str], List[Dict]],
    failing_windows: Optional[Dict[Tuple[str, str], int]] = None,
    requests: Optional[List[httpx.Request]] = None,
) -> httpx.MockTransport:
    """
    MockTransport answering searchAnalytics.query by (startDate, endDate).

    Windows in failing_windows answer with the given status code.
    """
    failing_windows = failing_windows or {}

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.url.path.endswith("/sites"):
            return httpx.Response(200, json={"siteEntry": [
                {"siteUrl": "sc-domain:example.com", "permissionLevel": "siteOwner"},
            ]})

        body = json.loads(request.content)
        window = (body["startDate"], body["endDate"])
        if window in failing_windows:
            return httpx.Response(
                failing_windows[window],
                json={"error": {"message": "Request had insufficient authentication scopes."}},
            )
        return httpx.Response(200, json={"rows": rows_by_window.get(window, [])})

    return httpx.MockTransport(handler)


def make_fetcher(transport: httpx.MockTransport) -> AnalyticsFetcher:
    client = SearchConsoleClient(
        access_token="test-token",
        retry_config=RetryConfig(max_retries=0),
        transport=transport,
    )
    return AnalyticsFetcher(client)


class FakeClassifier(IntentClassifier):
    """Returns a canned response, or fails like a dropped connection."""

    def __init__(self, response: str = "[]", error: Optional[str] = None):
        self.response = response
        self.error = error
        self.calls: List[List[str]] = []

    async def classify(self, queries: List[str]) -> str:
        self.calls.append(list(queries))
        if self.error:
            raise IntentClassificationError(self.error)
        return self.response


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def end_to_end_rows() -> Dict[Tuple[str, str], List[Dict]]:
    """last7days has "shoes"; January has "shoes" and "boots"."""
    return {
        LAST_7_WINDOW: [gsc_row("shoes", clicks=10, impressions=200, ctr=0.05, position=3.2)],
        JANUARY_WINDOW: [
            gsc_row("shoes", clicks=40, impressions=900, ctr=0.0444, position=4.1),
            gsc_row("boots", clicks=5, impressions=125000, ctr=0.0534, position=3.0),
        ],
    }


@pytest.fixture
def make_classifier() -> Callable[..., FakeClassifier]:
    return FakeClassifier


@pytest.fixture
def database(tmp_path, monkeypatch):
    """Fresh SQLite database per test."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("POSTGRES_URL", raising=False)
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "reports.db"))
    reset_engine()
    init_db()
    yield
    reset_engine()


@pytest.fixture
def last7() -> PredefinedRange:
    return PredefinedRange.LAST_7_DAYS
