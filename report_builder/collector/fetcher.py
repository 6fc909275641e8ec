"""
Analytics Fetch Adapter

Issues one Search Console query per requested time range, concurrently,
and normalizes each returned row to an AnalyticsRow. If any range fails the
whole fetch fails: a table reconciled from some ranges only would silently
understate metrics for the missing ones.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from .client import SearchConsoleClient, SearchConsoleError
from .time_range import resolve_time_range
from ..exceptions import AnalyticsFetchFailed, InvalidRangeFormat
from ..models import AnalyticsRow, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT = 1000
MAX_ROW_LIMIT = 25000


def normalize_rows(raw_rows: Iterable[Dict[str, Any]]) -> Iterator[AnalyticsRow]:
    """
    Lazily convert raw API rows to AnalyticsRow.

    The query text is the first dimension key; missing metrics read as 0.
    """
    for raw in raw_rows:
        keys = raw.get("keys") or []
        yield AnalyticsRow(
            query=keys[0] if keys else "",
            clicks=raw.get("clicks") or 0,
            impressions=raw.get("impressions") or 0,
            ctr=raw.get("ctr") or 0.0,
            position=raw.get("position") or 0.0,
        )


def validate_row_limit(row_limit: int) -> int:
    if not isinstance(row_limit, int) or isinstance(row_limit, bool):
        raise ValueError(f"row_limit must be an integer, got {row_limit!r}")
    if not 1 <= row_limit <= MAX_ROW_LIMIT:
        raise ValueError(f"row_limit must be between 1 and {MAX_ROW_LIMIT}, got {row_limit}")
    return row_limit


class AnalyticsFetcher:
    """
    Fetches query-level analytics for one property across time ranges.

    Usage:
        async with SearchConsoleClient(access_token=token) as client:
            fetcher = AnalyticsFetcher(client)
            per_range = await fetcher.fetch_ranges("sc-domain:example.com", ranges)
    """

    def __init__(self, client: SearchConsoleClient, row_limit: int = DEFAULT_ROW_LIMIT):
        self.client = client
        self.row_limit = validate_row_limit(row_limit)

    async def fetch_range(
        self,
        property_url: str,
        time_range: TimeRange,
        row_limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Iterator[AnalyticsRow]:
        """
        Fetch one time range.

        Returns a one-shot iterator; call again to re-issue the request.

        Raises:
            InvalidRangeFormat: explicit range with bad dates
            AnalyticsFetchFailed: transport or authorization failure
        """
        limit = validate_row_limit(row_limit) if row_limit is not None else self.row_limit
        resolved = resolve_time_range(time_range, today=today)

        try:
            raw_rows = await self.client.query_search_analytics(
                property_url,
                resolved.start_date,
                resolved.end_date,
                row_limit=limit,
            )
        except SearchConsoleError as e:
            raise AnalyticsFetchFailed(time_range, e) from e

        return normalize_rows(raw_rows[:limit])

    async def fetch_ranges(
        self,
        property_url: str,
        time_ranges: Sequence[TimeRange],
        row_limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Dict[TimeRange, List[AnalyticsRow]]:
        """
        Fetch every range concurrently and wait for all of them.

        Returns:
            Rows per range, in the order the ranges were requested

        Raises:
            AnalyticsFetchFailed: for the first requested range that failed
        """
        today = today or date.today()
        ranges = list(dict.fromkeys(time_ranges))

        if row_limit is not None:
            validate_row_limit(row_limit)

        # Reject malformed explicit ranges before any request goes out
        for time_range in ranges:
            resolve_time_range(time_range, today=today)

        tasks = [
            self.fetch_range(property_url, time_range, row_limit=row_limit, today=today)
            for time_range in ranges
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        fetched: Dict[TimeRange, List[AnalyticsRow]] = {}
        for time_range, result in zip(ranges, results):
            if isinstance(result, BaseException):
                logger.error(f"Fetch failed for {time_range}: {result}")
                if isinstance(result, (AnalyticsFetchFailed, InvalidRangeFormat)) or not isinstance(result, Exception):
                    raise result
                raise AnalyticsFetchFailed(time_range, result) from result
            fetched[time_range] = list(result)

        logger.info(
            f"Fetched {sum(len(rows) for rows in fetched.values())} rows "
            f"across {len(fetched)} ranges for {property_url}"
        )
        return fetched
