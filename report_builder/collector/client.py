"""
Search Console API Client

Thin async wrapper over the webmasters v3 endpoints the report needs:
listing properties and querying search analytics by query. The caller
supplies the OAuth access token; this module never refreshes it.
"""

import asyncio
import httpx
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass
from urllib.parse import quote

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Backoff for throttling and transient server errors."""
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (429, 500, 502, 503, 504)

    def delay_for(self, attempt: int) -> float:
        """Sleep before retry number `attempt` (0-based)."""
        return min(self.initial_delay * self.exponential_base ** attempt, self.max_delay)


class SearchConsoleError(Exception):
    """Non-200 reply or transport failure talking to Search Console."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response

    @classmethod
    def from_response(cls, response: httpx.Response) -> "SearchConsoleError":
        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None
        detail = _error_message(payload) or response.reason_phrase
        return cls(
            f"Search Console returned {response.status_code}: {detail}",
            status_code=response.status_code,
            response=payload,
        )


class SearchConsoleClient:
    """
    Usage:
        async with SearchConsoleClient(access_token="ya29...") as client:
            rows = await client.query_search_analytics(
                "sc-domain:example.com", "2024-01-01", "2024-01-31",
            )
    """

    BASE_URL = "https://www.googleapis.com/webmasters/v3"

    def __init__(
        self,
        access_token: str,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not access_token:
            raise SearchConsoleError("Search Console access token not provided", status_code=401)

        self.retry_config = retry_config or RetryConfig()
        self._http = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def query_search_analytics(
        self,
        site_url: str,
        start_date: str,
        end_date: str,
        row_limit: int = 1000,
    ) -> List[Dict[str, Any]]:
        """
        searchAnalytics.query with the single "query" dimension.

        Returns the raw "rows" list, empty when the window has no data.
        """
        body = {
            "startDate": start_date,
            "endDate": end_date,
            "dimensions": ["query"],
            "rowLimit": row_limit,
        }
        data = await self._request("POST", f"/sites/{quote(site_url, safe='')}/searchAnalytics/query", body)
        rows = data.get("rows") or []

        logger.info(f"{site_url} {start_date}..{end_date}: {len(rows)} rows")
        return rows

    async def list_properties(self) -> List[Dict[str, str]]:
        data = await self._request("GET", "/sites")
        return [
            {
                "site_url": entry.get("siteUrl", ""),
                "permission_level": entry.get("permissionLevel", ""),
            }
            for entry in data.get("siteEntry") or []
        ]

    async def _request(self, method: str, path: str, body: Optional[Dict] = None) -> Dict[str, Any]:
        retry = self.retry_config
        attempts = retry.max_retries + 1

        for attempt in range(attempts):
            try:
                response = await self._http.request(method, path, json=body)
            except httpx.HTTPError as e:
                error = SearchConsoleError(f"{type(e).__name__} calling Search Console: {e}")
            else:
                if response.status_code == 200:
                    return response.json()
                error = SearchConsoleError.from_response(response)
                # 4xx other than throttling will fail the same way again
                if error.status_code not in retry.retryable_status_codes:
                    raise error

            if attempt + 1 == attempts:
                raise error

            delay = retry.delay_for(attempt)
            logger.warning(f"{method} {path} failed ({attempt + 1}/{attempts}): {error}; retrying in {delay}s")
            await asyncio.sleep(delay)

    async def close(self):
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def _error_message(payload: Optional[Dict]) -> Optional[str]:
    """Google error bodies carry {"error": {"message": ...}} or a bare string."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        return error.get("message")
    if isinstance(error, str):
        return error
    return None
