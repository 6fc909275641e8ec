"""
Shared API dependencies and error mapping.

Domain errors are translated to HTTP status codes in one place; routers let
them propagate.
"""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from report_builder.analyzer import ClaudeClient, ClaudeIntentClassifier, IntentAnnotator
from report_builder.collector import AnalyticsFetcher, SearchConsoleClient
from report_builder.exceptions import (
    AnalyticsFetchFailed,
    BlockNotFound,
    DuplicateMetric,
    ExportEmpty,
    InvalidRangeFormat,
    LastColumnError,
    NoMetricsSelected,
    ReportBuilderError,
    ReportNotFound,
    SlotOccupied,
    SlotOutOfRange,
)
from report_builder.services import SessionRegistry
from report_builder.utils import get_settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Google-Access-Token"


# =============================================================================
# ERROR MAPPING
# =============================================================================

ERROR_STATUS_CODES = [
    ((InvalidRangeFormat, ExportEmpty, NoMetricsSelected, LastColumnError, SlotOutOfRange), 400),
    ((ReportNotFound, BlockNotFound), 404),
    ((DuplicateMetric, SlotOccupied), 409),
    ((AnalyticsFetchFailed,), 502),
]


def error_status(exc: ReportBuilderError) -> int:
    for error_types, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_types):
            return status_code
    return 500


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ReportBuilderError)
    async def report_builder_error_handler(request: Request, exc: ReportBuilderError):
        status_code = error_status(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error": type(exc).__name__},
        )


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_access_token(
    x_google_access_token: Optional[str] = Header(None, alias=ACCESS_TOKEN_HEADER),
) -> str:
    if not x_google_access_token:
        raise HTTPException(status_code=401, detail=f"Missing {ACCESS_TOKEN_HEADER} header")
    return x_google_access_token


async def get_search_console_client(
    access_token: str = Depends(get_access_token),
) -> AsyncGenerator[SearchConsoleClient, None]:
    settings = get_settings()
    async with SearchConsoleClient(access_token=access_token, timeout=settings.API_TIMEOUT) as client:
        yield client


def get_fetcher(client: SearchConsoleClient = Depends(get_search_console_client)) -> AnalyticsFetcher:
    return AnalyticsFetcher(client, row_limit=get_settings().DEFAULT_ROW_LIMIT)


def get_annotator() -> IntentAnnotator:
    """Claude-backed annotator, or an all-defaults one without an API key."""
    settings = get_settings()
    if not settings.ANTHROPIC_API_KEY:
        return IntentAnnotator(classifier=None)
    client = ClaudeClient(api_key=settings.ANTHROPIC_API_KEY, model=settings.CLAUDE_MODEL)
    return IntentAnnotator(ClaudeIntentClassifier(client, max_tokens=settings.INTENT_MAX_TOKENS))
