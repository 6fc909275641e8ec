"""
API Endpoints for Saved Reports

Handles:
1. Create / list / get / rename / delete reports
2. Column commands (insert, append, clear, delete, move)
3. Fetch cycle (Search Console -> reconcile -> intent -> save)
4. Paged grid view and CSV download
"""

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field

from report_builder.analyzer import IntentAnnotator
from report_builder.collector import (
    AnalyticsFetcher,
    MAX_ROW_LIMIT,
    describe_time_range,
    resolve_time_range,
)
from report_builder.database import repository
from report_builder.models import Block, MetricBlock, block_from_dict, block_to_dict
from report_builder.reporter import (
    CSV_FILENAME,
    CSV_MEDIA_TYPE,
    ExportScope,
    Pagination,
    column_labels,
)
from report_builder.services import ReportSession, SessionRegistry
from report_builder.utils import get_settings

from .dependencies import get_annotator, get_fetcher, get_registry

logger = logging.getLogger(__name__)

DEFAULT_ROWS_PER_PAGE = get_settings().DEFAULT_ROWS_PER_PAGE

router = APIRouter(
    prefix="/api/reports",
    tags=["Reports"],
)


# =============================================================================
# REQUEST / RESPONSE MODELS
# =============================================================================

class BlockModel(BaseModel):
    """A column block as sent by the client."""
    type: Literal["metric", "intent"]
    id: Optional[str] = None
    metric: Optional[str] = None
    timeRange: Optional[Union[str, Dict[str, str]]] = None


class ColumnResponse(BaseModel):
    position: int
    block: Optional[Dict[str, Any]] = None
    labels: List[str] = []
    description: Optional[str] = None


class ReportSummary(BaseModel):
    id: UUID
    name: str
    property: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    fetched_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReportListResponse(BaseModel):
    reports: List[ReportSummary]
    total: int


class ReportDetail(BaseModel):
    id: UUID
    name: str
    property: str
    columns: List[ColumnResponse]
    total_rows: int
    fetched_at: Optional[datetime] = None


class CreateReportRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    property: str = Field(..., min_length=1, max_length=512)


class PositionedBlock(BaseModel):
    position: int = Field(..., ge=0)
    block: BlockModel


class UpdateReportRequest(BaseModel):
    """Rename and/or replace the whole layout."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    blocks: Optional[List[PositionedBlock]] = None


class AddColumnRequest(BaseModel):
    """Insert into an existing slot, or append a new column when position is omitted."""
    block: BlockModel
    position: Optional[int] = None


class MoveColumnRequest(BaseModel):
    from_index: int
    to_index: int


class FetchRequest(BaseModel):
    row_limit: Optional[int] = Field(default=None, ge=1, le=MAX_ROW_LIMIT)


class FetchResponse(BaseModel):
    ranges: int
    fetched_rows: int
    queries: int
    missing_cells: int
    classification_method: str
    classification_degraded: bool
    defaulted_intents: int
    fetched_at: datetime


class PageResponse(BaseModel):
    headers: List[str]
    rows: List[List[str]]
    page: int
    rows_per_page: int
    total_pages: int
    total_rows: int


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def parse_block(model: BlockModel) -> Block:
    try:
        block = block_from_dict(model.model_dump(exclude_none=True))
    except (KeyError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid block: {e}")

    # Explicit dates must be valid before the block is placed
    if isinstance(block, MetricBlock):
        resolve_time_range(block.time_range)
    return block


def pagination_from_query(page: int, rows_per_page: int) -> Pagination:
    try:
        return Pagination(page=page, rows_per_page=rows_per_page)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def session_to_detail(session: ReportSession) -> ReportDetail:
    columns = []
    for position, block in enumerate(session.layout.slots):
        if block is None:
            columns.append(ColumnResponse(position=position))
            continue
        columns.append(ColumnResponse(
            position=position,
            block=block_to_dict(block),
            labels=column_labels(block),
            description=describe_time_range(block.time_range) if isinstance(block, MetricBlock) else None,
        ))
    return ReportDetail(
        id=session.report_id,
        name=session.name,
        property=session.property,
        columns=columns,
        total_rows=len(session.rows),
        fetched_at=session.fetched_at,
    )


# =============================================================================
# REPORTS
# =============================================================================

@router.post("", response_model=ReportSummary, status_code=201)
async def create_report(request: CreateReportRequest):
    """Create an empty report for a property."""
    snapshot = repository.create_report(request.name, request.property)
    return ReportSummary(
        id=snapshot.id,
        name=snapshot.name,
        property=snapshot.property,
        created_at=snapshot.created_at,
        updated_at=snapshot.updated_at,
    )


@router.get("", response_model=ReportListResponse)
async def list_reports(property: Optional[str] = Query(None)):
    """List reports, newest first."""
    reports = repository.list_reports(property)
    return ReportListResponse(
        reports=[ReportSummary(**r) for r in reports],
        total=len(reports),
    )


@router.get("/{report_id}", response_model=ReportDetail)
async def get_report(
    report_id: UUID,
    reload: bool = Query(False, description="Re-hydrate from the saved snapshot"),
    registry: SessionRegistry = Depends(get_registry),
):
    return session_to_detail(registry.get(report_id, reload=reload))


@router.patch("/{report_id}", response_model=ReportDetail)
async def update_report(
    report_id: UUID,
    request: UpdateReportRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Rename a report and/or replace its layout; a rejected layout changes nothing."""
    session = registry.get(report_id)

    if request.blocks is not None:
        positioned = [(item.position, parse_block(item.block)) for item in request.blocks]
        session.layout.replace_layout(positioned)
        session.save()

    if request.name is not None:
        repository.rename_report(report_id, request.name)
        session.name = request.name

    return session_to_detail(session)


@router.delete("/{report_id}", status_code=204)
async def delete_report(
    report_id: UUID,
    registry: SessionRegistry = Depends(get_registry),
):
    repository.delete_report(report_id)
    registry.discard(report_id)
    return None


# =============================================================================
# COLUMNS
# =============================================================================

@router.post("/{report_id}/columns", response_model=ReportDetail, status_code=201)
async def add_column(
    report_id: UUID,
    request: AddColumnRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(report_id)
    block = parse_block(request.block)

    if request.position is None:
        session.layout.append_column(block)
    else:
        session.layout.insert_at(block, request.position)

    session.save()
    return session_to_detail(session)


@router.post("/{report_id}/columns/empty", response_model=ReportDetail, status_code=201)
async def add_empty_column(
    report_id: UUID,
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(report_id)
    session.layout.append_empty_column()
    return session_to_detail(session)


@router.post("/{report_id}/columns/move", response_model=ReportDetail)
async def move_column(
    report_id: UUID,
    request: MoveColumnRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(report_id)
    session.layout.move(request.from_index, request.to_index)
    session.save()
    return session_to_detail(session)


@router.delete("/{report_id}/columns/{index}", response_model=ReportDetail)
async def delete_column(
    report_id: UUID,
    index: int,
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(report_id)
    session.layout.delete_column(index)
    session.save()
    return session_to_detail(session)


@router.delete("/{report_id}/blocks/{block_id}", response_model=ReportDetail)
async def remove_block(
    report_id: UUID,
    block_id: str,
    compact: bool = Query(False, description="Delete the column instead of clearing it"),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(report_id)
    session.layout.remove(block_id, compact=compact)
    session.save()
    return session_to_detail(session)


# =============================================================================
# DATA
# =============================================================================

@router.post("/{report_id}/fetch", response_model=FetchResponse)
async def fetch_data(
    report_id: UUID,
    request: FetchRequest,
    registry: SessionRegistry = Depends(get_registry),
    fetcher: AnalyticsFetcher = Depends(get_fetcher),
    annotator: IntentAnnotator = Depends(get_annotator),
):
    """Fetch every requested range, reconcile, classify intent, and save."""
    session = registry.get(report_id)
    summary = await session.fetch_data(fetcher, annotator, row_limit=request.row_limit)

    return FetchResponse(
        ranges=summary.ranges,
        fetched_rows=summary.fetched_rows,
        queries=summary.queries,
        missing_cells=summary.missing_cells,
        classification_method=summary.annotation.parse_method,
        classification_degraded=summary.classification_degraded,
        defaulted_intents=summary.annotation.defaulted_count,
        fetched_at=summary.fetched_at,
    )


@router.get("/{report_id}/rows", response_model=PageResponse)
async def get_rows(
    report_id: UUID,
    page: int = Query(1),
    rows_per_page: int = Query(DEFAULT_ROWS_PER_PAGE),
    registry: SessionRegistry = Depends(get_registry),
):
    session = registry.get(report_id)
    view = session.render_page(pagination_from_query(page, rows_per_page))
    return PageResponse(**asdict(view))


@router.get("/{report_id}/export")
async def export_report(
    report_id: UUID,
    scope: ExportScope = Query(ExportScope.ALL),
    page: int = Query(1),
    rows_per_page: int = Query(DEFAULT_ROWS_PER_PAGE),
    registry: SessionRegistry = Depends(get_registry),
):
    """Download the report as CSV from the rows already in memory."""
    session = registry.get(report_id)
    content = session.export(scope=scope, pagination=pagination_from_query(page, rows_per_page))
    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
    )
