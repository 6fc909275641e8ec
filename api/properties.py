"""
API Endpoints for Search Console Properties

Lists the properties the caller's Google token can read.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from report_builder.collector import SearchConsoleClient, SearchConsoleError

from .dependencies import get_search_console_client

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/properties",
    tags=["Properties"],
)


class PropertyResponse(BaseModel):
    site_url: str
    permission_level: str


class PropertyListResponse(BaseModel):
    properties: List[PropertyResponse]
    total: int


@router.get("", response_model=PropertyListResponse)
async def list_properties(client: SearchConsoleClient = Depends(get_search_console_client)):
    try:
        properties = await client.list_properties()
    except SearchConsoleError as e:
        logger.error(f"Failed to list properties: {e}")
        status_code = e.status_code if e.status_code in (401, 403) else 502
        raise HTTPException(status_code=status_code, detail=str(e))

    return PropertyListResponse(
        properties=[PropertyResponse(**p) for p in properties],
        total=len(properties),
    )
