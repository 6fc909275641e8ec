"""
GSC Report Builder API

FastAPI application wiring:
1. Logging to stdout
2. Database initialization on startup
3. Report and property routers
4. Domain error -> HTTP status mapping
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI

from report_builder import __version__
from report_builder.database import init_db, check_db_connection
from report_builder.services import SessionRegistry
from report_builder.utils import get_settings

from .dependencies import register_error_handlers
from .properties import router as properties_router
from .reports import router as reports_router

settings = get_settings()

# Configure logging to stdout
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables before the first request."""
    logger.info("Initializing database...")
    init_db()
    if check_db_connection():
        logger.info("Database connection verified")
    else:
        logger.warning("Database connection check failed - continuing anyway")
    yield


app = FastAPI(
    title="GSC Report Builder",
    description="Search Console query reports with intent classification",
    version=__version__,
    lifespan=lifespan,
)

app.state.sessions = SessionRegistry(min_slots=settings.MIN_VISIBLE_COLUMNS)

register_error_handlers(app)
app.include_router(reports_router)
app.include_router(properties_router)


@app.get("/")
async def root():
    return {"status": "ok", "service": "GSC Report Builder"}


@app.get("/api/health")
async def health():
    """Health check including database status."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "database": "connected" if check_db_connection() else "disconnected",
    }
