"""
Engine and session lifecycle for the report store.

The engine is built lazily from the environment on first use. reset_engine()
throws it away so a changed DATABASE_URL or SQLITE_PATH takes effect.
"""

import os
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from .models import Base

logger = logging.getLogger(__name__)

URL_ENV_VARS = ("DATABASE_URL", "POSTGRES_URL")
DEFAULT_SQLITE_PATH = "gsc_reports.db"

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """First of DATABASE_URL / POSTGRES_URL, else a local SQLite file."""
    for name in URL_ENV_VARS:
        url = os.getenv(name)
        if not url:
            continue
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        logger.info(f"Database URL taken from {name}")
        return url

    path = os.getenv("SQLITE_PATH", DEFAULT_SQLITE_PATH)
    logger.warning(f"No database URL configured; reports stored in SQLite file {path}")
    return f"sqlite:///{path}"


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    # Block and row cascades rely on ON DELETE CASCADE
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_engine(url: Optional[str] = None) -> Engine:
    url = url or get_database_url()
    echo = os.getenv("SQL_DEBUG", "false").lower() == "true"

    if not url.startswith("sqlite"):
        logger.info("Creating pooled engine")
        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_recycle=1800,
            pool_pre_ping=True,
            echo=echo,
        )

    engine = create_engine(url, connect_args={"check_same_thread": False}, echo=echo)
    _enable_sqlite_foreign_keys(engine)
    logger.info("Creating SQLite engine")
    return engine


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def reset_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine, _session_factory = None, None


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        # Snapshots are read after commit, so keep attributes loaded
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    return _session_factory


@contextmanager
def get_db_context() -> Iterator[Session]:
    """
    One unit of work: commit if the block finishes, roll back if it raises.

        with get_db_context() as db:
            db.get(Report, report_id)
    """
    db = get_session_factory()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(drop_all: bool = False) -> None:
    """Create the report tables, optionally dropping existing ones first."""
    engine = get_engine()
    if drop_all:
        logger.warning("Dropping report tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.info("Report tables ready")


def check_db_connection() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
    return True
