"""
Database Package

SQLAlchemy models, session management, and the report repository.
"""

from .models import Base, Report, ReportBlock, QueryRow
from .session import (
    get_database_url,
    get_engine,
    reset_engine,
    get_db_context,
    init_db,
    check_db_connection,
)
from .repository import (
    create_report,
    list_reports,
    rename_report,
    delete_report,
    load_snapshot,
    save_snapshot,
)

__all__ = [
    # Models
    "Base",
    "Report",
    "ReportBlock",
    "QueryRow",
    # Session
    "get_database_url",
    "get_engine",
    "reset_engine",
    "get_db_context",
    "init_db",
    "check_db_connection",
    # Repository
    "create_report",
    "list_reports",
    "rename_report",
    "delete_report",
    "load_snapshot",
    "save_snapshot",
]
