"""
SQLAlchemy Models for Saved Reports

A report owns its blocks and its reconciled rows; both are replaced
wholesale on every save and deleted with the report.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, DateTime, Text,
    ForeignKey, Index, UniqueConstraint, JSON, Uuid,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Report(Base):
    """A saved report for one Search Console property"""
    __tablename__ = "reports"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    property = Column(String(512), nullable=False)  # sc-domain:example.com or URL prefix

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    fetched_at = Column(DateTime)  # Last completed fetch cycle

    # Relationships
    blocks = relationship(
        "ReportBlock", back_populates="report",
        cascade="all, delete-orphan", order_by="ReportBlock.position",
    )
    rows = relationship(
        "QueryRow", back_populates="report",
        cascade="all, delete-orphan", order_by="QueryRow.position",
    )

    __table_args__ = (
        Index("idx_report_property", "property"),
        Index("idx_report_created", "created_at"),
    )


class ReportBlock(Base):
    """A block placed in one column of a report"""
    __tablename__ = "report_blocks"

    id = Column(Uuid, primary_key=True, default=uuid4)
    report_id = Column(Uuid, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False)

    position = Column(Integer, nullable=False)  # Slot index, gaps allowed
    block_id = Column(String(100), nullable=False)
    block_type = Column(String(20), nullable=False)  # metric, intent
    metric = Column(String(20))  # clicks, impressions, ctr, position
    time_range = Column(JSON)  # "last7days" or {"startDate": ..., "endDate": ...}

    report = relationship("Report", back_populates="blocks")

    __table_args__ = (
        UniqueConstraint("report_id", "position", name="uq_report_block_position"),
    )


class QueryRow(Base):
    """One reconciled query row of a report"""
    __tablename__ = "query_rows"

    id = Column(Uuid, primary_key=True, default=uuid4)
    report_id = Column(Uuid, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False)

    position = Column(Integer, nullable=False)  # Reconciled order
    query = Column(Text, nullable=False)
    metrics = Column(JSON, default=dict)  # data_key -> value, null for no data
    metric_keys = Column(JSON, default=list)  # [{"metric": ..., "timeRange": ...}]
    intent = Column(Text)
    category = Column(String(50))

    report = relationship("Report", back_populates="rows")

    __table_args__ = (
        Index("idx_query_row_report", "report_id", "position"),
    )
