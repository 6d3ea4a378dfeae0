"""
SQLAlchemy database models for the Research Report Gateway.

Generated reports and saved searches share the ``reports`` table and are
told apart by the ``type`` column. Uses async SQLAlchemy 2.0+ syntax.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportRecord(Base):
    """
    Database model for a persisted report or saved search.

    Rows are written once by a single insert and never updated. Every row
    belongs to the authenticated user that created it.
    """
    __tablename__ = "reports"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Unique identifier for the record"
    )
    user_id = Column(
        String,
        nullable=False,
        comment="Identity-provider id of the owning user"
    )
    title = Column(
        Text,
        nullable=False,
        comment="Original research query"
    )
    content = Column(
        Text,
        nullable=False,
        comment="Markdown report, or consolidated summary for saved searches"
    )
    papers = Column(
        JSON,
        nullable=True,
        comment="Papers returned by a saved search (title, authors, abstract, link)"
    )
    type = Column(
        String,
        nullable=True,
        comment="Record kind: NULL for generated reports, 'search' for saved searches"
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        comment="When this record was created"
    )

    __table_args__ = (
        Index("idx_reports_user_id", "user_id"),
        Index("idx_reports_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<ReportRecord(id={self.id}, title='{self.title[:50]}...', type='{self.type}')>"

    def to_pydantic(self):
        """
        Convert SQLAlchemy model to the StoredRecord schema.

        Returns:
            StoredRecord: Pydantic model instance
        """
        from app.models.schemas import StoredRecord

        return StoredRecord.model_validate(self)
