"""
SQLAlchemy table definitions for changelog entries and Slack message templates.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.sql import func

from chronicle.storage.database import Base


class ChangelogEntryRecord(Base):
    __tablename__ = "changelog_entries"

    id = Column(String(36), primary_key=True)
    source_issue_key = Column(String(64), nullable=False)
    customer_facing_title = Column(String(500), nullable=False, default="")
    customer_facing_description = Column(Text, nullable=False, default="")
    highlights = Column(JSON, nullable=False, default=list)
    category = Column(String(20), nullable=False, default="improved")
    target_audience = Column(String(50), nullable=False, default="customers")
    content_type = Column(String(50), nullable=False, default="changelog_entry")
    quality_score = Column(Float, nullable=False, default=0.0)
    approval_status = Column(String(20), nullable=False, default="draft")
    public_visibility = Column(Boolean, nullable=False, default=False)
    public_changelog_visible = Column(Boolean, nullable=False, default=False)
    version = Column(String(50), nullable=False, default="TBD")
    release_date = Column(DateTime(timezone=True))
    approved_at = Column(DateTime(timezone=True))
    breaking_changes = Column(Boolean, nullable=False, default=False)
    migration_notes = Column(Text)
    tldr = Column(Text)
    estimated_impact = Column(String(20))
    user_segments = Column(JSON, nullable=False, default=list)
    source_data = Column(JSON, nullable=False, default=dict)  # SourceData
    generation_metadata = Column(JSON, nullable=False, default=dict)  # GenerationMetadata
    tags = Column(JSON, nullable=False, default=list)
    sync_back_pending = Column(Boolean, nullable=False, default=False)
    sync_back_error = Column(Text)
    synced_at = Column(DateTime(timezone=True))
    revision = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        # At most one non-rejected entry per issue key
        Index(
            "uq_changelog_active_issue",
            "source_issue_key",
            unique=True,
            sqlite_where=text("approval_status != 'rejected'"),
            postgresql_where=text("approval_status != 'rejected'"),
        ),
        Index("idx_changelog_status", "approval_status"),
        Index("idx_changelog_public", "public_changelog_visible", "release_date"),
    )


class MessageTemplateRecord(Base):
    __tablename__ = "message_templates"

    id = Column(String(100), primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    channel = Column(String(100), nullable=False)
    message_template = Column(Text, nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    trigger_event = Column(String(100))
    category = Column(String(50), nullable=False, default="general")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
