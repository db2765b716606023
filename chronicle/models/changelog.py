"""
Changelog Models

Pydantic models for changelog entries, their approval lifecycle, and the
typed records stored alongside the customer-facing content.
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from enum import Enum


class ApprovalStatus(str, Enum):
    """Lifecycle state of a changelog entry."""

    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"


class ChangelogCategory(str, Enum):
    """Customer-facing change category."""

    ADDED = "added"
    IMPROVED = "improved"
    FIXED = "fixed"
    SECURITY = "security"
    DEPRECATED = "deprecated"


class ChangelogDraft(BaseModel):
    """Customer-facing copy produced by a content provider."""

    customer_facing_title: str
    customer_facing_description: str
    highlights: List[str] = Field(default_factory=list)
    category: ChangelogCategory = ChangelogCategory.IMPROVED
    breaking_changes: bool = False
    migration_notes: Optional[str] = None
    estimated_impact: Optional[str] = None
    user_segments: List[str] = Field(default_factory=list)
    tldr: Optional[str] = None


class SourceData(BaseModel):
    """Where the entry came from. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    jira_story_key: Optional[str] = None
    jira_issue_id: Optional[str] = None
    category: Optional[str] = None
    technical_summary: Optional[str] = None
    technical_description: Optional[str] = None
    priority: Optional[str] = None
    priority_level: Optional[str] = None
    labels: List[str] = Field(default_factory=list)
    components: List[str] = Field(default_factory=list)
    assignee: Optional[str] = None
    reporter: Optional[str] = None
    jira_status: Optional[str] = None
    related_stories: List[str] = Field(default_factory=list)
    needs_approval: bool = True
    generated_by: Optional[str] = None


class GenerationMetadata(BaseModel):
    """How the content was produced and who approved it. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    provider: Optional[str] = None
    model: Optional[str] = None
    auto_generated: bool = True
    needs_manual_review: bool = False
    fallback_used: bool = False
    attempts: int = 0
    provider_errors: List[str] = Field(default_factory=list)
    generated_at: Optional[datetime] = None
    regenerated_at: Optional[datetime] = None
    related_stories_used: List[str] = Field(default_factory=list)
    approved_by: Optional[str] = None
    approval_method: Optional[str] = None


class ChangelogEntry(BaseModel):
    """
    A persisted changelog entry.

    `revision` is the optimistic-concurrency token and increments on every
    transition. `version` is the release label shown to customers.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    source_issue_key: str
    customer_facing_title: str = ""
    customer_facing_description: str = ""
    highlights: List[str] = Field(default_factory=list)
    category: ChangelogCategory = ChangelogCategory.IMPROVED
    target_audience: str = "customers"
    content_type: str = "changelog_entry"
    quality_score: float = 0.0
    approval_status: ApprovalStatus = ApprovalStatus.DRAFT
    public_visibility: bool = False
    public_changelog_visible: bool = False
    version: str = "TBD"
    release_date: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    breaking_changes: bool = False
    migration_notes: Optional[str] = None
    tldr: Optional[str] = None
    estimated_impact: Optional[str] = None
    user_segments: List[str] = Field(default_factory=list)
    source_data: SourceData = Field(default_factory=SourceData)
    generation_metadata: GenerationMetadata = Field(default_factory=GenerationMetadata)
    tags: List[str] = Field(default_factory=list)
    sync_back_pending: bool = False
    sync_back_error: Optional[str] = None
    synced_at: Optional[datetime] = None
    revision: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
