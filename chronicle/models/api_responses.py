"""
API Request/Response Models

Pydantic models for consistent API request and response structures.
Webhook, regeneration and template payloads use the camelCase keys the
dashboard and Jira automation send; field names stay snake_case in Python.
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime

from chronicle.models.changelog import ChangelogEntry, ChangelogCategory


class CamelModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)


class WebhookResponse(CamelModel):
    """Response for POST /api/jira-webhook."""

    success: bool = True
    message: str
    changelog_created: bool = Field(False, alias="changelogCreated")
    entry_id: Optional[str] = Field(None, alias="entryId")


class ApprovalRequest(BaseModel):
    """Human decision on a pending changelog entry."""

    approval_status: Literal["approved", "rejected"]
    customer_facing_title: Optional[str] = None
    public_visibility: Optional[bool] = None
    source_data: Optional[Dict[str, Any]] = None
    version: Optional[str] = None
    release_date: Optional[datetime] = None
    approved_by: Optional[str] = None
    expected_revision: Optional[int] = Field(
        None, description="Revision the reviewer last saw; stale values are rejected"
    )


class PublishRequest(BaseModel):
    """Optional release details supplied when publishing."""

    version: Optional[str] = None
    release_date: Optional[datetime] = None
    expected_revision: Optional[int] = None


class RegenerationRequest(CamelModel):
    """Request to regenerate a pending draft with related-story context."""

    entry_id: Optional[str] = Field(None, alias="entryId")
    related_stories: List[str] = Field(default_factory=list, alias="relatedStories")
    expected_revision: Optional[int] = Field(None, alias="expectedRevision")


class EnhancedContent(CamelModel):
    """The regenerated customer-facing copy."""

    customer_facing_title: str
    customer_facing_description: str
    highlights: List[str] = Field(default_factory=list)
    breaking_changes: bool = False
    migration_notes: Optional[str] = None
    category: ChangelogCategory


class RegenerationResponse(CamelModel):
    """Response for POST /api/regenerate-changelog."""

    success: bool = True
    message: str
    enhanced_content: EnhancedContent = Field(..., alias="enhancedContent")
    related_stories_requested: int = Field(..., alias="relatedStoriesRequested")
    related_stories_processed: int = Field(..., alias="relatedStoriesProcessed")
    failed_stories: List[str] = Field(default_factory=list, alias="failedStories")
    entry: ChangelogEntry


class TemplateRequest(CamelModel):
    """Save a template, or render it with sample data when action is test_template."""

    template_id: str = Field(..., alias="templateId")
    message_template: Optional[str] = Field(None, alias="messageTemplate")
    channel: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    action: Optional[Literal["save", "test_template"]] = None
    test_data: Optional[Dict[str, Any]] = Field(None, alias="testData")


class TemplatePreview(CamelModel):
    """Result of rendering a template without sending it."""

    success: bool = True
    template_id: str = Field(..., alias="templateId")
    channel: Optional[str] = None
    preview_message: str = Field(..., alias="previewMessage")
    length: int
    within_limit: bool = Field(..., alias="withinLimit")
    used_tokens: List[str] = Field(default_factory=list, alias="usedTokens")
    unknown_tokens: List[str] = Field(default_factory=list, alias="unknownTokens")


class ChangelogListResponse(BaseModel):
    """Response for GET /api/changelog."""

    entries: List[ChangelogEntry]
    total: int
    stats: Dict[str, int] = Field(default_factory=dict)
