"""
Issue Models

Normalized view of a Jira issue as the pipeline consumes it.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class IssueEvent(BaseModel):
    """An eligible, normalized issue lifecycle event."""

    issue_key: str = Field(..., description="Jira issue key, e.g. PRESS-100")
    issue_id: Optional[str] = Field(None, description="Jira internal issue id")
    summary: str = Field(..., description="Issue summary (technical title)")
    description: str = Field("", description="Issue description as plain text")
    status_name: Optional[str] = Field(None, description="Display name of the status")
    status_category: Optional[str] = Field(None, description="Status category key")
    labels: List[str] = Field(default_factory=list)
    priority: str = Field("Medium", description="Jira priority name")
    issue_type: Optional[str] = None
    reporter: Optional[str] = None
    assignee: Optional[str] = None
    components: List[str] = Field(default_factory=list)
    webhook_event: Optional[str] = None
    changelog_items: List[Dict[str, Any]] = Field(default_factory=list)
    raw_payload: Dict[str, Any] = Field(default_factory=dict, exclude=True)


class RelatedStory(BaseModel):
    """A story fetched from Jira to enrich a regeneration prompt."""

    key: str
    summary: str
    description: str = ""
    status: Optional[str] = None
    issue_type: Optional[str] = None
    priority: Optional[str] = None
