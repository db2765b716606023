"""
Message Template Models
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class MessageTemplate(BaseModel):
    """A Slack message template with `{token}` placeholders."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Template identifier, e.g. approval-request")
    name: str
    description: str = ""
    channel: str
    message_template: str
    enabled: bool = True
    trigger_event: Optional[str] = None
    category: str = "general"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
