# Shared data models
from chronicle.models.issue import IssueEvent, RelatedStory
from chronicle.models.changelog import (
    ApprovalStatus,
    ChangelogCategory,
    ChangelogDraft,
    ChangelogEntry,
    GenerationMetadata,
    SourceData,
)
from chronicle.models.templates import MessageTemplate

__all__ = [
    "IssueEvent",
    "RelatedStory",
    "ApprovalStatus",
    "ChangelogCategory",
    "ChangelogDraft",
    "ChangelogEntry",
    "GenerationMetadata",
    "SourceData",
    "MessageTemplate",
]
