"""
Services: pipeline orchestration, notifications and sync-back.
"""

from chronicle.services.changelog_pipeline import (
    ChangelogPipeline,
    RegenerationOutcome,
    WebhookOutcome,
)
from chronicle.services.notification_dispatcher import NotificationDispatcher, NotificationRecord
from chronicle.services.sync_back import SyncBackWriter

__all__ = [
    "ChangelogPipeline",
    "RegenerationOutcome",
    "WebhookOutcome",
    "NotificationDispatcher",
    "NotificationRecord",
    "SyncBackWriter",
]
