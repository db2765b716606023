"""
Wires the production pipeline from settings. Called once at startup.
"""

import logging
from typing import Optional

from chronicle.ai_core.generation.changelog_generator import ChangelogGenerator
from chronicle.ai_core.providers import build_provider
from chronicle.config import Settings, get_settings
from chronicle.ingestion.validator import EventValidator
from chronicle.integrations.jira.client import JiraClient
from chronicle.integrations.jira.stories import RelatedStoryResolver
from chronicle.integrations.slack.client import SlackNotifier
from chronicle.services.changelog_pipeline import ChangelogPipeline
from chronicle.services.notification_dispatcher import (
    APPROVAL_REQUEST_TEMPLATE,
    PRODUCT_UPDATE_TEMPLATE,
    NotificationDispatcher,
)
from chronicle.services.sync_back import SyncBackWriter
from chronicle.storage.changelog_store import ChangelogStore
from chronicle.storage.database import Database
from chronicle.storage.template_store import TemplateStore

logger = logging.getLogger(__name__)


def build_generator(settings: Settings) -> ChangelogGenerator:
    primary = build_provider(settings.ai_primary_provider, settings)

    fallback = None
    fallback_name = (settings.ai_fallback_provider or "").strip().lower()
    if fallback_name and fallback_name != settings.ai_primary_provider.strip().lower():
        fallback = build_provider(fallback_name, settings)

    logger.info(
        f"AI providers: primary={primary.name}, fallback={fallback.name if fallback else 'none'}"
    )
    return ChangelogGenerator(
        primary=primary,
        fallback=fallback,
        attempt_timeout=settings.ai_attempt_timeout,
        total_timeout=settings.ai_total_timeout,
        quality_score=settings.default_quality_score,
    )


def build_pipeline(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    generator: Optional[ChangelogGenerator] = None,
) -> ChangelogPipeline:
    """
    Build every collaborator and return the pipeline.

    Args:
        settings: Defaults to get_settings()
        database: Pre-built database (tests pass an in-memory one)
        generator: Pre-built generator (skips provider SDK setup)
    """
    settings = settings or get_settings()

    if database is None:
        database = Database(settings.database_url, echo=settings.debug)
    database.create_all()

    templates = TemplateStore(
        database,
        channels={
            APPROVAL_REQUEST_TEMPLATE: settings.slack_approval_channel,
            PRODUCT_UPDATE_TEMPLATE: settings.slack_updates_channel,
        },
    )
    jira_client = JiraClient(settings)

    return ChangelogPipeline(
        validator=EventValidator(settings),
        store=ChangelogStore(database),
        generator=generator or build_generator(settings),
        dispatcher=NotificationDispatcher(
            SlackNotifier(settings), templates, base_url=settings.base_url
        ),
        sync_back_writer=SyncBackWriter(jira_client, settings.jira_summary_field_id),
        story_resolver=RelatedStoryResolver(jira_client),
        templates=templates,
    )
