"""
Changelog Pipeline Service

Orchestrates the changelog lifecycle for the HTTP layer:
1. Webhook → validate → claim issue → generate content → pending_review → notify
2. Approval decision → approve/reject → sync-back (approve only)
3. Regeneration with related stories → replace pending draft
4. Publish → notify product update

Notification and sync-back always run after the triggering transition has
committed; their failures are logged and never fail the request.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from chronicle.ai_core.generation.changelog_generator import ChangelogGenerator
from chronicle.exceptions import (
    ConcurrentModificationError,
    DuplicateEvent,
    FilteredEvent,
    InvalidStateError,
    RelatedStoriesUnavailableError,
    SyncBackError,
    ValidationError,
)
from chronicle.ingestion.validator import EventValidator
from chronicle.integrations.jira.stories import RelatedStoryResolver
from chronicle.integrations.slack.renderer import RenderResult, preview_template
from chronicle.models.changelog import ApprovalStatus, ChangelogCategory, ChangelogEntry
from chronicle.models.issue import IssueEvent
from chronicle.models.templates import MessageTemplate
from chronicle.services.notification_dispatcher import (
    NotificationDispatcher,
    NotificationRecord,
)
from chronicle.services.sync_back import SyncBackWriter
from chronicle.storage.changelog_store import ChangelogStore
from chronicle.storage.template_store import TemplateStore

logger = logging.getLogger(__name__)


@dataclass
class WebhookOutcome:
    created: bool
    message: str
    entry: Optional[ChangelogEntry] = None
    entry_id: Optional[str] = None
    notification: Optional[NotificationRecord] = None


@dataclass
class RegenerationOutcome:
    entry: ChangelogEntry
    requested: List[str]
    processed: List[str]
    failed: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.failed:
            return (
                f"Successfully regenerated content with {len(self.processed)} of "
                f"{len(self.requested)} related stories. Could not access: {', '.join(self.failed)}"
            )
        return (
            f"Successfully regenerated content with context from "
            f"{len(self.processed)} related stories"
        )


class ChangelogPipeline:
    """
    Entry point for every changelog operation.

    All collaborators are passed in; build_pipeline() wires the production set.
    """

    def __init__(
        self,
        validator: EventValidator,
        store: ChangelogStore,
        generator: ChangelogGenerator,
        dispatcher: NotificationDispatcher,
        sync_back_writer: SyncBackWriter,
        story_resolver: RelatedStoryResolver,
        templates: TemplateStore,
    ):
        self.validator = validator
        self.store = store
        self.generator = generator
        self.dispatcher = dispatcher
        self.sync_back_writer = sync_back_writer
        self.story_resolver = story_resolver
        self.templates = templates

    # Use case 1: webhook ingestion

    async def process_webhook(self, body: bytes) -> WebhookOutcome:
        """
        Process a Jira webhook delivery.

        Filtered and duplicate events are successful no-ops. If every AI provider
        fails, the entry is still created with placeholder content. If generation
        or the save is interrupted, the claimed draft is rejected so a redelivery
        can claim the issue again.

        Args:
            body: Raw request body

        Returns:
            WebhookOutcome (created is False for filtered/duplicate events)

        Raises:
            ValidationError: If the payload is malformed
        """
        try:
            event = self.validator.validate(body)
        except FilteredEvent as e:
            logger.info(f"Webhook filtered: {e.reason}")
            return WebhookOutcome(created=False, message=f"Event ignored: {e.reason}")

        try:
            draft_entry = await asyncio.to_thread(self.store.claim_issue, event)
        except DuplicateEvent as e:
            return WebhookOutcome(
                created=False,
                message=f"Changelog entry already exists for {event.issue_key}",
                entry_id=e.entry_id,
            )

        try:
            result = await self.generator.generate(event)
            entry = await asyncio.to_thread(
                self.store.complete_draft,
                draft_entry.id,
                result.draft,
                result.metadata,
                result.quality_score,
            )
        except (Exception, asyncio.CancelledError) as e:
            await self._abandon(draft_entry.id, event.issue_key, e)
            raise

        notification = await self.dispatcher.notify_pending_review(entry)

        if result.is_placeholder:
            message = f"Changelog entry created for {event.issue_key} (needs manual authoring)"
        else:
            message = f"Changelog entry created for {event.issue_key}"
        logger.info(
            f"{message}: entry={entry.id}, provider={result.metadata.provider}, "
            f"notified={notification.delivered}"
        )
        return WebhookOutcome(
            created=True,
            message=message,
            entry=entry,
            entry_id=entry.id,
            notification=notification,
        )

    async def _abandon(self, entry_id: str, issue_key: str, error: BaseException) -> None:
        """Release a claimed draft whose generation or save did not finish."""
        reason = f"Ingestion failed: {type(error).__name__}: {error}"
        logger.error(f"Abandoning draft {entry_id} for {issue_key}: {reason}")
        try:
            await asyncio.to_thread(self.store.abandon_draft, entry_id, reason)
        except Exception as e:
            logger.error(f"Could not release draft {entry_id} for {issue_key}: {e}", exc_info=True)

    # Use case 2: approval decisions

    async def apply_decision(
        self,
        entry_id: str,
        approval_status: str,
        customer_facing_title: Optional[str] = None,
        public_visibility: Optional[bool] = None,
        source_data: Optional[Dict[str, Any]] = None,
        version: Optional[str] = None,
        release_date: Optional[datetime] = None,
        approved_by: Optional[str] = None,
        expected_revision: Optional[int] = None,
    ) -> ChangelogEntry:
        """Dispatch an approve/reject decision from the approval endpoint."""
        if approval_status == ApprovalStatus.APPROVED.value:
            return await self.approve(
                entry_id,
                title=customer_facing_title,
                public_visibility=public_visibility,
                source_data=source_data,
                version=version,
                release_date=release_date,
                approved_by=approved_by,
                expected_revision=expected_revision,
            )
        if approval_status == ApprovalStatus.REJECTED.value:
            return await self.reject(
                entry_id, rejected_by=approved_by, expected_revision=expected_revision
            )
        raise ValidationError(f"Unsupported approval_status: {approval_status}")

    async def approve(
        self,
        entry_id: str,
        title: Optional[str] = None,
        public_visibility: Optional[bool] = None,
        source_data: Optional[Dict[str, Any]] = None,
        version: Optional[str] = None,
        release_date: Optional[datetime] = None,
        approved_by: Optional[str] = None,
        expected_revision: Optional[int] = None,
    ) -> ChangelogEntry:
        """
        Approve an entry, then write the description back to Jira.

        A failed sync-back leaves `sync_back_pending` set; the approval stands.
        """
        entry = await asyncio.to_thread(
            self.store.approve,
            entry_id,
            title=title,
            public_visibility=public_visibility,
            source_data=source_data,
            version=version,
            release_date=release_date,
            approved_by=approved_by,
            expected_revision=expected_revision,
        )
        return await self._sync_back(entry)

    async def reject(
        self,
        entry_id: str,
        rejected_by: Optional[str] = None,
        expected_revision: Optional[int] = None,
    ) -> ChangelogEntry:
        return await asyncio.to_thread(
            self.store.reject,
            entry_id,
            rejected_by=rejected_by,
            expected_revision=expected_revision,
        )

    async def publish(
        self,
        entry_id: str,
        version: Optional[str] = None,
        release_date: Optional[datetime] = None,
        expected_revision: Optional[int] = None,
    ) -> ChangelogEntry:
        """approved → published, then announce the update in Slack."""
        entry = await asyncio.to_thread(
            self.store.publish,
            entry_id,
            version=version,
            release_date=release_date,
            expected_revision=expected_revision,
        )
        await self.dispatcher.notify_published(entry)
        return entry

    async def retry_sync_back(self, entry_id: str) -> ChangelogEntry:
        """
        Re-run sync-back for an approved or published entry.

        Raises:
            InvalidStateError: If the entry has not been approved
        """
        entry = await asyncio.to_thread(self.store.get, entry_id)
        if entry.approval_status not in (ApprovalStatus.APPROVED, ApprovalStatus.PUBLISHED):
            raise InvalidStateError(entry_id, entry.approval_status.value, "sync back")
        return await self._sync_back(entry)

    async def _sync_back(self, entry: ChangelogEntry) -> ChangelogEntry:
        error: Optional[str] = None
        try:
            await self.sync_back_writer.write(entry)
        except SyncBackError as e:
            logger.error(f"Sync-back failed for {entry.source_issue_key}: {e}")
            error = str(e)
        except Exception as e:
            logger.error(
                f"Unexpected sync-back error for {entry.source_issue_key}: {e}", exc_info=True
            )
            error = str(e)

        try:
            return await asyncio.to_thread(self.store.record_sync_back, entry.id, error)
        except Exception as e:
            logger.error(f"Could not record sync-back outcome for {entry.id}: {e}", exc_info=True)
            return entry

    # Use case 3: regeneration

    async def regenerate(
        self,
        entry_id: str,
        related_story_keys: List[str],
        expected_revision: Optional[int] = None,
    ) -> RegenerationOutcome:
        """
        Regenerate a pending draft using related stories as extra context.

        Unresolvable keys are reported in `failed` and excluded from the prompt.
        The content swap is a compare-and-swap against the revision read here,
        so an approval that lands while the AI call runs wins.

        Raises:
            ValidationError: If no story keys were supplied
            InvalidStateError: If the entry is not pending review
            RelatedStoriesUnavailableError: If none of the stories could be fetched
            ProviderError: If every AI provider failed
            ConcurrentModificationError: If the entry changed meanwhile
        """
        entry = await asyncio.to_thread(self.store.get, entry_id)
        if expected_revision is None:
            expected_revision = entry.revision
        elif expected_revision != entry.revision:
            raise ConcurrentModificationError(entry_id, expected_revision, entry.revision)

        if entry.approval_status != ApprovalStatus.PENDING_REVIEW:
            raise InvalidStateError(entry_id, entry.approval_status.value, "regenerate")

        resolved = await self.story_resolver.resolve(
            related_story_keys, exclude=entry.source_issue_key
        )
        if not resolved.requested:
            raise ValidationError("relatedStories must contain at least one story key")
        if not resolved.stories:
            raise RelatedStoriesUnavailableError(resolved.failed)

        result = await self.generator.regenerate(self._main_story(entry), resolved.stories)
        processed = [story.key for story in resolved.stories]

        updated = await asyncio.to_thread(
            self.store.replace_content,
            entry_id,
            result.draft,
            result.metadata,
            processed,
            expected_revision,
        )
        outcome = RegenerationOutcome(
            entry=updated,
            requested=resolved.requested,
            processed=processed,
            failed=resolved.failed,
        )
        logger.info(f"Regenerated {entry.source_issue_key}: {outcome.message}")
        return outcome

    @staticmethod
    def _main_story(entry: ChangelogEntry) -> IssueEvent:
        source = entry.source_data
        return IssueEvent(
            issue_key=entry.source_issue_key,
            issue_id=source.jira_issue_id,
            summary=source.technical_summary or entry.customer_facing_title,
            description=source.technical_description or entry.customer_facing_description,
            status_name=source.jira_status,
            labels=source.labels,
            priority=source.priority or "Medium",
            reporter=source.reporter,
            assignee=source.assignee,
            components=source.components,
        )

    # Reads

    async def get_entry(self, entry_id: str) -> ChangelogEntry:
        return await asyncio.to_thread(self.store.get, entry_id)

    async def list_entries(
        self, status: Optional[ApprovalStatus] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[ChangelogEntry], int, Dict[str, int]]:
        entries, total = await asyncio.to_thread(self.store.list_entries, status, limit, offset)
        stats = await asyncio.to_thread(self.store.status_counts)
        return entries, total, stats

    async def list_public(
        self, category: Optional[ChangelogCategory] = None, limit: int = 50
    ) -> List[ChangelogEntry]:
        return await asyncio.to_thread(self.store.list_public, category, limit)

    # Message templates

    async def list_templates(self) -> List[MessageTemplate]:
        return await asyncio.to_thread(self.templates.list)

    async def get_template(self, template_id: str) -> Optional[MessageTemplate]:
        return await asyncio.to_thread(self.templates.get, template_id)

    async def save_template(self, template: MessageTemplate) -> MessageTemplate:
        return await asyncio.to_thread(self.templates.save, template)

    def preview_template(
        self, message_template: str, sample_data: Optional[Dict[str, Any]] = None
    ) -> RenderResult:
        """Test-render a template with sample data. Nothing is sent."""
        return preview_template(message_template, sample_data)
