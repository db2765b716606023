"""
Changelog Store

The only component that changes a changelog entry's approval state.

State machine:
    draft → pending_review → {approved, rejected}
    approved → published

Every transition is a compare-and-swap on the entry's `revision`:
    UPDATE ... WHERE id = :id AND revision = :seen AND approval_status IN (:allowed)
A caller holding a stale revision, or losing a race to another writer,
gets ConcurrentModificationError and must re-read the entry.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from chronicle.exceptions import (
    ConcurrentModificationError,
    DuplicateEvent,
    EntryNotFoundError,
    InvalidStateError,
    ValidationError,
)
from chronicle.models.changelog import (
    ApprovalStatus,
    ChangelogCategory,
    ChangelogDraft,
    ChangelogEntry,
    GenerationMetadata,
    SourceData,
)
from chronicle.models.issue import IssueEvent
from chronicle.storage.database import Database
from chronicle.storage.tables import ChangelogEntryRecord
from chronicle.utils.helpers import map_priority

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChangelogStore:
    """Persistence and state transitions for changelog entries."""

    def __init__(self, database: Database):
        self.database = database

    # Idempotency guard

    def claim_issue(self, event: IssueEvent) -> ChangelogEntry:
        """
        Atomically create a draft entry for an issue, unless an active one exists.

        The partial unique index on (source_issue_key) where status != 'rejected'
        turns this into an insert-if-absent, so concurrent duplicate deliveries
        cannot both succeed.

        Args:
            event: The eligible issue event

        Returns:
            The new draft entry

        Raises:
            DuplicateEvent: If a non-rejected entry already exists for the issue key
        """
        now = _utcnow()
        source_data = SourceData(
            jira_story_key=event.issue_key,
            jira_issue_id=event.issue_id,
            technical_summary=event.summary,
            technical_description=event.description or None,
            priority=event.priority,
            priority_level=map_priority(event.priority),
            labels=event.labels,
            components=event.components,
            assignee=event.assignee,
            reporter=event.reporter,
            jira_status=event.status_name,
            needs_approval=True,
        )
        record = ChangelogEntryRecord(
            id=str(uuid.uuid4()),
            source_issue_key=event.issue_key,
            customer_facing_title="",
            customer_facing_description="",
            highlights=[],
            approval_status=ApprovalStatus.DRAFT.value,
            source_data=source_data.model_dump(mode="json"),
            generation_metadata=GenerationMetadata().model_dump(mode="json"),
            tags=[event.issue_key],
            revision=1,
            created_at=now,
            updated_at=now,
        )

        try:
            with self.database.session() as session:
                session.add(record)
        except IntegrityError as e:
            existing = self.find_active(event.issue_key)
            logger.info(f"Duplicate event for {event.issue_key}, active entry exists")
            raise DuplicateEvent(
                event.issue_key, existing.id if existing else None
            ) from e

        logger.info(f"Claimed {event.issue_key} as draft entry {record.id}")
        return self._to_model(record)

    # Reads

    def get(self, entry_id: str) -> ChangelogEntry:
        """
        Raises:
            EntryNotFoundError: If no entry has this id
        """
        with self.database.session() as session:
            record = session.get(ChangelogEntryRecord, entry_id)
            if record is None:
                raise EntryNotFoundError(entry_id)
            return self._to_model(record)

    def find_active(self, issue_key: str) -> Optional[ChangelogEntry]:
        """Return the non-rejected entry for an issue key, if any."""
        with self.database.session() as session:
            record = session.scalars(
                select(ChangelogEntryRecord).where(
                    ChangelogEntryRecord.source_issue_key == issue_key,
                    ChangelogEntryRecord.approval_status != ApprovalStatus.REJECTED.value,
                )
            ).first()
            return self._to_model(record) if record else None

    def list_entries(
        self,
        status: Optional[ApprovalStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[ChangelogEntry], int]:
        """List entries newest first, optionally filtered by status. Returns (page, total)."""
        query = select(ChangelogEntryRecord)
        count_query = select(func.count()).select_from(ChangelogEntryRecord)
        if status is not None:
            query = query.where(ChangelogEntryRecord.approval_status == status.value)
            count_query = count_query.where(
                ChangelogEntryRecord.approval_status == status.value
            )

        query = query.order_by(ChangelogEntryRecord.created_at.desc()).limit(limit).offset(offset)
        with self.database.session() as session:
            records = session.scalars(query).all()
            total = session.scalar(count_query) or 0
            return [self._to_model(r) for r in records], total

    def list_public(
        self, category: Optional[ChangelogCategory] = None, limit: int = 50
    ) -> List[ChangelogEntry]:
        """Published, publicly visible entries with a release date, newest release first."""
        query = select(ChangelogEntryRecord).where(
            ChangelogEntryRecord.content_type == "changelog_entry",
            ChangelogEntryRecord.approval_status == ApprovalStatus.PUBLISHED.value,
            ChangelogEntryRecord.public_visibility.is_(True),
            ChangelogEntryRecord.public_changelog_visible.is_(True),
            ChangelogEntryRecord.release_date.is_not(None),
        )
        if category is not None:
            query = query.where(ChangelogEntryRecord.category == category.value)

        query = query.order_by(ChangelogEntryRecord.release_date.desc()).limit(limit)
        with self.database.session() as session:
            return [self._to_model(r) for r in session.scalars(query).all()]

    def status_counts(self) -> Dict[str, int]:
        """Number of entries per approval status (all statuses present, zero-filled)."""
        counts = {status.value: 0 for status in ApprovalStatus}
        with self.database.session() as session:
            rows = session.execute(
                select(
                    ChangelogEntryRecord.approval_status, func.count()
                ).group_by(ChangelogEntryRecord.approval_status)
            ).all()
        for status, count in rows:
            counts[status] = count
        return counts

    # Transitions

    def complete_draft(
        self,
        entry_id: str,
        draft: ChangelogDraft,
        metadata: GenerationMetadata,
        quality_score: float,
    ) -> ChangelogEntry:
        """draft → pending_review with the generated (or placeholder) content."""

        def values(record: ChangelogEntryRecord) -> Dict[str, Any]:
            source_data = SourceData.model_validate(record.source_data or {})
            source_data.category = draft.category.value
            source_data.generated_by = metadata.provider
            return {
                **self._content_values(draft),
                "quality_score": quality_score,
                "approval_status": ApprovalStatus.PENDING_REVIEW.value,
                "source_data": source_data.model_dump(mode="json"),
                "generation_metadata": metadata.model_dump(mode="json"),
                "tags": self._tags(record.source_issue_key, draft.category, metadata),
            }

        return self._transition(
            entry_id, "complete", [ApprovalStatus.DRAFT], None, values
        )

    def abandon_draft(self, entry_id: str, reason: str) -> ChangelogEntry:
        """
        draft → rejected when ingestion fails after the claim.

        Frees the issue key so a redelivery of the webhook can claim it again.
        """

        def values(record: ChangelogEntryRecord) -> Dict[str, Any]:
            metadata = GenerationMetadata.model_validate(record.generation_metadata or {})
            metadata.auto_generated = False
            metadata.provider_errors = [*metadata.provider_errors, reason]
            metadata.approval_method = "abandoned"
            return {
                "approval_status": ApprovalStatus.REJECTED.value,
                "generation_metadata": metadata.model_dump(mode="json"),
            }

        return self._transition(
            entry_id, "abandon", [ApprovalStatus.DRAFT], None, values
        )

    def replace_content(
        self,
        entry_id: str,
        draft: ChangelogDraft,
        metadata: GenerationMetadata,
        related_stories: Iterable[str] = (),
        expected_revision: Optional[int] = None,
    ) -> ChangelogEntry:
        """
        Regeneration: pending_review → pending_review with new content.

        Raises:
            InvalidStateError: If the entry is no longer pending review
            ConcurrentModificationError: If the entry changed since `expected_revision`
        """

        def values(record: ChangelogEntryRecord) -> Dict[str, Any]:
            source_data = SourceData.model_validate(record.source_data or {})
            source_data.category = draft.category.value
            source_data.related_stories = list(related_stories)
            source_data.generated_by = metadata.provider

            previous = GenerationMetadata.model_validate(record.generation_metadata or {})
            merged = previous.model_copy(
                update={
                    "provider": metadata.provider,
                    "model": metadata.model,
                    "needs_manual_review": False,
                    "fallback_used": metadata.fallback_used,
                    "attempts": metadata.attempts,
                    "provider_errors": metadata.provider_errors,
                    "regenerated_at": _utcnow(),
                    "related_stories_used": list(related_stories),
                }
            )
            return {
                **self._content_values(draft),
                "source_data": source_data.model_dump(mode="json"),
                "generation_metadata": merged.model_dump(mode="json"),
                "tags": self._tags(record.source_issue_key, draft.category, merged),
            }

        return self._transition(
            entry_id,
            "regenerate",
            [ApprovalStatus.PENDING_REVIEW],
            expected_revision,
            values,
        )

    def approve(
        self,
        entry_id: str,
        title: Optional[str] = None,
        public_visibility: Optional[bool] = None,
        source_data: Optional[Dict[str, Any]] = None,
        version: Optional[str] = None,
        release_date: Optional[datetime] = None,
        approved_by: Optional[str] = None,
        approval_method: str = "manual",
        expected_revision: Optional[int] = None,
    ) -> ChangelogEntry:
        """
        pending_review → approved.

        Raises:
            ValidationError: If neither the request nor the entry has a non-empty title
            InvalidStateError: If the entry is not pending review
            ConcurrentModificationError: If the entry changed since `expected_revision`
        """

        def values(record: ChangelogEntryRecord) -> Dict[str, Any]:
            final_title = (title if title is not None else record.customer_facing_title or "").strip()
            if not final_title:
                raise ValidationError("customer_facing_title is required to approve an entry")

            merged_source = {**(record.source_data or {}), **(source_data or {})}
            merged_source["needs_approval"] = False
            metadata = GenerationMetadata.model_validate(record.generation_metadata or {})
            metadata.approved_by = approved_by
            metadata.approval_method = approval_method

            result = {
                "customer_facing_title": final_title,
                "approval_status": ApprovalStatus.APPROVED.value,
                "approved_at": _utcnow(),
                "source_data": SourceData.model_validate(merged_source).model_dump(mode="json"),
                "generation_metadata": metadata.model_dump(mode="json"),
            }
            if public_visibility is not None:
                result["public_visibility"] = public_visibility
            if version:
                result["version"] = version
            if release_date is not None:
                result["release_date"] = release_date
            return result

        return self._transition(
            entry_id,
            "approve",
            [ApprovalStatus.PENDING_REVIEW],
            expected_revision,
            values,
        )

    def reject(
        self,
        entry_id: str,
        rejected_by: Optional[str] = None,
        expected_revision: Optional[int] = None,
    ) -> ChangelogEntry:
        """pending_review → rejected. Terminal for this entry; the issue key is freed."""

        def values(record: ChangelogEntryRecord) -> Dict[str, Any]:
            source = {**(record.source_data or {}), "needs_approval": False}
            metadata = GenerationMetadata.model_validate(record.generation_metadata or {})
            metadata.approved_by = rejected_by
            metadata.approval_method = "rejected"
            return {
                "approval_status": ApprovalStatus.REJECTED.value,
                "approved_at": None,
                "source_data": source,
                "generation_metadata": metadata.model_dump(mode="json"),
            }

        return self._transition(
            entry_id,
            "reject",
            [ApprovalStatus.PENDING_REVIEW],
            expected_revision,
            values,
        )

    def publish(
        self,
        entry_id: str,
        version: Optional[str] = None,
        release_date: Optional[datetime] = None,
        expected_revision: Optional[int] = None,
    ) -> ChangelogEntry:
        """approved → published. Visibility flip only; content is untouched."""

        def values(record: ChangelogEntryRecord) -> Dict[str, Any]:
            result = {
                "approval_status": ApprovalStatus.PUBLISHED.value,
                "public_visibility": True,
                "public_changelog_visible": True,
                "release_date": release_date or record.release_date or _utcnow(),
            }
            if version:
                result["version"] = version
            return result

        return self._transition(
            entry_id,
            "publish",
            [ApprovalStatus.APPROVED],
            expected_revision,
            values,
        )

    def record_sync_back(self, entry_id: str, error: Optional[str] = None) -> ChangelogEntry:
        """
        Record the outcome of a sync-back attempt.

        Only touches the sync-back flags, so it does not bump the revision and
        never conflicts with a reviewer's concurrent decision.
        """
        values: Dict[str, Any] = {
            "sync_back_pending": error is not None,
            "sync_back_error": error,
        }
        if error is None:
            values["synced_at"] = _utcnow()

        with self.database.session() as session:
            result = session.execute(
                update(ChangelogEntryRecord)
                .where(ChangelogEntryRecord.id == entry_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise EntryNotFoundError(entry_id)
        return self.get(entry_id)

    # Internals

    def _transition(
        self,
        entry_id: str,
        action: str,
        allowed: List[ApprovalStatus],
        expected_revision: Optional[int],
        build_values: Callable[[ChangelogEntryRecord], Dict[str, Any]],
    ) -> ChangelogEntry:
        allowed_values = [status.value for status in allowed]

        with self.database.session() as session:
            record = session.get(ChangelogEntryRecord, entry_id)
            if record is None:
                raise EntryNotFoundError(entry_id)

            # A stale reader must see the conflict, not a state error
            if expected_revision is not None and record.revision != expected_revision:
                raise ConcurrentModificationError(entry_id, expected_revision, record.revision)

            if record.approval_status not in allowed_values:
                raise InvalidStateError(entry_id, record.approval_status, action)

            seen_revision = record.revision
            values = build_values(record)
            values["revision"] = seen_revision + 1
            values["updated_at"] = _utcnow()

            result = session.execute(
                update(ChangelogEntryRecord)
                .where(
                    ChangelogEntryRecord.id == entry_id,
                    ChangelogEntryRecord.revision == seen_revision,
                    ChangelogEntryRecord.approval_status.in_(allowed_values),
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConcurrentModificationError(entry_id, seen_revision)

        entry = self.get(entry_id)
        logger.info(
            f"Entry {entry_id} ({entry.source_issue_key}): {action} → "
            f"{entry.approval_status.value} (revision {entry.revision})"
        )
        return entry

    @staticmethod
    def _content_values(draft: ChangelogDraft) -> Dict[str, Any]:
        return {
            "customer_facing_title": draft.customer_facing_title,
            "customer_facing_description": draft.customer_facing_description,
            "highlights": list(draft.highlights),
            "category": draft.category.value,
            "breaking_changes": draft.breaking_changes,
            "migration_notes": draft.migration_notes,
            "tldr": draft.tldr,
            "estimated_impact": draft.estimated_impact,
            "user_segments": list(draft.user_segments),
        }

    @staticmethod
    def _tags(
        issue_key: str, category: ChangelogCategory, metadata: GenerationMetadata
    ) -> List[str]:
        tags = [issue_key, category.value]
        if metadata.auto_generated:
            tags.append("auto-generated")
        if metadata.needs_manual_review:
            tags.append("needs-manual-review")
        return tags

    @staticmethod
    def _to_model(record: ChangelogEntryRecord) -> ChangelogEntry:
        return ChangelogEntry.model_validate(record)
