"""
End-to-end tests for ChangelogPipeline over an in-memory database and fakes.
"""

import asyncio

import pytest

from chronicle.exceptions import (
    ConcurrentModificationError,
    InvalidStateError,
    ProviderError,
    RelatedStoriesUnavailableError,
    ValidationError,
)
from chronicle.models.changelog import ApprovalStatus
from chronicle.storage.database import Database
from conftest import FakeJiraClient, FakeNotifier, FakeProvider, draft_json, webhook_body


async def _pending(pipeline):
    outcome = await pipeline.process_webhook(webhook_body())
    assert outcome.created is True
    return outcome.entry


class TestWebhookIngestion:
    @pytest.mark.asyncio
    async def test_done_customer_impact_issue_creates_pending_entry(self, make_pipeline):
        pipeline, parts = make_pipeline()

        outcome = await pipeline.process_webhook(webhook_body())

        entry = outcome.entry
        assert outcome.created is True
        assert outcome.message == "Changelog entry created for PRESS-100"
        assert entry.source_issue_key == "PRESS-100"
        assert entry.approval_status == ApprovalStatus.PENDING_REVIEW
        assert entry.customer_facing_title == "Export reports to PDF"
        assert entry.quality_score == 0.85
        assert entry.generation_metadata.provider == "primary"
        assert entry.source_data.needs_approval is True
        assert outcome.notification.delivered is True
        assert parts["notifier"].messages[0][0] == "#content-approvals"

    @pytest.mark.asyncio
    async def test_filtered_event_creates_nothing(self, make_pipeline):
        pipeline, parts = make_pipeline()

        outcome = await pipeline.process_webhook(webhook_body(labels=["internal"]))

        assert outcome.created is False
        assert outcome.message.startswith("Event ignored")
        entries, total, _ = await pipeline.list_entries()
        assert total == 0
        assert parts["primary"].calls == 0
        assert parts["notifier"].messages == []

    @pytest.mark.asyncio
    async def test_redelivery_is_idempotent(self, make_pipeline):
        pipeline, parts = make_pipeline()

        first = await pipeline.process_webhook(webhook_body())
        second = await pipeline.process_webhook(webhook_body())

        assert second.created is False
        assert second.entry_id == first.entry_id
        assert "already exists" in second.message
        entries, total, _ = await pipeline.list_entries()
        assert total == 1
        assert parts["primary"].calls == 1
        assert len(parts["notifier"].messages) == 1

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self, make_pipeline):
        pipeline, _ = make_pipeline()

        with pytest.raises(ValidationError):
            await pipeline.process_webhook(b'{"issue": {}}')

    @pytest.mark.asyncio
    async def test_all_providers_failing_still_creates_entry(self, make_pipeline):
        pipeline, _ = make_pipeline(
            primary=FakeProvider("primary", [RuntimeError("primary down")]),
            fallback=FakeProvider("fallback", [RuntimeError("fallback down")]),
        )

        outcome = await pipeline.process_webhook(webhook_body())

        entry = outcome.entry
        assert outcome.created is True
        assert "needs manual authoring" in outcome.message
        assert entry.approval_status == ApprovalStatus.PENDING_REVIEW
        assert entry.customer_facing_title == "Add PDF export to reports"
        assert entry.generation_metadata.auto_generated is False
        assert entry.generation_metadata.needs_manual_review is True
        assert "needs-manual-review" in entry.tags

    @pytest.mark.asyncio
    async def test_fallback_provider_is_recorded(self, make_pipeline):
        pipeline, _ = make_pipeline(
            primary=FakeProvider("primary", [RuntimeError("timeout")]),
            fallback=FakeProvider("fallback", [draft_json(title="Written by fallback")]),
        )

        entry = (await pipeline.process_webhook(webhook_body())).entry

        assert entry.customer_facing_title == "Written by fallback"
        assert entry.generation_metadata.fallback_used is True
        assert entry.source_data.generated_by == "fallback"

    @pytest.mark.asyncio
    async def test_failed_notification_does_not_change_state(self, make_pipeline):
        pipeline, _ = make_pipeline(notifier=FakeNotifier(fail=True))

        outcome = await pipeline.process_webhook(webhook_body())

        assert outcome.created is True
        assert outcome.notification.delivered is False
        stored = await pipeline.get_entry(outcome.entry_id)
        assert stored.approval_status == ApprovalStatus.PENDING_REVIEW


    @pytest.mark.asyncio
    async def test_failed_save_releases_issue_for_redelivery(self, make_pipeline, monkeypatch):
        pipeline, parts = make_pipeline()
        complete_draft = pipeline.store.complete_draft
        calls = []

        def complete_draft_failing_once(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise RuntimeError("database went away")
            return complete_draft(*args, **kwargs)

        monkeypatch.setattr(pipeline.store, "complete_draft", complete_draft_failing_once)

        with pytest.raises(RuntimeError):
            await pipeline.process_webhook(webhook_body())
        outcome = await pipeline.process_webhook(webhook_body())

        assert outcome.created is True
        entries, total, stats = await pipeline.list_entries()
        assert total == 2
        assert stats["draft"] == 0
        assert stats["rejected"] == 1
        assert stats["pending_review"] == 1
        abandoned = next(e for e in entries if e.approval_status == ApprovalStatus.REJECTED)
        assert "database went away" in abandoned.generation_metadata.provider_errors[-1]
        assert len(parts["notifier"].messages) == 1

    @pytest.mark.asyncio
    async def test_cancelled_generation_releases_issue(self, make_pipeline):
        pipeline, _ = make_pipeline(
            primary=FakeProvider("primary", delay=1.0), attempt_timeout=5.0, total_timeout=10.0
        )

        task = asyncio.create_task(pipeline.process_webhook(webhook_body()))
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        _, _, stats = await pipeline.list_entries()
        assert stats["draft"] == 0
        assert stats["rejected"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_redeliveries_create_one_entry(self, make_pipeline, tmp_path):
        db = Database(f"sqlite:///{tmp_path / 'chronicle.db'}")
        db.create_all()
        try:
            pipeline, parts = make_pipeline(db=db)

            outcomes = await asyncio.gather(
                *(pipeline.process_webhook(webhook_body()) for _ in range(8))
            )

            created = [o for o in outcomes if o.created]
            assert len(created) == 1
            duplicates = [o for o in outcomes if not o.created]
            assert {o.entry_id for o in duplicates} <= {created[0].entry_id, None}
            entries, total, _ = await pipeline.list_entries()
            assert total == 1
            assert parts["primary"].calls == 1
            assert len(parts["notifier"].messages) == 1
        finally:
            db.dispose()


class TestApproval:
    @pytest.mark.asyncio
    async def test_approve_syncs_back_to_jira(self, make_pipeline, settings):
        pipeline, parts = make_pipeline()
        entry = await _pending(pipeline)

        approved = await pipeline.apply_decision(
            entry.id,
            "approved",
            customer_facing_title="PDF export for every report",
            public_visibility=True,
            expected_revision=entry.revision,
        )

        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.customer_facing_title == "PDF export for every report"
        assert approved.sync_back_pending is False
        assert approved.synced_at is not None
        assert parts["jira"].updates == [
            ("PRESS-100", {settings.jira_summary_field_id: entry.customer_facing_description})
        ]

    @pytest.mark.asyncio
    async def test_sync_back_failure_keeps_approval(self, make_pipeline):
        jira = FakeJiraClient(fail_updates=True)
        pipeline, _ = make_pipeline(jira=jira)
        entry = await _pending(pipeline)

        approved = await pipeline.approve(entry.id)

        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.sync_back_pending is True
        assert "503" in approved.sync_back_error

        jira.fail_updates = False
        retried = await pipeline.retry_sync_back(entry.id)
        assert retried.sync_back_pending is False
        assert len(jira.updates) == 1

    @pytest.mark.asyncio
    async def test_reject_does_not_sync_back(self, make_pipeline):
        pipeline, parts = make_pipeline()
        entry = await _pending(pipeline)

        rejected = await pipeline.apply_decision(entry.id, "rejected", approved_by="U1")

        assert rejected.approval_status == ApprovalStatus.REJECTED
        assert parts["jira"].updates == []
        with pytest.raises(InvalidStateError):
            await pipeline.retry_sync_back(entry.id)

    @pytest.mark.asyncio
    async def test_rejection_allows_new_entry_for_issue(self, make_pipeline):
        pipeline, _ = make_pipeline()
        entry = await _pending(pipeline)
        await pipeline.reject(entry.id)

        outcome = await pipeline.process_webhook(webhook_body())

        assert outcome.created is True
        assert outcome.entry_id != entry.id

    @pytest.mark.asyncio
    async def test_unsupported_decision(self, make_pipeline):
        pipeline, _ = make_pipeline()
        entry = await _pending(pipeline)

        with pytest.raises(ValidationError):
            await pipeline.apply_decision(entry.id, "published")

    @pytest.mark.asyncio
    async def test_publish_announces_update(self, make_pipeline):
        pipeline, parts = make_pipeline()
        entry = await _pending(pipeline)
        await pipeline.approve(entry.id)

        published = await pipeline.publish(entry.id, version="2.4.0")

        assert published.approval_status == ApprovalStatus.PUBLISHED
        assert published.public_changelog_visible is True
        assert parts["notifier"].messages[-1][0] == "#product-updates"
        public = await pipeline.list_public()
        assert [e.id for e in public] == [entry.id]


class TestRegeneration:
    @pytest.mark.asyncio
    async def test_partial_related_stories(self, make_pipeline):
        primary = FakeProvider(
            "primary", [draft_json(), draft_json(title="PDF export with page layouts")]
        )
        pipeline, parts = make_pipeline(primary=primary)
        entry = await _pending(pipeline)

        outcome = await pipeline.regenerate(entry.id, ["PRESS-1", "INVALID-9"])

        assert outcome.requested == ["PRESS-1", "INVALID-9"]
        assert outcome.processed == ["PRESS-1"]
        assert outcome.failed == ["INVALID-9"]
        assert outcome.message == (
            "Successfully regenerated content with 1 of 2 related stories. "
            "Could not access: INVALID-9"
        )
        assert outcome.entry.customer_facing_title == "PDF export with page layouts"
        assert outcome.entry.approval_status == ApprovalStatus.PENDING_REVIEW
        assert outcome.entry.source_data.related_stories == ["PRESS-1"]
        assert outcome.entry.revision == entry.revision + 1
        assert "PRESS-1" in primary.prompts[-1]
        assert "INVALID-9" not in primary.prompts[-1]

    @pytest.mark.asyncio
    async def test_no_resolvable_stories(self, make_pipeline):
        pipeline, parts = make_pipeline()
        entry = await _pending(pipeline)

        with pytest.raises(RelatedStoriesUnavailableError) as exc_info:
            await pipeline.regenerate(entry.id, ["INVALID-9", "NOPE-1"])

        assert exc_info.value.failed_stories == ["INVALID-9", "NOPE-1"]
        assert parts["primary"].calls == 1

    @pytest.mark.asyncio
    async def test_only_main_story_requested(self, make_pipeline):
        pipeline, parts = make_pipeline()
        entry = await _pending(pipeline)

        with pytest.raises(RelatedStoriesUnavailableError) as exc_info:
            await pipeline.regenerate(entry.id, ["press-100"])

        assert exc_info.value.failed_stories == ["press-100"]
        assert parts["jira"].fetched == []

    @pytest.mark.asyncio
    async def test_blank_story_keys_are_rejected(self, make_pipeline):
        pipeline, _ = make_pipeline()
        entry = await _pending(pipeline)

        with pytest.raises(ValidationError):
            await pipeline.regenerate(entry.id, ["", "   "])

    @pytest.mark.asyncio
    async def test_main_story_is_reported_with_the_rest(self, make_pipeline):
        pipeline, _ = make_pipeline()
        entry = await _pending(pipeline)

        outcome = await pipeline.regenerate(entry.id, ["press-1", "PRESS-100"])

        assert outcome.requested == ["press-1", "PRESS-100"]
        assert outcome.processed == ["PRESS-1"]
        assert outcome.failed == ["PRESS-100"]

    @pytest.mark.asyncio
    async def test_provider_failure_leaves_entry_untouched(self, make_pipeline):
        primary = FakeProvider("primary", [draft_json(), RuntimeError("down")])
        fallback = FakeProvider("fallback", [RuntimeError("down")])
        pipeline, _ = make_pipeline(primary=primary, fallback=fallback)
        entry = await _pending(pipeline)

        with pytest.raises(ProviderError):
            await pipeline.regenerate(entry.id, ["PRESS-1"])

        stored = await pipeline.get_entry(entry.id)
        assert stored.customer_facing_title == entry.customer_facing_title
        assert stored.revision == entry.revision

    @pytest.mark.asyncio
    async def test_regenerate_after_approval_is_refused(self, make_pipeline):
        pipeline, parts = make_pipeline()
        entry = await _pending(pipeline)
        await pipeline.approve(entry.id)

        with pytest.raises(InvalidStateError):
            await pipeline.regenerate(entry.id, ["PRESS-1"])
        assert parts["primary"].calls == 1

    @pytest.mark.asyncio
    async def test_stale_revision_is_refused(self, make_pipeline):
        pipeline, _ = make_pipeline()
        entry = await _pending(pipeline)
        await pipeline.regenerate(entry.id, ["PRESS-1"])

        with pytest.raises(ConcurrentModificationError):
            await pipeline.regenerate(entry.id, ["PRESS-1"], expected_revision=entry.revision)

    @pytest.mark.asyncio
    async def test_approval_during_generation_wins(self, make_pipeline):
        """An approval landing while the AI call runs makes the regeneration fail."""
        holder = {}

        def approve_midway(prompt):
            holder["pipeline"].store.approve(holder["entry_id"])
            return draft_json(title="Too late")

        primary = FakeProvider("primary", [draft_json(), approve_midway])
        pipeline, _ = make_pipeline(primary=primary)
        entry = await _pending(pipeline)
        holder.update(pipeline=pipeline, entry_id=entry.id)

        with pytest.raises(ConcurrentModificationError):
            await pipeline.regenerate(entry.id, ["PRESS-1"])

        stored = await pipeline.get_entry(entry.id)
        assert stored.approval_status == ApprovalStatus.APPROVED
        assert stored.customer_facing_title == entry.customer_facing_title


class TestTemplates:
    @pytest.mark.asyncio
    async def test_preview_and_save(self, make_pipeline):
        pipeline, _ = make_pipeline()

        preview = pipeline.preview_template("{contentTitle} / {unknownThing}")
        assert preview.text == "Sample Changelog Entry / {unknownThing}"

        template = await pipeline.get_template("approval-request")
        saved = await pipeline.save_template(
            template.model_copy(update={"message_template": "Review {contentTitle}"})
        )
        assert saved.message_template == "Review {contentTitle}"
        assert len(await pipeline.list_templates()) == 2
