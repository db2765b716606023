"""
Shared test fixtures: in-memory database, fake providers, fake Slack and Jira.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest

from chronicle.ai_core.generation.changelog_generator import ChangelogGenerator
from chronicle.ai_core.providers.base import BaseChangelogProvider
from chronicle.config import Settings
from chronicle.exceptions import JiraApiError, NotificationError
from chronicle.ingestion.validator import EventValidator
from chronicle.integrations.jira.stories import RelatedStoryResolver
from chronicle.models.issue import IssueEvent, RelatedStory
from chronicle.services.changelog_pipeline import ChangelogPipeline
from chronicle.services.notification_dispatcher import NotificationDispatcher
from chronicle.services.sync_back import SyncBackWriter
from chronicle.storage.changelog_store import ChangelogStore
from chronicle.storage.database import Database
from chronicle.storage.template_store import TemplateStore


def draft_json(
    title: str = "Export reports to PDF",
    description: str = "You can now export any report to PDF in one click.",
    highlights: Any = None,
    category: str = "added",
    **extra,
) -> str:
    """A well-formed provider response."""
    data = {
        "customer_title": title,
        "customer_description": description,
        "highlights": ["One-click export", "Keeps your filters"] if highlights is None else highlights,
        "category": category,
        "breaking_changes": False,
        "migration_notes": None,
        "estimated_impact": "medium",
        "user_segments": ["all_users"],
        "tldr": "Reports export to PDF.",
    }
    data.update(extra)
    return json.dumps(data)


def webhook_payload(
    key: str = "PRESS-100",
    summary: str = "FEAT-12 Add PDF export to reports",
    labels: Optional[List[str]] = None,
    status_category: str = "done",
    status_name: str = "Done",
    event: str = "jira:issue_updated",
) -> Dict[str, Any]:
    return {
        "webhookEvent": event,
        "issue": {
            "id": "10001",
            "key": key,
            "fields": {
                "summary": summary,
                "description": "Users can export reports as PDF from the report toolbar.",
                "status": {"name": status_name, "statusCategory": {"key": status_category}},
                "labels": ["customer-impact"] if labels is None else labels,
                "priority": {"name": "High"},
                "reporter": {"displayName": "Ana Reporter"},
                "assignee": {"displayName": "Sam Assignee"},
                "components": [{"name": "Reports"}],
            },
        },
        "changelog": {
            "items": [{"field": "status", "fromString": "In Progress", "toString": "Done"}]
        },
    }


def webhook_body(**kwargs) -> bytes:
    return json.dumps(webhook_payload(**kwargs)).encode()


class FakeProvider(BaseChangelogProvider):
    """
    Provider returning scripted responses in order (the last one repeats).

    A response may be a string, an exception to raise, or a callable taking
    the user prompt and returning a string.
    """

    def __init__(self, name: str = "fake", responses: Optional[List[Any]] = None, delay: float = 0.0):
        super().__init__(model=f"{name}-model")
        self.name = name
        self.responses = list(responses or [draft_json()])
        self.delay = delay
        self.prompts: List[str] = []

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        self.prompts.append(user_prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(user_prompt)
        return response

    @property
    def calls(self) -> int:
        return len(self.prompts)


class FakeNotifier:
    """Stands in for SlackNotifier; records messages or fails on demand."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: List[tuple] = []

    async def post_message(self, channel: str, text: str) -> Dict[str, Any]:
        if self.fail:
            raise NotificationError("Slack API error: channel_not_found")
        self.messages.append((channel, text))
        return {"ok": True, "channel": channel, "ts": "1700000000.000100"}


class FakeJiraClient:
    """Stands in for JiraClient with an in-memory issue set."""

    def __init__(self, stories: Optional[Dict[str, RelatedStory]] = None, fail_updates: bool = False):
        self.stories = stories or {}
        self.fail_updates = fail_updates
        self.updates: List[tuple] = []
        self.fetched: List[str] = []

    async def get_issue(self, issue_key: str) -> Optional[RelatedStory]:
        self.fetched.append(issue_key)
        return self.stories.get(issue_key)

    async def update_issue_fields(self, issue_key: str, fields: Dict[str, Any]) -> None:
        if self.fail_updates:
            raise JiraApiError("Jira PUT returned 503", status_code=503)
        self.updates.append((issue_key, fields))


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        base_url="https://chronicle.example.com",
        database_url="sqlite://",
        jira_base_url="https://example.atlassian.net",
        jira_email="bot@example.com",
        jira_api_token="token",
        slack_bot_token="xoxb-test",
    )


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def store(database):
    return ChangelogStore(database)


@pytest.fixture
def template_store(database):
    return TemplateStore(database)


@pytest.fixture
def issue_event():
    return IssueEvent(
        issue_key="PRESS-100",
        issue_id="10001",
        summary="FEAT-12 Add PDF export to reports",
        description="Users can export reports as PDF from the report toolbar.",
        status_name="Done",
        status_category="done",
        labels=["customer-impact"],
        priority="High",
        assignee="Sam Assignee",
        components=["Reports"],
    )


@pytest.fixture
def related_stories():
    return {
        "PRESS-1": RelatedStory(
            key="PRESS-1",
            summary="Add page layout options to PDF export",
            description="Landscape and portrait layouts.",
            status="Done",
            priority="Medium",
        ),
    }


@pytest.fixture
def make_pipeline(settings, database, template_store, related_stories):
    """
    Factory for a fully wired pipeline over fakes.

    Returns (pipeline, parts) where parts exposes the fakes for assertions.
    """

    def _make(
        primary: Optional[FakeProvider] = None,
        fallback: Optional[FakeProvider] = None,
        notifier: Optional[FakeNotifier] = None,
        jira: Optional[FakeJiraClient] = None,
        attempt_timeout: float = 1.0,
        total_timeout: float = 5.0,
        db: Optional[Database] = None,
    ):
        primary = primary or FakeProvider("primary")
        fallback = fallback or FakeProvider("fallback")
        notifier = notifier or FakeNotifier()
        jira = jira or FakeJiraClient(stories=dict(related_stories))

        pipeline = ChangelogPipeline(
            validator=EventValidator(settings),
            store=ChangelogStore(db or database),
            generator=ChangelogGenerator(
                primary=primary,
                fallback=fallback,
                attempt_timeout=attempt_timeout,
                total_timeout=total_timeout,
            ),
            dispatcher=NotificationDispatcher(notifier, template_store, base_url=settings.base_url),
            sync_back_writer=SyncBackWriter(jira, settings.jira_summary_field_id),
            story_resolver=RelatedStoryResolver(jira),
            templates=template_store,
        )
        parts = {"primary": primary, "fallback": fallback, "notifier": notifier, "jira": jira}
        return pipeline, parts

    return _make

