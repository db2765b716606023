"""
Jira Webhook Event Validator

Parses a raw webhook body, rejects malformed payloads and filters out
events that should not produce a changelog entry.

Eligible events:
- webhookEvent is one of the accepted event types (default: jira:issue_updated)
- the issue's status category is "done"
- the issue carries the customer-impact label
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from chronicle.config import Settings, get_settings
from chronicle.exceptions import FilteredEvent, ValidationError
from chronicle.models.issue import IssueEvent
from chronicle.utils.helpers import adf_to_text

logger = logging.getLogger(__name__)


class EventValidator:
    """Turns raw Jira webhook bodies into IssueEvents."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.accepted_events = {event.lower() for event in settings.accepted_webhook_events}
        self.done_category = settings.done_status_category.lower()
        self.impact_label = settings.customer_impact_label.lower()

    def validate(self, body: bytes) -> IssueEvent:
        """
        Parse and filter a webhook body.

        Args:
            body: Raw request body

        Returns:
            Normalized IssueEvent for an eligible event

        Raises:
            ValidationError: If the body is not a JSON object or lacks issue key/summary
            FilteredEvent: If the event is well-formed but not eligible
        """
        payload = self._parse(body)
        event = self._normalize(payload)

        if (event.webhook_event or "").lower() not in self.accepted_events:
            raise FilteredEvent(f"Ignored webhook event type: {event.webhook_event or 'missing'}")

        if (event.status_category or "").lower() != self.done_category:
            raise FilteredEvent(
                f"Issue {event.issue_key} is not done (status: {event.status_name or 'unknown'})"
            )

        if self.impact_label not in {label.lower() for label in event.labels}:
            raise FilteredEvent(
                f"Issue {event.issue_key} is not labeled '{self.impact_label}'"
            )

        logger.info(f"Accepted webhook event for {event.issue_key}")
        return event

    def _parse(self, body: bytes) -> Dict[str, Any]:
        if not body:
            raise ValidationError("Empty webhook payload")

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError(f"Webhook payload is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise ValidationError("Webhook payload must be a JSON object")
        return payload

    def _normalize(self, payload: Dict[str, Any]) -> IssueEvent:
        issue = payload.get("issue")
        if not isinstance(issue, dict):
            raise ValidationError("Missing required field: issue")

        key = issue.get("key")
        if not isinstance(key, str) or not key.strip():
            raise ValidationError("Missing required field: issue.key")

        fields = issue.get("fields")
        if not isinstance(fields, dict):
            raise ValidationError("Missing required field: issue.fields")

        summary = fields.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            raise ValidationError("Missing required field: issue.fields.summary")

        status = self._object(fields.get("status"))
        changelog = self._object(payload.get("changelog"))
        items = changelog.get("items")
        components = fields.get("components")

        try:
            return IssueEvent(
                issue_key=key.strip(),
                issue_id=str(issue["id"]) if issue.get("id") is not None else None,
                summary=summary.strip(),
                description=adf_to_text(fields.get("description")).strip(),
                status_name=self._display(status, "name"),
                status_category=self._display(status.get("statusCategory"), "key"),
                labels=self._labels(fields.get("labels")),
                priority=self._display(fields.get("priority"), "name") or "Medium",
                issue_type=self._display(fields.get("issuetype"), "name"),
                reporter=self._display(fields.get("reporter"), "displayName"),
                assignee=self._display(fields.get("assignee"), "displayName"),
                components=[
                    name
                    for name in (
                        self._display(c, "name")
                        for c in (components if isinstance(components, list) else [])
                    )
                    if name
                ],
                webhook_event=self._text(payload.get("webhookEvent")),
                changelog_items=[
                    item for item in (items if isinstance(items, list) else []) if isinstance(item, dict)
                ],
                raw_payload=payload,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Webhook payload has invalid fields: {e}") from e

    @staticmethod
    def _object(value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @staticmethod
    def _text(value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @staticmethod
    def _labels(value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [label.strip() for label in value if isinstance(label, str) and label.strip()]

    @staticmethod
    def _display(value: Any, attr: str) -> Optional[str]:
        if isinstance(value, dict) and isinstance(value.get(attr), str):
            return value[attr]
        return None
