"""
Notification Dispatcher

Renders message templates for changelog entries and posts them to Slack.
Runs only after the entry is committed. Delivery failures are logged and
reported back in a NotificationRecord; they never reach the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from chronicle.exceptions import NotificationError
from chronicle.integrations.slack.client import SlackNotifier
from chronicle.integrations.slack.renderer import entry_template_values, render_template
from chronicle.models.changelog import ChangelogEntry
from chronicle.storage.template_store import TemplateStore

logger = logging.getLogger(__name__)

APPROVAL_REQUEST_TEMPLATE = "approval-request"
PRODUCT_UPDATE_TEMPLATE = "product-update-notification"


@dataclass
class NotificationRecord:
    """Outcome of one notification attempt."""

    template_id: str
    channel: Optional[str]
    text: str
    delivered: bool
    error: Optional[str] = None
    message_ts: Optional[str] = None


class NotificationDispatcher:
    """Best-effort Slack notifications for entry lifecycle events."""

    def __init__(
        self,
        notifier: SlackNotifier,
        templates: TemplateStore,
        base_url: str = "",
    ):
        self.notifier = notifier
        self.templates = templates
        self.base_url = base_url

    async def notify_pending_review(self, entry: ChangelogEntry) -> NotificationRecord:
        """Ask reviewers to look at a new or regenerated draft."""
        return await self._dispatch(APPROVAL_REQUEST_TEMPLATE, entry)

    async def notify_published(self, entry: ChangelogEntry) -> NotificationRecord:
        """Announce a published product update."""
        return await self._dispatch(PRODUCT_UPDATE_TEMPLATE, entry)

    async def _dispatch(self, template_id: str, entry: ChangelogEntry) -> NotificationRecord:
        try:
            template = await asyncio.to_thread(self.templates.get, template_id)
        except Exception as e:
            logger.error(f"Could not load template {template_id}: {e}", exc_info=True)
            return NotificationRecord(template_id, None, "", delivered=False, error=str(e))

        if template is None:
            logger.warning(f"Template {template_id} not found, skipping notification")
            return NotificationRecord(
                template_id, None, "", delivered=False, error="template not found"
            )

        channel = template.channel
        rendered = render_template(
            template.message_template, entry_template_values(entry, self.base_url)
        )
        if rendered.unknown_tokens:
            logger.debug(
                f"Template {template_id} left tokens unresolved: {rendered.unknown_tokens}"
            )

        if not template.enabled:
            logger.info(f"Template {template_id} is disabled, not sending")
            return NotificationRecord(
                template_id, channel, rendered.text, delivered=False, error="template disabled"
            )

        try:
            response = await self.notifier.post_message(channel, rendered.text)
        except NotificationError as e:
            logger.error(
                f"Notification {template_id} for {entry.source_issue_key} not delivered: {e}"
            )
            return NotificationRecord(
                template_id, channel, rendered.text, delivered=False, error=str(e)
            )
        except Exception as e:
            logger.error(
                f"Unexpected error sending {template_id} for {entry.source_issue_key}: {e}",
                exc_info=True,
            )
            return NotificationRecord(
                template_id, channel, rendered.text, delivered=False, error=str(e)
            )

        return NotificationRecord(
            template_id,
            channel,
            rendered.text,
            delivered=True,
            message_ts=(response or {}).get("ts"),
        )
