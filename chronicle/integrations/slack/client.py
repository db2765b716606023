"""
Slack API Client

Responsibilities:
- chat.postMessage: deliver rendered notifications to a channel
"""

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
from chronicle.config import Settings, get_settings
from chronicle.exceptions import NotificationError
from typing import Optional, Dict, Any
import asyncio
import logging

logger = logging.getLogger(__name__)


class SlackNotifier:
    """Posts messages to Slack channels."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[WebClient] = None):
        settings = settings or get_settings()
        self.settings = settings
        self.client = client or WebClient(token=settings.slack_bot_token)

    @property
    def is_configured(self) -> bool:
        return bool(self.client.token)

    async def post_message(self, channel: str, text: str) -> Dict[str, Any]:
        """
        Post a message to a channel.

        Args:
            channel: Channel name (#content-approvals) or id
            text: Message text (Slack mrkdwn)

        Returns:
            Slack API response data (contains `ts` and `channel`)

        Raises:
            NotificationError: If the bot is not configured or Slack rejected the call
        """
        if not self.is_configured:
            raise NotificationError("SLACK_BOT_TOKEN is not configured")

        try:
            logger.debug(f"Posting message to {channel} ({len(text)} chars)")
            result = await asyncio.to_thread(
                self.client.chat_postMessage,
                channel=channel,
                text=text,
                mrkdwn=True,
            )
            logger.info(f"Posted message to {channel} (ts={result.get('ts')})")
            return result.data

        except SlackApiError as e:
            logger.error(f"Slack API error posting to {channel}: {e.response['error']}")
            raise NotificationError(f"Slack API error: {e.response['error']}") from e
