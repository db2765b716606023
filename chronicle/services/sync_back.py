"""
Sync-back Writer

Writes an approved entry's customer-facing description into the source
issue's summary custom field. Overwriting with the same value is harmless,
so a retry is always safe.
"""

import logging

from chronicle.exceptions import JiraApiError, SyncBackError
from chronicle.integrations.jira.client import JiraClient
from chronicle.models.changelog import ChangelogEntry

logger = logging.getLogger(__name__)


class SyncBackWriter:
    """Pushes approved changelog copy back to Jira."""

    def __init__(self, jira_client: JiraClient, field_id: str = "customfield_10087"):
        self.jira_client = jira_client
        self.field_id = field_id

    async def write(self, entry: ChangelogEntry) -> None:
        """
        Args:
            entry: An approved or published changelog entry

        Raises:
            SyncBackError: If Jira did not accept the update
        """
        value = entry.customer_facing_description or entry.customer_facing_title
        try:
            await self.jira_client.update_issue_fields(
                entry.source_issue_key, {self.field_id: value}
            )
        except JiraApiError as e:
            raise SyncBackError(
                f"Failed to update {self.field_id} on {entry.source_issue_key}: {e}"
            ) from e

        logger.info(f"Synced changelog summary back to {entry.source_issue_key}")
