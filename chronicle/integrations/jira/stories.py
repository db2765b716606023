"""
Related Story Resolution

Resolves the related-story keys of a regeneration request. Each key is
fetched independently. A key that cannot be used (malformed, missing,
unreachable, or the entry's own story) is reported in `failed` exactly as the
caller sent it, trimmed, and is left out of the prompt context.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import List

from chronicle.exceptions import JiraApiError
from chronicle.integrations.jira.client import JiraClient
from chronicle.models.issue import RelatedStory

logger = logging.getLogger(__name__)

ISSUE_KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]+-\d+$")


@dataclass
class ResolvedStories:
    requested: List[str] = field(default_factory=list)
    stories: List[RelatedStory] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class RelatedStoryResolver:
    """Fetches related stories from Jira, collecting failures instead of raising."""

    def __init__(self, jira_client: JiraClient):
        self.jira_client = jira_client

    async def resolve(self, keys: List[str], exclude: str = "") -> ResolvedStories:
        """
        Args:
            keys: Requested story keys as sent (order kept, blanks and duplicates dropped)
            exclude: The main story key; it counts as requested but is reported as failed

        Returns:
            ResolvedStories with the requested keys, fetched stories and failed keys.
            Keys are reported trimmed but otherwise as the caller sent them.
        """
        requested: List[str] = []
        seen = set()
        for key in keys:
            key = key.strip() if isinstance(key, str) else ""
            if key and key.upper() not in seen:
                seen.add(key.upper())
                requested.append(key)

        main_key = exclude.strip().upper()
        results = await asyncio.gather(
            *(self._fetch(key.upper(), main_key) for key in requested)
        )

        resolved = ResolvedStories(requested=requested)
        for key, story in zip(requested, results):
            if story is None:
                resolved.failed.append(key)
            else:
                resolved.stories.append(story)

        if resolved.failed:
            logger.warning(
                f"Resolved {len(resolved.stories)}/{len(requested)} related stories; "
                f"failed: {', '.join(resolved.failed)}"
            )
        return resolved

    async def _fetch(self, key: str, main_key: str):
        if main_key and key == main_key:
            logger.info(f"Skipping {key}: it is the entry's own story")
            return None
        if not ISSUE_KEY_PATTERN.match(key):
            logger.info(f"Skipping malformed story key: {key}")
            return None
        try:
            return await self.jira_client.get_issue(key)
        except JiraApiError as e:
            logger.warning(f"Could not fetch related story {key}: {e}")
            return None
