"""Base changelog provider implementing the Template Method pattern.

All providers share the same generation algorithm:
    generate() → _build_system_prompt() + _build_user_prompt()
               → _call_api()   ← only this differs per provider
               → _parse()

Subclasses implement two things only:
  - __init__: build and store the SDK client
  - _call_api: make one raw API call and return the text response

Retries, timeouts and fallback between providers live in ChangelogGenerator,
so a provider call here is always a single attempt.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from chronicle.ai_core.prompts.changelog import (
    CHANGELOG_SYSTEM_PROMPT,
    CHANGELOG_USER_PROMPT_TEMPLATE,
    DEFAULT_DESCRIPTION_HINT,
    DEFAULT_TITLE_HINT,
    ENHANCED_CHANGELOG_USER_PROMPT_TEMPLATE,
    ENHANCED_DESCRIPTION_HINT,
    ENHANCED_TITLE_HINT,
    OUTPUT_FORMAT,
    RELATED_STORY_TEMPLATE,
)
from chronicle.exceptions import ProviderResponseError
from chronicle.models.changelog import ChangelogDraft
from chronicle.models.issue import IssueEvent, RelatedStory
from chronicle.utils.helpers import (
    coerce_highlights,
    extract_json_object,
    flatten_list,
    normalize_category,
)

logger = logging.getLogger(__name__)


@dataclass
class GenerationRequest:
    """What a provider needs to write one changelog entry."""

    issue: IssueEvent
    related_stories: List[RelatedStory] = field(default_factory=list)


class BaseChangelogProvider(ABC):
    name: str = "base"
    MAX_TOKENS: int = 1200
    TEMPERATURE: float = 0.3

    def __init__(self, model: str, temperature: Optional[float] = None, max_tokens: Optional[int] = None):
        self.model = model
        self.temperature = self.TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or self.MAX_TOKENS

    async def generate(self, request: GenerationRequest) -> ChangelogDraft:
        """
        Generate a changelog draft for an issue.

        Args:
            request: The issue plus any related stories for context

        Returns:
            Validated ChangelogDraft

        Raises:
            ProviderResponseError: If the response is not usable JSON content
            Exception: Whatever the SDK raises on transport/API failure
        """
        system = self._build_system_prompt()
        user = self._build_user_prompt(request)
        raw = await self._call_api(system, user)
        return self._parse(raw)

    @abstractmethod
    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        Should raise on failure; the generator decides whether to retry.
        """

    def _build_system_prompt(self) -> str:
        return CHANGELOG_SYSTEM_PROMPT

    def _build_user_prompt(self, request: GenerationRequest) -> str:
        issue = request.issue

        if request.related_stories:
            output_format = OUTPUT_FORMAT.format(
                title_hint=ENHANCED_TITLE_HINT, description_hint=ENHANCED_DESCRIPTION_HINT
            )
            related = "\n".join(
                RELATED_STORY_TEMPLATE.format(
                    key=story.key,
                    summary=story.summary,
                    description=story.description or "No description",
                    status=story.status or "Unknown",
                    priority=story.priority or "Unknown",
                )
                for story in request.related_stories
            )
            return ENHANCED_CHANGELOG_USER_PROMPT_TEMPLATE.format(
                key=issue.issue_key,
                summary=issue.summary,
                description=issue.description or "No description provided",
                priority=issue.priority,
                components=", ".join(issue.components) or "None",
                labels=", ".join(issue.labels) or "None",
                related_stories=related,
                output_format=output_format,
            )

        output_format = OUTPUT_FORMAT.format(
            title_hint=DEFAULT_TITLE_HINT, description_hint=DEFAULT_DESCRIPTION_HINT
        )
        return CHANGELOG_USER_PROMPT_TEMPLATE.format(
            key=issue.issue_key,
            summary=issue.summary,
            description=issue.description or "No description provided",
            priority=issue.priority,
            status=issue.status_name or "Unknown",
            components=", ".join(issue.components) or "None",
            labels=", ".join(issue.labels) or "None",
            reporter=issue.reporter or "Unknown",
            assignee=issue.assignee or "Unassigned",
            output_format=output_format,
        )

    def _parse(self, raw: str) -> ChangelogDraft:
        """Validate the model output and map it onto ChangelogDraft."""
        try:
            data = extract_json_object(raw)
        except ValueError as e:
            raise ProviderResponseError(f"{self.name}: {e}") from e

        title = data.get("customer_title")
        description = data.get("customer_description")
        if not isinstance(title, str) or not title.strip():
            raise ProviderResponseError(f"{self.name}: missing customer_title")
        if not isinstance(description, str) or not description.strip():
            raise ProviderResponseError(f"{self.name}: missing customer_description")

        migration_notes = data.get("migration_notes")
        breaking_changes = data.get("breaking_changes") is True

        return ChangelogDraft(
            customer_facing_title=title.strip(),
            customer_facing_description=description.strip(),
            highlights=coerce_highlights(data.get("highlights")),
            category=normalize_category(data.get("category")),
            breaking_changes=breaking_changes,
            migration_notes=migration_notes.strip()
            if breaking_changes and isinstance(migration_notes, str) and migration_notes.strip()
            else None,
            estimated_impact=data.get("estimated_impact")
            if isinstance(data.get("estimated_impact"), str)
            else None,
            user_segments=flatten_list(data.get("user_segments")),
            tldr=data.get("tldr") if isinstance(data.get("tldr"), str) else None,
        )
