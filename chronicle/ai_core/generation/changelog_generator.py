"""
Changelog Generator

Runs the provider chain for a changelog draft:
1. Primary provider, one retry on failure
2. Fallback provider
3. Placeholder draft flagged for manual authoring (creation only)

Each attempt is bounded by `attempt_timeout`; the whole chain by `total_timeout`.
A timeout, malformed response or SDK error all count as a failed attempt.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from chronicle.ai_core.providers.base import BaseChangelogProvider, GenerationRequest
from chronicle.exceptions import ProviderError
from chronicle.models.changelog import ChangelogDraft, GenerationMetadata
from chronicle.models.issue import IssueEvent, RelatedStory
from chronicle.utils.helpers import clean_issue_title, infer_category

logger = logging.getLogger(__name__)

PLACEHOLDER_PROVIDER = "placeholder"


@dataclass
class GenerationResult:
    """A draft plus how it was produced."""

    draft: ChangelogDraft
    metadata: GenerationMetadata
    quality_score: float

    @property
    def is_placeholder(self) -> bool:
        return self.metadata.needs_manual_review


class ChangelogGenerator:
    """Primary/fallback orchestration over changelog providers."""

    def __init__(
        self,
        primary: BaseChangelogProvider,
        fallback: Optional[BaseChangelogProvider] = None,
        attempt_timeout: float = 30.0,
        total_timeout: float = 60.0,
        quality_score: float = 0.85,
        primary_attempts: int = 2,
    ):
        self.primary = primary
        self.fallback = fallback
        self.attempt_timeout = attempt_timeout
        self.total_timeout = total_timeout
        self.quality_score = quality_score
        self.primary_attempts = primary_attempts

    async def generate(self, issue: IssueEvent) -> GenerationResult:
        """
        Generate customer-facing content for a completed issue.

        Never raises: if every provider fails, a placeholder draft is returned
        with `needs_manual_review` set so the entry is still created.

        Args:
            issue: The eligible issue event

        Returns:
            GenerationResult with the draft and its provenance
        """
        try:
            return await self._run_chain(GenerationRequest(issue=issue))
        except ProviderError as e:
            logger.error(
                f"All providers failed for {issue.issue_key}, using placeholder: {e.errors}"
            )
            return self._placeholder(issue, e.errors)

    async def regenerate(
        self, story: IssueEvent, related_stories: List[RelatedStory]
    ) -> GenerationResult:
        """
        Regenerate content for an existing entry with related stories as context.

        Raises:
            ProviderError: If every provider failed; reviewed content is never
                overwritten with a placeholder
        """
        return await self._run_chain(
            GenerationRequest(issue=story, related_stories=related_stories)
        )

    async def _run_chain(self, request: GenerationRequest) -> GenerationResult:
        errors: List[str] = []
        try:
            return await asyncio.wait_for(
                self._attempt_providers(request, errors), timeout=self.total_timeout
            )
        except asyncio.TimeoutError as e:
            errors.append(f"generation exceeded {self.total_timeout}s total")
            raise ProviderError(
                f"Content generation timed out for {request.issue.issue_key}", errors
            ) from e

    async def _attempt_providers(
        self, request: GenerationRequest, errors: List[str]
    ) -> GenerationResult:
        plan = [(self.primary, False)] * self.primary_attempts
        if self.fallback is not None:
            plan.append((self.fallback, True))

        issue_key = request.issue.issue_key
        for attempt, (provider, is_fallback) in enumerate(plan, start=1):
            try:
                draft = await asyncio.wait_for(
                    provider.generate(request), timeout=self.attempt_timeout
                )
            except asyncio.TimeoutError:
                errors.append(f"{provider.name}: timed out after {self.attempt_timeout}s")
                logger.warning(
                    f"{provider.name} timed out for {issue_key} (attempt {attempt}/{len(plan)})"
                )
                continue
            except Exception as e:
                errors.append(f"{provider.name}: {e}")
                logger.warning(
                    f"{provider.name} failed for {issue_key} (attempt {attempt}/{len(plan)}): {e}"
                )
                continue

            if is_fallback:
                logger.info(f"Fallback provider {provider.name} succeeded for {issue_key}")
            metadata = GenerationMetadata(
                provider=provider.name,
                model=provider.model,
                auto_generated=True,
                needs_manual_review=False,
                fallback_used=is_fallback,
                attempts=attempt,
                provider_errors=list(errors),
                generated_at=datetime.now(timezone.utc),
                related_stories_used=[story.key for story in request.related_stories],
            )
            return GenerationResult(draft=draft, metadata=metadata, quality_score=self.quality_score)

        raise ProviderError(f"All AI providers failed for {issue_key}", errors)

    def _placeholder(self, issue: IssueEvent, errors: List[str]) -> GenerationResult:
        draft = ChangelogDraft(
            customer_facing_title=clean_issue_title(issue.summary),
            customer_facing_description=issue.description or issue.summary,
            highlights=[],
            category=infer_category(issue.summary, issue.description),
        )
        metadata = GenerationMetadata(
            provider=PLACEHOLDER_PROVIDER,
            auto_generated=False,
            needs_manual_review=True,
            fallback_used=self.fallback is not None,
            attempts=self.primary_attempts + (1 if self.fallback is not None else 0),
            provider_errors=list(errors),
            generated_at=datetime.now(timezone.utc),
        )
        return GenerationResult(draft=draft, metadata=metadata, quality_score=0.0)
