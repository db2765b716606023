"""
Changelog Regeneration Route

POST /api/regenerate-changelog - Rewrite a pending draft with related Jira stories as context
"""

from fastapi import APIRouter, Depends
import logging

from chronicle.api.deps import domain_error_response, error_response, get_pipeline
from chronicle.exceptions import ChronicleError
from chronicle.models.api_responses import (
    EnhancedContent,
    RegenerationRequest,
    RegenerationResponse,
)
from chronicle.services.changelog_pipeline import ChangelogPipeline

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=RegenerationResponse, response_model_by_alias=True)
async def regenerate_changelog(
    request: RegenerationRequest,
    pipeline: ChangelogPipeline = Depends(get_pipeline),
):
    """
    Regenerate a pending changelog entry with related stories.

    Stories that cannot be fetched are reported in `failedStories`; the
    rest enrich the prompt. Fails with 400 only when none resolve.

    Example request body:
    ```json
    {
        "entryId": "6f1c...",
        "relatedStories": ["PRESS-1", "INVALID-9"]
    }
    ```
    """
    if not request.entry_id or not request.related_stories:
        return error_response(400, "Missing required fields: entryId and relatedStories")

    try:
        outcome = await pipeline.regenerate(
            request.entry_id, request.related_stories, request.expected_revision
        )
    except ChronicleError as e:
        logger.warning(f"Regeneration of {request.entry_id} failed: {e}")
        return domain_error_response(e)

    entry = outcome.entry
    return RegenerationResponse(
        success=True,
        message=outcome.message,
        enhanced_content=EnhancedContent(
            customer_facing_title=entry.customer_facing_title,
            customer_facing_description=entry.customer_facing_description,
            highlights=entry.highlights,
            breaking_changes=entry.breaking_changes,
            migration_notes=entry.migration_notes,
            category=entry.category,
        ),
        related_stories_requested=len(outcome.requested),
        related_stories_processed=len(outcome.processed),
        failed_stories=outcome.failed,
        entry=entry,
    )
