"""
Jira Webhook Routes

1. POST /api/jira-webhook - Ingest an issue event
2. GET /api/jira-webhook - Liveness check for the Jira webhook configuration
"""

from fastapi import APIRouter, Depends, Request
import logging

from chronicle.api.deps import error_response, get_pipeline
from chronicle.exceptions import ValidationError
from chronicle.models.api_responses import WebhookResponse
from chronicle.services.changelog_pipeline import ChangelogPipeline

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=WebhookResponse, response_model_by_alias=True)
async def receive_webhook(
    request: Request, pipeline: ChangelogPipeline = Depends(get_pipeline)
):
    """
    Receive a Jira issue event.

    Always answers 200 for handled cases (created, filtered, duplicate) so
    Jira does not retry. Malformed payloads get 400 `{error}`.

    Example response:
    ```json
    {
        "success": true,
        "message": "Changelog entry created for PRESS-100",
        "changelogCreated": true,
        "entryId": "6f1c..."
    }
    ```
    """
    body = await request.body()

    try:
        outcome = await pipeline.process_webhook(body)
    except ValidationError as e:
        logger.warning(f"Rejected webhook payload: {e}")
        return error_response(400, str(e))
    except Exception as e:
        logger.error(f"Webhook processing failed: {e}", exc_info=True)
        return error_response(500, "Webhook processing failed")

    return WebhookResponse(
        success=True,
        message=outcome.message,
        changelog_created=outcome.created,
        entry_id=outcome.entry_id,
    )


@router.get("")
async def webhook_status():
    return {"status": "ok", "message": "Jira webhook endpoint is active"}
