"""
Changelog Approval Routes

1. GET /api/changelog - List entries with approval statistics
2. GET /api/changelog/{entry_id} - Fetch one entry
3. PUT /api/changelog/{entry_id} - Approve or reject a pending entry
4. POST /api/changelog/{entry_id}/publish - Publish an approved entry
5. POST /api/changelog/{entry_id}/sync-back - Retry the Jira sync-back
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from chronicle.api.deps import domain_error_response, get_pipeline
from chronicle.exceptions import ChronicleError
from chronicle.models.api_responses import (
    ApprovalRequest,
    ChangelogListResponse,
    PublishRequest,
)
from chronicle.models.changelog import ApprovalStatus, ChangelogEntry
from chronicle.services.changelog_pipeline import ChangelogPipeline

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=ChangelogListResponse)
async def list_entries(
    status: Optional[ApprovalStatus] = Query(None, description="Filter by approval status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    pipeline: ChangelogPipeline = Depends(get_pipeline),
):
    entries, total, stats = await pipeline.list_entries(status, limit, offset)
    return ChangelogListResponse(entries=entries, total=total, stats=stats)


@router.get("/{entry_id}", response_model=ChangelogEntry)
async def get_entry(entry_id: str, pipeline: ChangelogPipeline = Depends(get_pipeline)):
    try:
        return await pipeline.get_entry(entry_id)
    except ChronicleError as e:
        return domain_error_response(e)


@router.put("/{entry_id}", response_model=ChangelogEntry)
async def decide_entry(
    entry_id: str,
    request: ApprovalRequest,
    pipeline: ChangelogPipeline = Depends(get_pipeline),
):
    """
    Approve or reject a pending changelog entry.

    Example request body:
    ```json
    {
        "approval_status": "approved",
        "customer_facing_title": "Export reports to PDF",
        "public_visibility": true,
        "expected_revision": 2
    }
    ```

    Responses:
    - 200: updated entry (approval also attempts Jira sync-back; see `sync_back_pending`)
    - 400: approving without a title
    - 404: unknown entry
    - 409: entry is not pending review, or changed since `expected_revision`
    """
    try:
        logger.info(f"Approval request for {entry_id}: {request.approval_status}")
        return await pipeline.apply_decision(
            entry_id,
            request.approval_status,
            customer_facing_title=request.customer_facing_title,
            public_visibility=request.public_visibility,
            source_data=request.source_data,
            version=request.version,
            release_date=request.release_date,
            approved_by=request.approved_by,
            expected_revision=request.expected_revision,
        )
    except ChronicleError as e:
        logger.info(f"Approval of {entry_id} refused: {e}")
        return domain_error_response(e)


@router.post("/{entry_id}/publish", response_model=ChangelogEntry)
async def publish_entry(
    entry_id: str,
    request: Optional[PublishRequest] = None,
    pipeline: ChangelogPipeline = Depends(get_pipeline),
):
    request = request or PublishRequest()
    try:
        return await pipeline.publish(
            entry_id,
            version=request.version,
            release_date=request.release_date,
            expected_revision=request.expected_revision,
        )
    except ChronicleError as e:
        return domain_error_response(e)


@router.post("/{entry_id}/sync-back", response_model=ChangelogEntry)
async def retry_sync_back(entry_id: str, pipeline: ChangelogPipeline = Depends(get_pipeline)):
    try:
        return await pipeline.retry_sync_back(entry_id)
    except ChronicleError as e:
        return domain_error_response(e)
