"""
Slack Template Routes

1. GET /api/slack/templates - List message templates (defaults seeded on first call)
2. POST /api/slack/templates - Save a template, or test-render it with `action: test_template`
"""

from fastapi import APIRouter, Depends
import logging

from chronicle.api.deps import error_response, get_pipeline
from chronicle.models.api_responses import TemplatePreview, TemplateRequest
from chronicle.models.templates import MessageTemplate
from chronicle.services.changelog_pipeline import ChangelogPipeline

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def list_templates(pipeline: ChangelogPipeline = Depends(get_pipeline)):
    templates = await pipeline.list_templates()
    return {"success": True, "templates": [t.model_dump() for t in templates]}


@router.post("")
async def save_or_test_template(
    request: TemplateRequest,
    pipeline: ChangelogPipeline = Depends(get_pipeline),
):
    """
    Save a template or render a preview.

    Test render (nothing is sent to Slack):
    ```json
    {
        "action": "test_template",
        "templateId": "approval-request",
        "messageTemplate": "New: {contentTitle} ({qualityScore}%)",
        "testData": {"contentTitle": "PDF export"}
    }
    ```
    Tokens missing from testData fall back to built-in sample values;
    unknown tokens stay in the text as-is.
    """
    existing = await pipeline.get_template(request.template_id)

    if request.action == "test_template":
        message_template = request.message_template or (existing.message_template if existing else None)
        if message_template is None:
            return error_response(400, f"No template text for {request.template_id}")

        rendered = pipeline.preview_template(message_template, request.test_data)
        logger.info(
            f"Test-rendered template {request.template_id} ({rendered.length} chars)"
        )
        return TemplatePreview(
            template_id=request.template_id,
            channel=request.channel or (existing.channel if existing else None),
            preview_message=rendered.text,
            length=rendered.length,
            within_limit=rendered.within_limit,
            used_tokens=rendered.used_tokens,
            unknown_tokens=rendered.unknown_tokens,
        ).model_dump(by_alias=True)

    if existing is None and (not request.message_template or not request.channel):
        return error_response(
            400, "New templates need messageTemplate and channel"
        )

    base = existing.model_dump() if existing else {"id": request.template_id, "name": request.template_id}
    updates = {
        "message_template": request.message_template,
        "channel": request.channel,
        "name": request.name,
        "description": request.description,
        "enabled": request.enabled,
    }
    base.update({k: v for k, v in updates.items() if v is not None})

    saved = await pipeline.save_template(MessageTemplate(**base))
    return {"success": True, "message": "Template saved successfully", "template": saved.model_dump()}
