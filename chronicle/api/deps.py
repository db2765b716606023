"""
Shared API dependencies and error translation.
"""

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from chronicle.exceptions import (
    ChronicleError,
    ConcurrentModificationError,
    EntryNotFoundError,
    InvalidStateError,
    ProviderError,
    RelatedStoriesUnavailableError,
    ValidationError,
)
from chronicle.services.changelog_pipeline import ChangelogPipeline


def get_pipeline(request: Request) -> ChangelogPipeline:
    """The pipeline built at startup and stored on app.state."""
    return request.app.state.pipeline


def error_response(status_code: int, error: str, code: Optional[str] = None, **extra) -> JSONResponse:
    body = {"success": False, "error": error}
    if code:
        body["code"] = code
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


def domain_error_response(exc: ChronicleError) -> JSONResponse:
    """
    Map a domain exception onto its HTTP response.

    - ValidationError → 400
    - RelatedStoriesUnavailableError → 400 with failedStories
    - EntryNotFoundError → 404
    - InvalidStateError / ConcurrentModificationError → 409 with a code
    - ProviderError → 502
    - anything else → 500
    """
    if isinstance(exc, RelatedStoriesUnavailableError):
        return error_response(
            400,
            str(exc),
            code="related_stories_unavailable",
            failedStories=exc.failed_stories,
        )
    if isinstance(exc, ValidationError):
        return error_response(400, str(exc), code="validation_error")
    if isinstance(exc, EntryNotFoundError):
        return error_response(404, str(exc), code="not_found")
    if isinstance(exc, InvalidStateError):
        return error_response(409, str(exc), code="invalid_state")
    if isinstance(exc, ConcurrentModificationError):
        return error_response(409, str(exc), code="concurrent_modification")
    if isinstance(exc, ProviderError):
        return error_response(502, str(exc), code="provider_error", details=exc.errors)
    return error_response(500, str(exc), code="internal_error")
