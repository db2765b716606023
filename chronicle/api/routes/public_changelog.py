"""
Public Changelog Route

GET /api/public-changelog - Published entries visible on the public changelog
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from chronicle.api.deps import get_pipeline
from chronicle.models.changelog import ChangelogCategory
from chronicle.services.changelog_pipeline import ChangelogPipeline

router = APIRouter()


@router.get("")
async def public_changelog(
    category: Optional[ChangelogCategory] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    pipeline: ChangelogPipeline = Depends(get_pipeline),
):
    entries = await pipeline.list_public(category, limit)
    return {
        "entries": [
            {
                "id": entry.id,
                "title": entry.customer_facing_title,
                "description": entry.customer_facing_description,
                "highlights": entry.highlights,
                "category": entry.category.value.capitalize(),
                "version": entry.version,
                "release_date": entry.release_date,
                "breaking_changes": entry.breaking_changes,
                "migration_notes": entry.migration_notes,
            }
            for entry in entries
        ],
        "total": len(entries),
    }
