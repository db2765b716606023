"""Prompts package."""

from chronicle.ai_core.prompts.changelog import (
    CHANGELOG_SYSTEM_PROMPT,
    CHANGELOG_USER_PROMPT_TEMPLATE,
    ENHANCED_CHANGELOG_USER_PROMPT_TEMPLATE,
)

__all__ = [
    "CHANGELOG_SYSTEM_PROMPT",
    "CHANGELOG_USER_PROMPT_TEMPLATE",
    "ENHANCED_CHANGELOG_USER_PROMPT_TEMPLATE",
]
