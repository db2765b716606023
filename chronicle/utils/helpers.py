"""
Shared Utility Functions

Common helper functions used across multiple modules.
"""

import json
import re
import logging
from typing import Any, Dict, List, Optional

from chronicle.models.changelog import ChangelogCategory

logger = logging.getLogger(__name__)

_TICKET_PREFIX_PATTERN = re.compile(r"\b(PLAT|FEAT|BUG|FIX|TECH)-\d+\b[:\s-]*", re.IGNORECASE)
_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$")

# Checked in order; first match wins
_CATEGORY_KEYWORDS = [
    (ChangelogCategory.ADDED, ("new", "add", "create", "implement")),
    (ChangelogCategory.FIXED, ("fix", "bug", "issue", "resolve")),
    (ChangelogCategory.SECURITY, ("security", "vulnerability", "auth")),
    (ChangelogCategory.DEPRECATED, ("deprecat", "remove", "sunset")),
]

_CATEGORY_ALIASES = {
    "feature": ChangelogCategory.ADDED,
    "new": ChangelogCategory.ADDED,
    "improvement": ChangelogCategory.IMPROVED,
    "enhancement": ChangelogCategory.IMPROVED,
    "bugfix": ChangelogCategory.FIXED,
    "bug": ChangelogCategory.FIXED,
    "fix": ChangelogCategory.FIXED,
}

_PRIORITY_MAP = {
    "blocker": "critical",
    "critical": "critical",
    "highest": "critical",
    "major": "high",
    "high": "high",
    "minor": "medium",
    "medium": "medium",
    "trivial": "low",
    "low": "low",
    "lowest": "low",
}


def flatten_list(items: Any) -> List[str]:
    """
    Flatten a potentially nested list to a single-level list of strings.

    Handles various formats:
    - Nested lists: [["a", "b"]] → ["a", "b"]
    - Flat lists: ["a", "b"] → ["a", "b"]
    - Single string: "a" → ["a"]
    - None/empty: None → []

    Args:
        items: Any value that could be a list, nested list, or string

    Returns:
        Flat list of strings
    """
    if not items:
        return []

    if isinstance(items, str):
        return [items]

    if not isinstance(items, list):
        return [str(items)]

    result = []
    for item in items:
        if isinstance(item, list):
            result.extend(str(subitem) for subitem in item)
        else:
            result.append(str(item))
    return result


def coerce_highlights(value: Any) -> List[str]:
    """
    Normalize the `highlights` value returned by a provider.

    Non-array shapes become an empty list (with a warning); non-string and
    blank items are dropped; surrounding whitespace is stripped.

    Args:
        value: Raw highlights value from the provider response

    Returns:
        Ordered list of non-empty strings
    """
    if value is None:
        return []

    if not isinstance(value, list):
        logger.warning(
            f"Provider returned highlights as {type(value).__name__}, expected a list; using []"
        )
        return []

    highlights = []
    for item in value:
        if not isinstance(item, str):
            logger.debug(f"Dropping non-string highlight: {item!r}")
            continue
        item = item.strip()
        if item:
            highlights.append(item)
    return highlights


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the first JSON object out of an LLM response.

    Tolerates ```json fences and prose around the object.

    Args:
        text: Raw model output

    Returns:
        Parsed JSON object

    Raises:
        ValueError: If no JSON object can be parsed
    """
    if not text or not text.strip():
        raise ValueError("Empty response")

    cleaned = _CODE_FENCE_PATTERN.sub("", text.strip())
    match = _JSON_OBJECT_PATTERN.search(cleaned)
    if not match:
        raise ValueError("No JSON object found in response")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in response: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data


def normalize_category(value: Any) -> ChangelogCategory:
    """Map a provider-supplied category string onto ChangelogCategory (default: improved)."""
    if isinstance(value, ChangelogCategory):
        return value
    if not isinstance(value, str):
        return ChangelogCategory.IMPROVED

    key = value.strip().lower()
    try:
        return ChangelogCategory(key)
    except ValueError:
        return _CATEGORY_ALIASES.get(key, ChangelogCategory.IMPROVED)


def infer_category(summary: str, description: str = "") -> ChangelogCategory:
    """
    Derive a category from issue text with simple keyword rules.

    Used for placeholder drafts when no provider produced content.
    """
    text = f"{summary} {description}".lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return ChangelogCategory.IMPROVED


def clean_issue_title(summary: str) -> str:
    """Strip internal ticket prefixes (e.g. FEAT-12) and capitalize the first letter."""
    title = _TICKET_PREFIX_PATTERN.sub("", summary or "").strip(" :-")
    title = re.sub(r"\s{2,}", " ", title)
    if not title:
        return (summary or "").strip()
    return title[0].upper() + title[1:]


def map_priority(priority: Optional[str]) -> str:
    """Map a Jira priority name onto low/medium/high/critical."""
    if not priority:
        return "medium"
    return _PRIORITY_MAP.get(priority.strip().lower(), "medium")


def adf_to_text(node: Any) -> str:
    """
    Flatten an Atlassian Document Format node into plain text.

    Jira Cloud sends rich-text fields as ADF documents; plain strings
    pass through unchanged.
    """
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return "".join(adf_to_text(child) for child in node)
    if not isinstance(node, dict):
        return str(node)

    node_type = node.get("type")
    if node_type == "text":
        return node.get("text", "")
    if node_type == "hardBreak":
        return "\n"

    text = adf_to_text(node.get("content", []))
    if node_type in ("paragraph", "heading", "listItem", "codeBlock", "blockquote"):
        return text.rstrip("\n") + "\n"
    return text
