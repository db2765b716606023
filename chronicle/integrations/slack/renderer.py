"""
Slack Message Template Rendering

Substitutes `{token}` placeholders in a template. Tokens without a value
stay in the output as literal text, so a typo in a template never breaks a
notification.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from chronicle.models.changelog import ChangelogEntry

SLACK_MESSAGE_LIMIT = 4000

TOKEN_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

# Used by the test-render mode when the caller supplies no value for a token
SAMPLE_DATA: Dict[str, str] = {
    "jiraKey": "PRESS-12345",
    "contentTitle": "Sample Changelog Entry",
    "contentType": "Changelog Entry",
    "qualityScore": "92",
    "createdDate": "2024-01-15",
    "contentSummary": "You can now export reports directly to PDF from the dashboard.",
    "contentUrl": "https://example.com/content/sample",
    "dashboardUrl": "https://example.com/dashboard",
    "category": "Added",
    "assignee": "Jane Doe",
    "updateTitle": "PDF Report Export",
    "updateDescription": "Export any report to PDF with one click.",
    "whatsNewSection": "\n\n*What's new:*\n• One-click PDF export\n• Custom page layouts",
    "mediaResources": "",
    "changelogUrl": "https://example.com/changelog",
}


@dataclass
class RenderResult:
    text: str
    used_tokens: List[str] = field(default_factory=list)
    unknown_tokens: List[str] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def within_limit(self) -> bool:
        return self.length <= SLACK_MESSAGE_LIMIT


def render_template(template: str, values: Mapping[str, Any]) -> RenderResult:
    """
    Replace `{token}` placeholders with values.

    Args:
        template: Template text
        values: Token values; None is treated as missing

    Returns:
        RenderResult with the text and which tokens were/weren't substituted
    """
    used: List[str] = []
    unknown: List[str] = []

    def substitute(match: "re.Match[str]") -> str:
        token = match.group(1)
        value = values.get(token)
        if value is None:
            if token not in unknown:
                unknown.append(token)
            return match.group(0)
        if token not in used:
            used.append(token)
        return str(value)

    text = TOKEN_PATTERN.sub(substitute, template or "")
    return RenderResult(text=text, used_tokens=used, unknown_tokens=unknown)


def preview_template(template: str, sample_data: Optional[Mapping[str, Any]] = None) -> RenderResult:
    """Render with caller sample data layered over the built-in sample values."""
    values: Dict[str, Any] = dict(SAMPLE_DATA)
    values.update(sample_data or {})
    return render_template(template, values)


def entry_template_values(entry: ChangelogEntry, base_url: str = "") -> Dict[str, str]:
    """
    Token values for a changelog entry.

    Args:
        entry: The changelog entry
        base_url: Public base URL of this service, used for links

    Returns:
        Mapping of token name to display string
    """
    base_url = base_url.rstrip("/")
    created = entry.created_at.strftime("%Y-%m-%d") if entry.created_at else ""

    whats_new = ""
    if entry.highlights:
        bullets = "\n".join(f"• {item}" for item in entry.highlights)
        whats_new = f"\n\n*What's new:*\n{bullets}"

    return {
        "contentTitle": entry.customer_facing_title,
        "contentType": entry.content_type.replace("_", " ").title(),
        "qualityScore": str(round(entry.quality_score * 100)),
        "createdDate": created,
        "contentSummary": entry.customer_facing_description,
        "contentUrl": f"{base_url}/api/changelog/{entry.id}",
        "dashboardUrl": f"{base_url}/docs",
        "changelogUrl": f"{base_url}/api/public-changelog",
        "jiraKey": entry.source_issue_key,
        "category": entry.category.value.capitalize(),
        "assignee": entry.source_data.assignee or "Unassigned",
        "version": entry.version,
        "updateTitle": entry.customer_facing_title,
        "updateDescription": entry.customer_facing_description,
        "whatsNewSection": whats_new,
        "mediaResources": "",
    }
