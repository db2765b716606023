"""
Changelog Generation Prompts

Turns a technical Jira issue into a customer-facing changelog entry.
The regeneration prompt adds related stories as extra context.
"""

CHANGELOG_SYSTEM_PROMPT = """You are a technical writer creating customer-facing changelog entries from Jira tickets.

GUIDELINES:
- Write from the customer's perspective using "you" and "your"
- Focus on benefits and value, not technical implementation details
- Use clear, jargon-free language
- Highlight what's improved for the user experience
- Be concise but informative

You always answer with a single JSON object and nothing else."""

# Shared output contract - used by both the initial and the regeneration prompt
OUTPUT_FORMAT = """Generate a changelog entry in the following JSON format:

{{
  "customer_title": "{title_hint}",
  "customer_description": "{description_hint}",
  "highlights": [
    "Key benefit or feature point 1",
    "Key benefit or feature point 2",
    "Key benefit or feature point 3"
  ],
  "category": "added|improved|fixed|security|deprecated",
  "breaking_changes": false,
  "migration_notes": "Only if breaking_changes is true, provide migration guidance",
  "estimated_impact": "low|medium|high",
  "user_segments": ["all_users|enterprise|free_tier|developers|admin"],
  "tldr": "One sentence summary of the change"
}}

CATEGORY MAPPING:
- "added" - New features, capabilities, or integrations
- "improved" - Performance, usability, or experience enhancements
- "fixed" - Bug fixes, error corrections, or stability improvements
- "security" - Security updates, authentication, or privacy improvements
- "deprecated" - Features being sunset or removed

Return only the JSON response, no additional text."""

CHANGELOG_USER_PROMPT_TEMPLATE = """Transform the following technical Jira issue into a customer-friendly changelog entry.

JIRA ISSUE:
- Key: {key}
- Summary: {summary}
- Description: {description}
- Priority: {priority}
- Status: {status}
- Components: {components}
- Labels: {labels}
- Reporter: {reporter}
- Assignee: {assignee}

{output_format}"""

RELATED_STORY_TEMPLATE = """- **{key}**: {summary}
  Description: {description}
  Status: {status}
  Priority: {priority}"""

ENHANCED_CHANGELOG_USER_PROMPT_TEMPLATE = """You have access to a main Jira story and several related stories that provide additional context.

MAIN STORY:
- **{key}**: {summary}
  Description: {description}
  Priority: {priority}
  Components: {components}
  Labels: {labels}

RELATED STORIES (for context):
{related_stories}

INSTRUCTIONS:
1. Analyze all stories together to understand the complete scope and context
2. Create a cohesive changelog entry that reflects the broader initiative
3. Highlight how the related stories enhance or complete the main feature
4. Focus on the combined customer value and benefits
5. Consider the collective impact of all stories when determining the category

{output_format}"""

DEFAULT_TITLE_HINT = "Customer-facing title (max 80 characters)"
DEFAULT_DESCRIPTION_HINT = "2-3 sentences describing the improvement from customer perspective"
ENHANCED_TITLE_HINT = "Enhanced title that reflects the broader scope (max 80 characters)"
ENHANCED_DESCRIPTION_HINT = (
    "2-3 sentences describing the comprehensive improvement, "
    "mentioning how related work enhances the main feature"
)
