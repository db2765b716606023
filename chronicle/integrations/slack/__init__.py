# Slack integration module
from chronicle.integrations.slack.client import SlackNotifier
from chronicle.integrations.slack.renderer import (
    render_template,
    preview_template,
    entry_template_values,
    SLACK_MESSAGE_LIMIT,
)

__all__ = [
    "SlackNotifier",
    "render_template",
    "preview_template",
    "entry_template_values",
    "SLACK_MESSAGE_LIMIT",
]
