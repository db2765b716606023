from chronicle.api.routes import (
    changelog,
    jira_webhook,
    public_changelog,
    regenerate,
    slack_templates,
)

__all__ = ["changelog", "jira_webhook", "public_changelog", "regenerate", "slack_templates"]
