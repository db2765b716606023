"""
External integrations: Slack and Jira.
"""
