"""Chronicle - Jira to customer-facing changelog pipeline."""

__version__ = "0.1.0"
