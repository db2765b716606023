"""
Webhook ingestion: parsing and eligibility filtering of Jira events.
"""

from chronicle.ingestion.validator import EventValidator

__all__ = ["EventValidator"]
