"""
Jira integration: REST client and related-story resolution.
"""

from chronicle.integrations.jira.client import JiraClient
from chronicle.integrations.jira.stories import RelatedStoryResolver, ResolvedStories

__all__ = ["JiraClient", "RelatedStoryResolver", "ResolvedStories"]
