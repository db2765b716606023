"""
Domain Exceptions

Every failure the pipeline can surface to a caller. Routes translate these
into HTTP responses; integration layers wrap SDK errors into them.
"""

from typing import List, Optional


class ChronicleError(Exception):
    """Base class for all pipeline errors."""

    pass


class ValidationError(ChronicleError):
    """
    Raised when input is malformed (bad webhook payload, missing approval title).
    Maps to 400 with no side effects.
    """

    pass


class FilteredEvent(ChronicleError):
    """
    Raised when a well-formed event is not eligible for a changelog entry.
    Not a failure - the webhook still answers 200.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class DuplicateEvent(ChronicleError):
    """Raised when an active changelog entry already exists for the issue."""

    def __init__(self, issue_key: str, entry_id: Optional[str] = None):
        super().__init__(f"Changelog entry already exists for {issue_key}")
        self.issue_key = issue_key
        self.entry_id = entry_id


class ProviderError(ChronicleError):
    """
    Raised when an AI provider call fails or every provider in the chain failed.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class ProviderResponseError(ProviderError):
    """Raised when a provider answered but the content is unusable."""

    pass


class EntryNotFoundError(ChronicleError):
    """Raised when a changelog entry id does not exist. Maps to 404."""

    def __init__(self, entry_id: str):
        super().__init__(f"Changelog entry not found: {entry_id}")
        self.entry_id = entry_id


class InvalidStateError(ChronicleError):
    """
    Raised when a transition is not allowed from the entry's current state.
    Maps to 409 and leaves the entry untouched.
    """

    def __init__(self, entry_id: str, current: str, action: str):
        super().__init__(f"Cannot {action} entry {entry_id} in state '{current}'")
        self.entry_id = entry_id
        self.current = current
        self.action = action


class ConcurrentModificationError(ChronicleError):
    """
    Raised when the entry changed since the caller read it (stale revision or
    a lost compare-and-swap). Maps to 409.
    """

    def __init__(self, entry_id: str, expected: Optional[int] = None, actual: Optional[int] = None):
        message = f"Changelog entry {entry_id} was modified concurrently"
        if expected is not None and actual is not None:
            message += f" (expected revision {expected}, found {actual})"
        super().__init__(message)
        self.entry_id = entry_id
        self.expected = expected
        self.actual = actual


class RelatedStoriesUnavailableError(ChronicleError):
    """Raised when none of the requested related stories could be fetched."""

    def __init__(self, failed_stories: List[str]):
        super().__init__(
            "Could not access any of the related stories: " + ", ".join(failed_stories)
        )
        self.failed_stories = failed_stories


class NotificationError(ChronicleError):
    """Raised when a chat message could not be delivered. Logged, never propagated."""

    pass


class JiraApiError(ChronicleError):
    """Raised when a Jira REST call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SyncBackError(ChronicleError):
    """Raised when the approved summary could not be written back to the issue."""

    pass
