"""
Jira REST Client

Responsibilities:
- GET /rest/api/2/issue/{key}: fetch stories for regeneration context
- PUT /rest/api/2/issue/{key}: write the approved summary back to a custom field

Auth: Basic (email + API token) when JIRA_EMAIL is set, otherwise Bearer token.
Blocking requests calls run in a worker thread.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import requests
from requests.auth import HTTPBasicAuth

from chronicle.config import Settings, get_settings
from chronicle.exceptions import JiraApiError
from chronicle.models.issue import RelatedStory
from chronicle.utils.helpers import adf_to_text

logger = logging.getLogger(__name__)

ISSUE_FIELDS = "summary,description,status,priority,issuetype,labels,components"


class JiraClient:
    """Minimal Jira Cloud REST client."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = settings or get_settings()
        self.base_url = settings.jira_base_url.rstrip("/")
        self.email = settings.jira_email
        self.api_token = settings.jira_api_token
        self.timeout = settings.jira_timeout
        self.session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_token)

    async def get_issue(self, issue_key: str) -> Optional[RelatedStory]:
        """
        Fetch an issue as a RelatedStory.

        Args:
            issue_key: Jira issue key

        Returns:
            RelatedStory, or None if the issue does not exist (404)

        Raises:
            JiraApiError: On any other HTTP or transport failure
        """
        try:
            data = await asyncio.to_thread(
                self._request,
                "GET",
                f"/rest/api/2/issue/{issue_key}",
                params={"fields": ISSUE_FIELDS},
            )
        except JiraApiError as e:
            if e.status_code == 404:
                logger.info(f"Jira issue {issue_key} not found")
                return None
            raise

        fields = data.get("fields") or {}
        return RelatedStory(
            key=data.get("key", issue_key),
            summary=fields.get("summary") or "",
            description=adf_to_text(fields.get("description")).strip(),
            status=(fields.get("status") or {}).get("name"),
            issue_type=(fields.get("issuetype") or {}).get("name"),
            priority=(fields.get("priority") or {}).get("name"),
        )

    async def update_issue_fields(self, issue_key: str, fields: Dict[str, Any]) -> None:
        """
        Overwrite fields on an issue.

        Raises:
            JiraApiError: If the update was not accepted
        """
        await asyncio.to_thread(
            self._request,
            "PUT",
            f"/rest/api/2/issue/{issue_key}",
            json={"fields": fields},
        )
        logger.info(f"Updated Jira issue {issue_key} fields: {', '.join(fields)}")

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if not self.email and self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _auth(self) -> Optional[HTTPBasicAuth]:
        if self.email:
            return HTTPBasicAuth(self.email, self.api_token)
        return None

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if not self.is_configured:
            raise JiraApiError("Jira is not configured (JIRA_BASE_URL / JIRA_API_TOKEN)")

        try:
            response = self.session.request(
                method=method,
                url=f"{self.base_url}{path}",
                headers=self._headers(),
                auth=self._auth(),
                json=json,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise JiraApiError(f"Jira request failed: {e}") from e

        if response.status_code >= 400:
            raise JiraApiError(
                f"Jira {method} {path} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise JiraApiError(f"Jira returned invalid JSON for {path}") from e
