"""
Jira client for the hierarchy agent.

Wraps the Jira REST API v2 (wiki-markup descriptions) with the small set of
calls the agent needs: project metadata lookups, issue creation, field updates,
issue links and JQL search.
"""
from typing import Dict, Any, Optional, List
import requests
from requests.auth import HTTPBasicAuth
import json
import os
import logging

logger = logging.getLogger(__name__)

API_PREFIX = "/rest/api/2"


class JiraClientError(Exception):
    """Raised when Jira API calls fail."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_details(response: requests.Response) -> str:
    """Pull Jira's errorMessages/errors out of a failed response, if any."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] if response.text else ""

    parts = list(body.get("errorMessages") or []) if isinstance(body, dict) else []
    if isinstance(body, dict):
        for field, message in (body.get("errors") or {}).items():
            parts.append(f"{field}: {message}")
    return "; ".join(parts)


class JiraClient:
    """Client for Jira issue and metadata operations."""

    def __init__(self, base_url: str, username: str, api_token: str, timeout: Optional[int] = None):
        """
        Initialize Jira client.

        Args:
            base_url: Jira instance URL (e.g., "https://yourcompany.atlassian.net")
            username: Jira user email for authentication
            api_token: Jira API token for authentication
            timeout: Request timeout in seconds (default: 90, or JIRA_API_TIMEOUT env var)
        """
        self.jira_url = (base_url or "").rstrip("/")
        self.username = username
        self.api_token = api_token
        # Jira can be slow; every call is bounded by this timeout
        self.timeout = timeout or int(os.getenv("JIRA_API_TIMEOUT", "90"))

        if not self.jira_url:
            raise JiraClientError("JIRA_BASE_URL cannot be empty")
        if not self.username:
            raise JiraClientError("JIRA_USERNAME cannot be empty")
        if not self.api_token:
            raise JiraClientError("JIRA_API_TOKEN cannot be empty")

    def _make_request(
        self,
        endpoint: str,
        method: str = "GET",
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make authenticated request to Jira API.

        Args:
            endpoint: API endpoint (e.g., "/rest/api/2/issue/KEY-123")
            method: HTTP method (GET, PUT, POST)
            data: Optional request body data
            params: Optional query string parameters

        Returns:
            Decoded JSON response ({} for empty bodies)

        Raises:
            JiraClientError: If request fails, with the HTTP status when there is one
        """
        url = f"{self.jira_url}{endpoint}"
        auth = HTTPBasicAuth(self.username, self.api_token)
        headers = {"Accept": "application/json", "Content-Type": "application/json"}

        if method not in ("GET", "PUT", "POST"):
            raise JiraClientError(f"Unsupported HTTP method: {method}")

        try:
            response = requests.request(
                method,
                url,
                auth=auth,
                headers=headers,
                params=params,
                data=json.dumps(data) if data is not None else None,
                timeout=self.timeout
            )
            response.raise_for_status()
            # Some responses may be empty (201/204 with no content)
            if response.content:
                return response.json()
            return {}
        except requests.exceptions.Timeout:
            raise JiraClientError(
                f"Jira API request timed out after {self.timeout} seconds: {method} {endpoint}"
            )
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            details = _error_details(e.response) if e.response is not None else ""
            message = f"Jira API request failed ({status_code}): {method} {endpoint}"
            if details:
                message += f" - {details}"
            raise JiraClientError(message, status_code=status_code)
        except requests.exceptions.RequestException as e:
            raise JiraClientError(f"Jira API request failed: {str(e)}")

    def issue_url(self, issue_key: str) -> str:
        """Browser URL for an issue."""
        return f"{self.jira_url}/browse/{issue_key}"

    def get_current_user(self) -> Dict[str, Any]:
        """
        Fetch the authenticated user (used to test the connection).

        Returns:
            Dictionary with name, display_name, email_address
        """
        user = self._make_request(f"{API_PREFIX}/myself")
        return {
            "name": user.get("name") or user.get("accountId", ""),
            "display_name": user.get("displayName", ""),
            "email_address": user.get("emailAddress", "")
        }

    def get_projects(self) -> List[Dict[str, str]]:
        """
        Get list of Jira projects visible to the credentials.

        Returns:
            List of project dictionaries with 'id', 'key' and 'name'
        """
        response = self._make_request(f"{API_PREFIX}/project")

        projects = []
        for project in response or []:
            projects.append({
                "id": project.get("id", ""),
                "key": project.get("key", ""),
                "name": project.get("name", "")
            })

        return projects

    def get_issue_types(self, project_key: str) -> List[Dict[str, Any]]:
        """
        Get issue types valid for a project.

        Args:
            project_key: Jira project key

        Returns:
            List of issue type dictionaries with 'id', 'name' and 'subtask'
        """
        project = self._make_request(f"{API_PREFIX}/project/{project_key}")

        issue_types = []
        for issue_type in project.get("issueTypes", []):
            issue_types.append({
                "id": issue_type.get("id", ""),
                "name": issue_type.get("name", ""),
                "subtask": bool(issue_type.get("subtask", False))
            })

        return issue_types

    def list_issue_types(self) -> List[Dict[str, Any]]:
        """All issue types defined on the instance."""
        response = self._make_request(f"{API_PREFIX}/issuetype")
        return [
            {
                "id": t.get("id", ""),
                "name": t.get("name", ""),
                "description": t.get("description", ""),
                "subtask": bool(t.get("subtask", False))
            }
            for t in response or []
        ]

    def get_fields(self, custom_only: bool = True) -> List[Dict[str, Any]]:
        """
        List Jira fields.

        Args:
            custom_only: Only return custom fields (default True)

        Returns:
            List of field dictionaries with 'id', 'name', 'custom' and 'schema'
        """
        response = self._make_request(f"{API_PREFIX}/field")
        fields = []
        for field in response or []:
            if custom_only and not field.get("custom"):
                continue
            fields.append({
                "id": field.get("id", ""),
                "name": field.get("name", ""),
                "custom": bool(field.get("custom", False)),
                "schema": field.get("schema")
            })
        return fields

    def create_issue(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a new Jira issue.

        Args:
            fields: Complete 'fields' payload (project, summary, issuetype, parent, ...)

        Returns:
            Jira API response with created issue 'key' and 'id'

        Raises:
            JiraClientError: If creation fails
        """
        response = self._make_request(
            f"{API_PREFIX}/issue",
            method="POST",
            data={"fields": fields}
        )
        if not response.get("key"):
            raise JiraClientError("Jira create response did not include an issue key")
        return response

    def update_issue(self, issue_key: str, fields: Dict[str, Any]) -> None:
        """
        Set fields on an existing issue.

        Raises:
            JiraClientError: If the update fails
        """
        self._make_request(
            f"{API_PREFIX}/issue/{issue_key}",
            method="PUT",
            data={"fields": fields}
        )

    def link_issues(self, inward_key: str, outward_key: str, link_type: str = "Relates") -> None:
        """
        Create an issue link between two issues.

        Raises:
            JiraClientError: If the link cannot be created
        """
        self._make_request(
            f"{API_PREFIX}/issueLink",
            method="POST",
            data={
                "type": {"name": link_type},
                "inwardIssue": {"key": inward_key},
                "outwardIssue": {"key": outward_key}
            }
        )

    def search_issues(
        self,
        jql: str,
        max_results: int = 100,
        fields: Optional[List[str]] = None
    ) -> List[Dict[str, Any]]:
        """
        Search for Jira issues using JQL.

        Args:
            jql: JQL query string
            max_results: Maximum number of issues to return
            fields: Fields to fetch (default: key, summary, issuetype)

        Returns:
            List of issue dictionaries with keys: issue_key, summary, id, issue_type
        """
        response = self._make_request(
            f"{API_PREFIX}/search",
            params={
                "jql": jql,
                "maxResults": max_results,
                "fields": ",".join(fields or ["key", "summary", "issuetype"])
            }
        )

        issues = []
        for issue in response.get("issues", []):
            issue_fields = issue.get("fields", {})
            issues.append({
                "issue_key": issue.get("key"),
                "summary": issue_fields.get("summary", ""),
                "id": issue.get("id"),
                "issue_type": (issue_fields.get("issuetype") or {}).get("name", "")
            })

        return issues
