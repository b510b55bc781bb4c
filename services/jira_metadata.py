"""
Jira metadata lookups that back the configuration screens: candidate parent
issues and Epic Name / Epic Link field discovery.
"""
import logging
from typing import Dict, Any, List

from models.enums import EXTERNAL_PARENT_ROLE, HierarchyShape
from services.jira_client import JiraClient, JiraClientError

logger = logging.getLogger(__name__)

HIGH_LEVEL_TYPE_MARKERS = ["Initiative", "Epic", "Theme", "Program"]


def find_parent_candidates(
    jira_client: JiraClient,
    project_key: str,
    shape: HierarchyShape,
    max_results: int = 100
) -> List[Dict[str, Any]]:
    """
    Issues that can serve as the external parent of a tree.

    Searches the shape's parent type first (Initiative for deep, Epic for flat).
    If that search fails, typically because the type does not exist, falls back
    to every high-level issue type on the instance.

    Raises:
        JiraClientError: If both the search and the fallback fail
    """
    parent_type = EXTERNAL_PARENT_ROLE[shape].value.capitalize()
    jql = f'project = "{project_key}" AND issuetype = "{parent_type}" ORDER BY created DESC'
    try:
        return jira_client.search_issues(jql, max_results=max_results)
    except JiraClientError as e:
        logger.warning(f"Parent search for {parent_type} in {project_key} failed, trying fallback: {e}")

    issue_types = jira_client.list_issue_types()
    high_level = []
    for issue_type in issue_types:
        name = issue_type.get("name", "")
        if any(marker in name for marker in HIGH_LEVEL_TYPE_MARKERS) and name not in high_level:
            high_level.append(name)

    if not high_level:
        return []

    type_clause = " OR ".join(f'issuetype = "{name}"' for name in high_level)
    jql = f'project = "{project_key}" AND ({type_clause}) ORDER BY created DESC'
    return jira_client.search_issues(jql, max_results=max_results)


def find_epic_fields(jira_client: JiraClient, issue_type_id: str) -> List[Dict[str, Any]]:
    """
    Custom fields relevant to an issue type: Epic Name fields for epics,
    Epic Link fields for everything else.

    Raises:
        JiraClientError: If the issue type does not exist or Jira calls fail
    """
    issue_types = jira_client.list_issue_types()
    issue_type = next((t for t in issue_types if str(t.get("id")) == str(issue_type_id)), None)
    if issue_type is None:
        raise JiraClientError(f"Issue type {issue_type_id} not found", status_code=404)

    wanted = "name" if issue_type.get("name", "").lower() == "epic" else "link"
    fields = jira_client.get_fields(custom_only=False)
    return [
        {"id": f["id"], "name": f["name"], "required": False, "schema": f.get("schema")}
        for f in fields
        if "epic" in f.get("name", "").lower() and wanted in f.get("name", "").lower()
    ]
