"""
Jira metadata endpoints used to fill in a HierarchyConfig.
"""
from typing import Dict, Any, List
from fastapi import APIRouter, Depends, HTTPException
import logging

from api.deps import get_jira_client
from models.enums import HierarchyShape
from services.jira_client import JiraClient, JiraClientError
from services.jira_metadata import find_epic_fields, find_parent_candidates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/jira/meta")


def _jira_error(action: str, e: JiraClientError) -> HTTPException:
    logger.error(f"Failed to {action}: {str(e)}")
    status_code = 404 if e.status_code == 404 else 502
    return HTTPException(status_code=status_code, detail=f"Failed to {action}: {str(e)}")


@router.get("/connection")
def test_connection(jira_client: JiraClient = Depends(get_jira_client)) -> Dict[str, Any]:
    """Verify credentials by fetching the current user."""
    try:
        return {"success": True, "user": jira_client.get_current_user()}
    except JiraClientError as e:
        raise _jira_error("connect to Jira", e)


@router.get("/projects")
def get_projects(jira_client: JiraClient = Depends(get_jira_client)) -> List[Dict[str, str]]:
    """Get list of Jira projects visible to the credentials."""
    try:
        return jira_client.get_projects()
    except JiraClientError as e:
        raise _jira_error("fetch projects", e)


@router.get("/issue-types")
def get_issue_types(project_key: str, jira_client: JiraClient = Depends(get_jira_client)) -> List[Dict[str, Any]]:
    """Get issue types valid for a project."""
    if not project_key:
        raise HTTPException(status_code=400, detail="project_key is required")
    try:
        return jira_client.get_issue_types(project_key)
    except JiraClientError as e:
        raise _jira_error(f"fetch issue types for project {project_key}", e)


@router.get("/fields")
def get_custom_fields(jira_client: JiraClient = Depends(get_jira_client)) -> List[Dict[str, Any]]:
    """Custom fields available for content, Epic Name and Epic Link mapping."""
    try:
        return jira_client.get_fields(custom_only=True)
    except JiraClientError as e:
        raise _jira_error("fetch fields", e)


@router.get("/epic-fields")
def get_epic_fields(issue_type_id: str, jira_client: JiraClient = Depends(get_jira_client)) -> List[Dict[str, Any]]:
    """Epic Name fields for epic types, Epic Link fields otherwise."""
    try:
        return find_epic_fields(jira_client, issue_type_id)
    except JiraClientError as e:
        raise _jira_error(f"fetch fields for issue type {issue_type_id}", e)


@router.get("/parent-issues")
def get_parent_issues(
    project_key: str,
    shape: HierarchyShape = HierarchyShape.DEEP,
    jira_client: JiraClient = Depends(get_jira_client)
) -> List[Dict[str, Any]]:
    """Candidate parent issues for the selected hierarchy shape."""
    try:
        return find_parent_candidates(jira_client, project_key, shape)
    except JiraClientError as e:
        raise _jira_error(f"search parent issues in {project_key}", e)
