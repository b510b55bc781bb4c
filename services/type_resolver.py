"""
Resolves abstract hierarchy roles to a project's configured Jira issue types.
"""
import logging
from typing import Dict, Any, List, Iterable, Optional

from models.enums import IssueRole
from models.hierarchy import HierarchyConfig
from services.jira_client import JiraClient

logger = logging.getLogger(__name__)

# Substring fallbacks per role, tried in order after an exact name match fails
ROLE_HEURISTICS = {
    IssueRole.EPIC: ["epic"],
    IssueRole.FEATURE: ["feature", "story"],
    IssueRole.STORY: ["story", "task"],
    IssueRole.SUBTASK: ["sub-task", "subtask"],
}


class TypeNotFoundError(Exception):
    """Raised when no project issue type can play a role."""

    def __init__(self, role: IssueRole, configured: str, available: List[str]):
        self.role = role
        self.configured = configured
        self.available = available
        super().__init__(
            f"{role.value.capitalize()} issue type \"{configured}\" not found in project. "
            f"Available types: {', '.join(available)}"
        )


def resolve_role(role: IssueRole, configured: str, project_types: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Pick the issue type for a role.

    Resolution order:
    1. configured value equals a type id
    2. case-insensitive exact name match
    3. substring heuristics for the role (sub-task types are only considered
       for the sub-task role)
    4. sub-task role only: any type flagged as a sub-task

    Args:
        role: Abstract role to resolve
        configured: Configured issue type name or id
        project_types: Project issue types as {id, name, subtask}

    Returns:
        The matching issue type dict

    Raises:
        TypeNotFoundError: If nothing matches
    """
    wanted = (configured or "").strip().lower()

    for issue_type in project_types:
        if configured and str(issue_type.get("id", "")) == configured:
            return issue_type

    for issue_type in project_types:
        if wanted and issue_type.get("name", "").lower() == wanted:
            return issue_type

    candidates = [
        t for t in project_types
        if role == IssueRole.SUBTASK or not t.get("subtask")
    ]
    for needle in ROLE_HEURISTICS[role]:
        for issue_type in candidates:
            if needle in issue_type.get("name", "").lower():
                return issue_type

    if role == IssueRole.SUBTASK:
        for issue_type in project_types:
            if issue_type.get("subtask") is True:
                return issue_type

    raise TypeNotFoundError(role, configured, [t.get("name", "") for t in project_types])


class IssueTypeResolver:
    """Resolves role type ids for a project, caching project issue types for one run."""

    def __init__(self, jira_client: JiraClient):
        self.jira_client = jira_client
        self._project_types: Dict[str, List[Dict[str, Any]]] = {}

    def project_types(self, project_key: str) -> List[Dict[str, Any]]:
        if project_key not in self._project_types:
            self._project_types[project_key] = self.jira_client.get_issue_types(project_key)
            logger.info(
                f"Available issue types for {project_key}: "
                f"{[t.get('name') for t in self._project_types[project_key]]}"
            )
        return self._project_types[project_key]

    def resolve_roles(
        self,
        config: HierarchyConfig,
        roles: Optional[Iterable[IssueRole]] = None
    ) -> Dict[IssueRole, Dict[str, Any]]:
        """
        Resolve every requested role up front.

        Args:
            config: Hierarchy configuration with per-role type names/ids
            roles: Roles to resolve (default: epic, feature, story, sub-task)

        Returns:
            Mapping role -> issue type dict

        Raises:
            TypeNotFoundError: On the first role that cannot be resolved
        """
        if roles is None:
            roles = [IssueRole.EPIC, IssueRole.FEATURE, IssueRole.STORY, IssueRole.SUBTASK]

        project_types = self.project_types(config.project_key)
        resolved = {}
        for role in roles:
            resolved[role] = resolve_role(role, config.type_for_role(role), project_types)

        logger.info(
            "Using issue types: "
            + ", ".join(f"{role.value}={t.get('name')} ({t.get('id')})" for role, t in resolved.items())
        )
        return resolved
