"""
Issue materializer: turns a (filtered) plan into linked Jira issues.

Nodes are created one at a time in plan order. A child needs the key returned
for its parent, so creation is strictly sequential. Failures are recorded per
node and never stop the loop; a node whose planned parent was not created is
skipped, and because its own id then never gets a key, the skip cascades to its
whole subtree.
"""
import hashlib
import logging
import threading
from typing import Dict, Any, Iterable, List, Optional

from models.enums import EXTERNAL_PARENT_ROLE, IssueRole, NodeErrorKind
from models.hierarchy import (
    CreatedIssue,
    HierarchyConfig,
    LinkOutcome,
    MaterializationResult,
    NodeError,
    PlanNode,
)
from services.hierarchy_planner import is_plan_id
from services.jira_client import JiraClient, JiraClientError
from services.jira_markup import format_gherkin_description

logger = logging.getLogger(__name__)

DEDUPE_LABEL_PREFIX = "gherkin_"


def compute_node_label(
    project_key: str,
    role: IssueRole,
    summary: str,
    content: Optional[str],
    parent_key: Optional[str]
) -> str:
    """
    Deterministic label identifying an issue created for a plan node.

    Re-running the same plan under the same parent produces the same label, which
    lets a second run find and reuse issues created by the first.
    """
    hash_input = f"{project_key}|{role.value}|{summary}|{content or ''}|{parent_key or ''}"
    digest = hashlib.sha256(hash_input.encode("utf-8")).hexdigest()
    return f"{DEDUPE_LABEL_PREFIX}{digest[:12]}"


class IssueMaterializer:
    """Creates plan nodes as Jira issues, wiring each to its already-created parent."""

    def __init__(
        self,
        jira_client: JiraClient,
        config: HierarchyConfig,
        issue_types: Dict[IssueRole, Dict[str, Any]]
    ):
        """
        Args:
            jira_client: Client used for every tracker call
            config: Hierarchy configuration (project, fields, link type)
            issue_types: Resolved issue type per role (from IssueTypeResolver)
        """
        self.jira_client = jira_client
        self.config = config
        self.issue_types = issue_types

    def _parent_role(self, node: PlanNode, planned_roles: Dict[str, IssueRole]) -> Optional[IssueRole]:
        if node.parent_id is None:
            return None
        if node.parent_id in planned_roles:
            return planned_roles[node.parent_id]
        return EXTERNAL_PARENT_ROLE.get(self.config.shape)

    def build_fields(
        self,
        node: PlanNode,
        parent_key: Optional[str],
        parent_role: Optional[IssueRole],
        label: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the create payload's 'fields' for a node.

        The description (and the role's extra content field, if configured) is
        the node's Gherkin block with bolded keywords inside a code block.
        """
        issue_type = self.issue_types[node.role]
        fields = {
            "project": {"key": self.config.project_key},
            "summary": node.display_name,
            "issuetype": {"id": issue_type["id"]}
        }

        if node.content is not None:
            description = format_gherkin_description(node.content)
            fields["description"] = description
            content_field = self.config.content_field_for_role(node.role)
            if content_field:
                fields[content_field] = description

        if parent_key:
            if (
                self.config.epic_link_field
                and parent_role == IssueRole.EPIC
                and node.role != IssueRole.SUBTASK
            ):
                fields[self.config.epic_link_field] = parent_key
            else:
                fields["parent"] = {"key": parent_key}

        if node.role == IssueRole.EPIC and self.config.epic_name_field:
            fields[self.config.epic_name_field] = node.display_name

        if label:
            fields["labels"] = [label]

        return fields

    def _find_existing(self, label: str) -> Optional[str]:
        """Key of an issue already carrying this label, or None (fail-safe on search errors)."""
        jql = f'project = "{self.config.project_key}" AND labels = "{label}"'
        try:
            issues = self.jira_client.search_issues(jql, max_results=1)
        except JiraClientError as e:
            logger.warning(f"Duplicate check failed for label {label}, creating anyway: {e}")
            return None
        if issues:
            return issues[0].get("issue_key")
        return None

    def _link_to_feature(self, story_key: str, feature_key: str) -> LinkOutcome:
        link_type = self.config.relates_link_type
        try:
            self.jira_client.link_issues(story_key, feature_key, link_type)
            logger.info(f"Created \"{link_type}\" link from {story_key} to {feature_key}")
            return LinkOutcome(from_key=story_key, to_key=feature_key, link_type=link_type, ok=True)
        except JiraClientError as e:
            logger.warning(f"Could not create link between {story_key} and {feature_key}: {e}")
            return LinkOutcome(
                from_key=story_key, to_key=feature_key, link_type=link_type, ok=False, message=str(e)
            )

    def materialize(
        self,
        nodes: List[PlanNode],
        known_ids: Optional[Iterable[str]] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> MaterializationResult:
        """
        Create issues for the selected nodes of a plan, in order.

        Nodes with selected=False are not created. Like a failed node they never
        get a key, so their selected descendants are skipped. A parent_id that is
        a plan id (item-N, or any id in `known_ids`) is never sent to Jira as an
        issue key, even when that node is missing from `nodes`.

        Args:
            nodes: The plan (or a filtered subset of one), parents first
            known_ids: Extra ids to treat as plan references
            cancel_event: Checked before each node; once set, the remaining
                          selected nodes are reported as cancelled

        Returns:
            MaterializationResult with created issues, per-node errors and link outcomes
        """
        planned_ids = {n.id for n in nodes} | set(known_ids or [])
        planned_roles = {n.id: n.role for n in nodes}
        to_create = [n for n in nodes if n.selected]
        created_keys: Dict[str, str] = {}
        result = MaterializationResult(planned=len(to_create))

        for index, node in enumerate(to_create):
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                logger.warning(f"Materialization cancelled; {len(to_create) - index} nodes not attempted")
                for pending in to_create[index:]:
                    result.errors.append(NodeError(
                        node_id=pending.id,
                        kind=NodeErrorKind.CANCELLED,
                        message="Run cancelled before this node was attempted"
                    ))
                break

            if node.parent_id is not None and (node.parent_id in planned_ids or is_plan_id(node.parent_id)):
                parent_key = created_keys.get(node.parent_id)
                if parent_key is None:
                    logger.info(
                        f"Skipping {node.role.value} \"{node.display_name}\" ({node.id}): "
                        f"parent {node.parent_id} was not created"
                    )
                    result.errors.append(NodeError(
                        node_id=node.id,
                        kind=NodeErrorKind.SKIPPED_MISSING_PARENT,
                        message=f"Parent {node.parent_id} was not created"
                    ))
                    continue
            else:
                parent_key = node.parent_id

            parent_role = self._parent_role(node, planned_roles)
            label = None
            if self.config.dedupe:
                label = compute_node_label(
                    self.config.project_key, node.role, node.display_name, node.content, parent_key
                )

            reused = False
            try:
                existing_key = self._find_existing(label) if label else None
                if existing_key:
                    key = existing_key
                    reused = True
                    logger.info(f"Reusing existing {node.role.value} {key} for \"{node.display_name}\"")
                else:
                    fields = self.build_fields(node, parent_key, parent_role, label)
                    key = self.jira_client.create_issue(fields)["key"]
                    logger.info(f"Created {node.role.value}: {key} (\"{node.display_name}\")")
            except JiraClientError as e:
                logger.error(f"Error creating {node.role.value} \"{node.display_name}\" ({node.id}): {e}")
                result.errors.append(NodeError(
                    node_id=node.id,
                    kind=NodeErrorKind.FAILED,
                    message=str(e),
                    status_code=e.status_code
                ))
                continue

            created_keys[node.id] = key
            result.created.append(CreatedIssue(
                node_id=node.id,
                external_key=key,
                role=node.role,
                display_name=node.display_name,
                parent_external_key=parent_key,
                url=self.jira_client.issue_url(key),
                reused=reused
            ))

            if reused:
                continue

            if node.role == IssueRole.STORY and self.config.feature_name_field and node.feature_name:
                try:
                    self.jira_client.update_issue(key, {self.config.feature_name_field: node.feature_name})
                except JiraClientError as e:
                    logger.warning(f"Could not set feature name on {key}: {e}")
                    result.errors.append(NodeError(
                        node_id=node.id,
                        kind=NodeErrorKind.FAILED,
                        stage="update",
                        message=str(e),
                        status_code=e.status_code
                    ))

            if (
                self.config.relates_link_type
                and node.role == IssueRole.STORY
                and parent_role == IssueRole.FEATURE
                and node.parent_id in created_keys
            ):
                result.link_outcomes.append(self._link_to_feature(key, created_keys[node.parent_id]))

        logger.info(f"Materialization finished: {result.summary()}")
        return result
