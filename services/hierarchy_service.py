"""
Preview and create entry points used by the API layer.

preview_plan() parses and plans without touching the network.
create_from_plan() resolves issue types, applies the selection and materializes
the surviving nodes.
"""
import logging
import threading
from typing import Iterable, List, Optional

from models.hierarchy import HierarchyConfig, MaterializationResult, PlanNode
from services.gherkin_parser import parse_gherkin
from services.hierarchy_planner import plan_hierarchy, root_label_for_folder
from services.jira_client import JiraClient
from services.materializer import IssueMaterializer
from services.selection import apply_selection
from services.type_resolver import IssueTypeResolver

logger = logging.getLogger(__name__)


def preview_plan(
    document: str,
    config: HierarchyConfig,
    folder_name: Optional[str] = None,
    root_label: Optional[str] = None
) -> List[PlanNode]:
    """
    Parse Gherkin text and plan the issue hierarchy.

    Args:
        document: Gherkin text
        config: Hierarchy configuration
        folder_name: Source folder name; title-cased into the root epic label
        root_label: Explicit root epic label (wins over folder_name)

    Raises:
        ParseError: If the document contains no features
    """
    features = parse_gherkin(document)
    label = root_label or root_label_for_folder(folder_name)
    return plan_hierarchy(features, config, label)


def selection_plan(plan: List[PlanNode], selected_ids: Optional[Iterable[str]] = None) -> List[PlanNode]:
    """
    The plan with its 'selected' flags settled.

    An explicit id selection wins; without one, the nodes' own flags are kept.
    """
    selected = list(selected_ids or [])
    if selected:
        return apply_selection(plan, selected)
    return plan


def nodes_to_create(plan: List[PlanNode], selected_ids: Optional[Iterable[str]] = None) -> List[PlanNode]:
    """Nodes that survive selection."""
    return [node for node in selection_plan(plan, selected_ids) if node.selected]


def create_from_plan(
    plan: List[PlanNode],
    selected_ids: Optional[Iterable[str]],
    config: HierarchyConfig,
    jira_client: JiraClient,
    cancel_event: Optional[threading.Event] = None
) -> MaterializationResult:
    """
    Create the selected part of a plan in Jira.

    Issue types are resolved for every role the selected nodes use before the
    first create call, so an unresolvable type fails the run without writing
    anything.

    Raises:
        TypeNotFoundError: If a needed role has no matching issue type
        JiraClientError: If project issue types cannot be fetched
    """
    plan = selection_plan(plan, selected_ids)
    nodes = [node for node in plan if node.selected]
    logger.info(f"Creating {len(nodes)} of {len(plan)} planned issues in project {config.project_key}")

    if not nodes:
        return MaterializationResult(planned=0)

    roles = []
    for node in nodes:
        if node.role not in roles:
            roles.append(node.role)

    issue_types = IssueTypeResolver(jira_client).resolve_roles(config, roles)
    materializer = IssueMaterializer(jira_client, config, issue_types)
    return materializer.materialize(plan, cancel_event=cancel_event)
