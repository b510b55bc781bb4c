"""
Selection filter over a plan.

Selection is a flat set of node ids. Excluding a node does not exclude its
descendants here; the materializer skips any node whose planned parent was not
created.
"""
from typing import Iterable, List, Optional, Set

from models.hierarchy import PlanNode


def filter_plan(plan: List[PlanNode], selected_ids: Optional[Iterable[str]] = None) -> List[PlanNode]:
    """
    Keep only the selected nodes.

    An empty or missing selection means "select all" and returns the plan unchanged.
    """
    if not selected_ids:
        return plan
    wanted = set(selected_ids)
    if not wanted:
        return plan
    return [node for node in plan if node.id in wanted]


def apply_selection(plan: List[PlanNode], selected_ids: Optional[Iterable[str]] = None) -> List[PlanNode]:
    """Return copies of the plan nodes with 'selected' set from the selection."""
    wanted = set(selected_ids or [])
    if not wanted:
        return [node.model_copy(update={"selected": True}) for node in plan]
    return [node.model_copy(update={"selected": node.id in wanted}) for node in plan]


def selected_ids_from_plan(plan: List[PlanNode]) -> Set[str]:
    """Ids of nodes whose 'selected' flag is set."""
    return {node.id for node in plan if node.selected}


def find_orphaned_selections(plan: List[PlanNode], selected_ids: Optional[Iterable[str]] = None) -> List[str]:
    """
    Selected node ids whose planned parent is not selected.

    These nodes will be skipped at creation time because their parent never gets
    an issue key.
    """
    wanted = set(selected_ids or [])
    if not wanted:
        return []
    planned = {node.id for node in plan}
    return [
        node.id for node in plan
        if node.id in wanted and node.parent_id in planned and node.parent_id not in wanted
    ]
