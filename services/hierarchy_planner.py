"""
Hierarchy planner: maps parsed Features/Scenarios onto planned Jira issues.

The plan is the preview shown before anything is written to Jira. Node ids are
derived from each node's position in a fixed pre-order walk (root, then each
feature followed by its scenarios), so planning the same document with the same
configuration always yields the same ids and a selection made against a preview
stays valid for the create call.
"""
import re
import hashlib
import json
from typing import List, Optional, Iterator, Tuple

from models.enums import HierarchyShape, IssueRole
from models.gherkin import Feature
from models.hierarchy import HierarchyConfig, PlanNode

DEFAULT_ROOT_LABEL = "Feature Files"
NODE_ID_PREFIX = "item-"
_NODE_ID = re.compile(rf"{NODE_ID_PREFIX}\d+")


def node_id(position: int) -> str:
    """Id for the node at a 1-based pre-order position."""
    return f"{NODE_ID_PREFIX}{position}"


def is_plan_id(value: Optional[str]) -> bool:
    """Whether a parent reference names a plan node rather than a Jira issue key."""
    return bool(value) and _NODE_ID.fullmatch(value) is not None


def title_case(text: str) -> str:
    """Capitalize each word and lowercase the rest ('user LOGIN flows' -> 'User Login Flows')."""
    return re.sub(r"\w\S*", lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


def root_label_for_folder(folder_name: Optional[str], default: str = DEFAULT_ROOT_LABEL) -> str:
    """Root epic label derived from the source folder name."""
    if folder_name and folder_name.strip():
        return title_case(folder_name.strip())
    return default


def _walk_deep(features: List[Feature], root_label: str) -> Iterator[Tuple]:
    # (role, name, content, parent position or None, feature name)
    yield IssueRole.EPIC, root_label, None, None, None
    root_position = 1
    position = 1
    for feature in features:
        position += 1
        feature_position = position
        yield IssueRole.FEATURE, feature.name, feature.raw_content, root_position, feature.name
        for scenario in feature.scenarios:
            position += 1
            yield IssueRole.STORY, scenario.name, scenario.raw_content, feature_position, feature.name


def _walk_flat(features: List[Feature], root_label: str) -> Iterator[Tuple]:
    position = 0
    for feature in features:
        position += 1
        story_position = position
        yield IssueRole.STORY, feature.name, feature.raw_content, None, feature.name
        for scenario in feature.scenarios:
            position += 1
            yield IssueRole.SUBTASK, scenario.name, scenario.raw_content, story_position, feature.name


def plan_hierarchy(
    features: List[Feature],
    config: HierarchyConfig,
    root_label: str = DEFAULT_ROOT_LABEL
) -> List[PlanNode]:
    """
    Build the ordered plan for a set of parsed features.

    Deep shape: root epic (under config.parent_issue_key) -> one feature per
    Feature -> one story per Scenario.
    Flat shape: one story per Feature (under config.parent_issue_key) -> one
    sub-task per Scenario.

    Every node starts selected. No I/O is performed.

    Args:
        features: Parsed features in document order
        config: Hierarchy configuration (shape and external parent key)
        root_label: Summary of the root epic (deep shape only)

    Returns:
        Plan nodes in pre-order; parents always precede their children
    """
    walk = _walk_deep if config.shape == HierarchyShape.DEEP else _walk_flat
    external_parent = config.parent_issue_key or None

    plan = []
    for position, (role, name, content, parent_position, feature_name) in enumerate(
        walk(features, root_label), start=1
    ):
        parent_id = node_id(parent_position) if parent_position else external_parent
        plan.append(PlanNode(
            id=node_id(position),
            role=role,
            display_name=name,
            content=content,
            parent_id=parent_id,
            feature_name=feature_name
        ))

    return plan


def compute_plan_checksum(plan: List[PlanNode]) -> str:
    """
    SHA-256 over every plan field except 'selected'.

    Used to detect drift between the previewed plan and a plan regenerated for
    the create call.
    """
    canonical = [
        [n.id, n.role.value, n.display_name, n.content, n.parent_id, n.feature_name]
        for n in plan
    ]
    hash_input = json.dumps(canonical, ensure_ascii=False, separators=(",", ":"))
    return f"sha256:{hashlib.sha256(hash_input.encode('utf-8')).hexdigest()}"


def count_roles(plan: List[PlanNode]) -> dict:
    """Number of planned nodes per role, for preview summaries."""
    counts = {}
    for node in plan:
        counts[node.role.value] = counts.get(node.role.value, 0) + 1
    return counts
