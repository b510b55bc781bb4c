"""
Unit tests for plan selection.
"""
import sys
import os
from itertools import combinations

# Add parent directory to path to import modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from models.enums import HierarchyShape
from models.hierarchy import HierarchyConfig
from services.gherkin_parser import parse_gherkin
from services.hierarchy_planner import plan_hierarchy
from services.selection import (
    apply_selection,
    filter_plan,
    find_orphaned_selections,
    selected_ids_from_plan,
)


TEXT = """Feature: A
  Scenario: A1
    Given a
Feature: B
  Scenario: B1
    Given b
  Scenario: B2
    Given c
"""


def _plan(shape=HierarchyShape.DEEP):
    return plan_hierarchy(parse_gherkin(TEXT), HierarchyConfig(project_key="PROJ", shape=shape, parent_issue_key="EXT-1"))


def test_empty_selection_selects_everything():
    plan = _plan()
    assert filter_plan(plan, set()) is plan
    assert filter_plan(plan, None) is plan
    assert filter_plan(plan, []) is plan


def test_filter_keeps_plan_order():
    plan = _plan()
    kept = filter_plan(plan, {"item-5", "item-1", "item-4"})
    assert [n.id for n in kept] == ["item-1", "item-4", "item-5"]


def test_filter_does_not_drop_descendants():
    plan = _plan()
    kept = filter_plan(plan, {"item-1", "item-3"})
    # item-3 (A1) survives even though its feature item-2 was not selected
    assert [n.id for n in kept] == ["item-1", "item-3"]


def test_selection_is_monotonic():
    plan = _plan()
    ids = [n.id for n in plan]
    subsets = [set(c) for size in range(1, 4) for c in combinations(ids, size)]

    for small in subsets:
        for large in subsets:
            if small <= large:
                small_ids = {n.id for n in filter_plan(plan, small)}
                large_ids = {n.id for n in filter_plan(plan, large)}
                assert small_ids <= large_ids


def test_apply_selection_sets_flags_without_mutating():
    plan = _plan()
    flagged = apply_selection(plan, ["item-1", "item-2"])

    assert selected_ids_from_plan(flagged) == {"item-1", "item-2"}
    assert all(n.selected for n in plan)
    assert selected_ids_from_plan(apply_selection(flagged, [])) == {n.id for n in plan}


def test_orphaned_selections_are_reported():
    plan = _plan()
    assert find_orphaned_selections(plan, {"item-1", "item-3", "item-4", "item-5"}) == ["item-3"]
    assert find_orphaned_selections(plan, {"item-1", "item-2", "item-3"}) == []
    assert find_orphaned_selections(plan, None) == []


def test_external_parent_is_never_orphaned():
    plan = _plan(HierarchyShape.FLAT)
    # item-1 (story A) hangs off the external EXT-1 key
    assert find_orphaned_selections(plan, {"item-1"}) == []
    assert find_orphaned_selections(plan, {"item-2"}) == ["item-2"]
