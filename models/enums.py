"""
Role, shape and diagnostic enums for the hierarchy pipeline.
"""
from enum import Enum


class HierarchyShape(str, Enum):
    """Supported tree topologies."""
    
    DEEP = "deep"  # Initiative -> Epic -> Feature -> Story
    FLAT = "flat"  # Epic -> Story -> Sub-task


class IssueRole(str, Enum):
    """Abstract hierarchy levels, independent of the tracker's type names."""
    
    INITIATIVE = "initiative"
    EPIC = "epic"
    FEATURE = "feature"
    STORY = "story"
    SUBTASK = "subtask"


class NodeErrorKind(str, Enum):
    """Per-node diagnostic kinds reported by the materializer."""
    
    FAILED = "failed"
    SKIPPED_MISSING_PARENT = "skipped_missing_parent"
    CANCELLED = "cancelled"


# Role of the externally supplied parent issue for each shape
EXTERNAL_PARENT_ROLE = {
    HierarchyShape.DEEP: IssueRole.INITIATIVE,
    HierarchyShape.FLAT: IssueRole.EPIC,
}
