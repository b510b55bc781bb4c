"""
Pydantic models for hierarchy planning and issue materialization.
"""
from typing import Optional, List, Set
from pydantic import BaseModel, Field
from models.enums import HierarchyShape, IssueRole, NodeErrorKind


class HierarchyConfig(BaseModel):
    """Caller-supplied configuration for one preview/create run."""

    shape: HierarchyShape = Field(default=HierarchyShape.DEEP, description="Tree topology: 'deep' or 'flat'")
    project_key: str = Field(..., description="Jira project key")
    parent_issue_key: Optional[str] = Field(
        None,
        description="Existing issue the whole tree is rooted under (Initiative for deep, Epic for flat)"
    )

    # Issue type names or ids per abstract role
    epic_type: str = Field(default="Epic", description="Issue type (name or id) for the epic role")
    feature_type: str = Field(default="Feature", description="Issue type (name or id) for the feature role")
    story_type: str = Field(default="Story", description="Issue type (name or id) for the story role")
    subtask_type: str = Field(default="Sub-task", description="Issue type (name or id) for the sub-task role")

    # Custom fields
    epic_name_field: Optional[str] = Field(None, description="Epic Name custom field id (e.g., customfield_10011)")
    epic_link_field: Optional[str] = Field(None, description="Epic Link custom field id (e.g., customfield_10010)")
    feature_field: str = Field(default="description", description="Extra field holding feature content")
    story_field: str = Field(default="description", description="Extra field holding story content")
    subtask_field: str = Field(default="description", description="Extra field holding sub-task content")
    feature_name_field: Optional[str] = Field(
        None,
        description="Custom field set to the enclosing feature's name on story issues"
    )

    relates_link_type: Optional[str] = Field(default="Relates", description="Link type from story to feature; None disables")
    dedupe: bool = Field(default=True, description="Reuse issues created by a previous identical run")

    def type_for_role(self, role: IssueRole) -> str:
        """Configured issue type for an abstract role."""
        return {
            IssueRole.EPIC: self.epic_type,
            IssueRole.FEATURE: self.feature_type,
            IssueRole.STORY: self.story_type,
            IssueRole.SUBTASK: self.subtask_type,
        }[role]

    def content_field_for_role(self, role: IssueRole) -> Optional[str]:
        """Extra content field for a role, or None when content only goes to description."""
        field = {
            IssueRole.FEATURE: self.feature_field,
            IssueRole.STORY: self.story_field,
            IssueRole.SUBTASK: self.subtask_field,
        }.get(role)
        if not field or field == "description":
            return None
        return field


class PlanNode(BaseModel):
    """A planned, not-yet-created issue."""

    id: str = Field(..., description="Positional id (item-N), stable across preview and create")
    role: IssueRole = Field(..., description="Abstract role of the issue")
    display_name: str = Field(..., description="Issue summary")
    content: Optional[str] = Field(None, description="Raw Gherkin block used for the description")
    parent_id: Optional[str] = Field(
        None,
        description="Id of an earlier plan node, or an external issue key"
    )
    feature_name: Optional[str] = Field(None, description="Name of the enclosing Gherkin feature")
    selected: bool = Field(default=True, description="Whether the node will be created")


class CreatedIssue(BaseModel):
    """An issue created (or reused) in Jira for a plan node."""

    node_id: str
    external_key: str
    role: IssueRole
    display_name: str
    parent_external_key: Optional[str] = None
    url: str
    reused: bool = False


class NodeError(BaseModel):
    """Per-node diagnostic: a failure, a skip caused by a missing parent, or a cancellation."""

    node_id: str
    kind: NodeErrorKind
    stage: str = "create"
    message: str
    status_code: Optional[int] = None


class LinkOutcome(BaseModel):
    """Result of a best-effort secondary link. Never part of the error channel."""

    from_key: str
    to_key: str
    link_type: str
    ok: bool
    message: Optional[str] = None


class MaterializationResult(BaseModel):
    """Outcome of one materialization run: partial successes plus per-node diagnostics."""

    planned: int = 0
    created: List[CreatedIssue] = Field(default_factory=list)
    errors: List[NodeError] = Field(default_factory=list)
    link_outcomes: List[LinkOutcome] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def failed_ids(self) -> Set[str]:
        return {e.node_id for e in self.errors if e.kind == NodeErrorKind.FAILED and e.stage == "create"}

    @property
    def skipped_ids(self) -> Set[str]:
        return {e.node_id for e in self.errors if e.kind == NodeErrorKind.SKIPPED_MISSING_PARENT}

    @property
    def created_ids(self) -> Set[str]:
        return {c.node_id for c in self.created}

    def summary(self) -> str:
        """Human-readable partial-success summary."""
        parts = [f"created {len(self.created)} of {self.planned} planned issues"]
        if self.failed_ids:
            parts.append(f"{len(self.failed_ids)} failed")
        if self.skipped_ids:
            parts.append(f"{len(self.skipped_ids)} skipped because their parent was not created")
        cancelled = [e for e in self.errors if e.kind == NodeErrorKind.CANCELLED]
        if cancelled:
            parts.append(f"{len(cancelled)} not attempted (cancelled)")
        return "; ".join(parts)
