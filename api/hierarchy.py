"""
Hierarchy preview and execute endpoints.

Preview is a dry-run: it parses and plans without calling Jira. Execute creates
the selected part of the plan and reports partial success per node.
"""
from typing import Dict, Optional, List
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from datetime import datetime, timezone
import uuid
import logging

from api.deps import get_audit_logger, get_jira_client
from models.hierarchy import (
    CreatedIssue,
    HierarchyConfig,
    LinkOutcome,
    NodeError,
    PlanNode,
)
from services.audit_logger import AuditLogger
from services.gherkin_parser import ParseError
from services.hierarchy_planner import compute_plan_checksum, count_roles
from services.hierarchy_service import create_from_plan, preview_plan
from services.jira_client import JiraClient, JiraClientError
from services.selection import find_orphaned_selections, selected_ids_from_plan
from services.type_resolver import TypeNotFoundError
from src.gherkin_jira_agent.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _default_label(folder_name: Optional[str]) -> Optional[str]:
    """Configured root label, used only when there is no folder name to derive one from."""
    return None if folder_name else settings.default_root_label


class PreviewRequest(BaseModel):
    """Request model for hierarchy preview."""

    gherkin_content: str = Field(..., description="Gherkin feature text")
    config: HierarchyConfig = Field(..., description="Hierarchy configuration")
    folder_name: Optional[str] = Field(None, description="Source folder name, used for the root epic label")
    root_label: Optional[str] = Field(None, description="Explicit root epic label")


class PreviewResponse(BaseModel):
    """Response model for hierarchy preview."""

    plan: List[PlanNode] = Field(..., description="Planned issues in creation order")
    checksum: str = Field(..., description="SHA-256 checksum of the plan")
    counts: Dict[str, int] = Field(..., description="Planned issues per role")


class ExecuteRequest(BaseModel):
    """Request model for hierarchy execute."""

    config: HierarchyConfig = Field(..., description="Hierarchy configuration")
    plan: Optional[List[PlanNode]] = Field(None, description="Plan returned by preview (preferred)")
    gherkin_content: Optional[str] = Field(None, description="Gherkin text to re-plan when no plan is sent")
    folder_name: Optional[str] = Field(None, description="Source folder name (re-plan only)")
    root_label: Optional[str] = Field(None, description="Explicit root epic label (re-plan only)")
    checksum: Optional[str] = Field(None, description="Checksum from preview; verified when re-planning")
    selected_ids: Optional[List[str]] = Field(None, description="Node ids to create; empty means all")


class ExecuteResponse(BaseModel):
    """Response model for hierarchy execute."""

    run_id: str
    success: bool = Field(..., description="False only when the run could not be carried out at all")
    result: str = Field(..., description="'success', 'partial', 'failed' or 'cancelled'")
    summary: str
    created: List[CreatedIssue]
    errors: List[NodeError]
    link_outcomes: List[LinkOutcome]
    warnings: List[str] = Field(default_factory=list)
    checksum: str


@router.post("/api/v1/jira/hierarchy/preview", response_model=PreviewResponse)
async def preview(preview_request: PreviewRequest) -> PreviewResponse:
    """
    Plan the Jira hierarchy for Gherkin content.

    No Jira calls are made.
    """
    try:
        plan = preview_plan(
            preview_request.gherkin_content,
            preview_request.config,
            folder_name=preview_request.folder_name,
            root_label=preview_request.root_label or _default_label(preview_request.folder_name)
        )
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return PreviewResponse(
        plan=plan,
        checksum=compute_plan_checksum(plan),
        counts=count_roles(plan)
    )


def _resolve_plan(execute_request: ExecuteRequest) -> List[PlanNode]:
    """Plan sent by the caller, or a fresh plan regenerated from the Gherkin text."""
    if execute_request.plan:
        return execute_request.plan

    if not execute_request.gherkin_content:
        raise HTTPException(status_code=400, detail="Either plan or gherkin_content is required")

    try:
        plan = preview_plan(
            execute_request.gherkin_content,
            execute_request.config,
            folder_name=execute_request.folder_name,
            root_label=execute_request.root_label or _default_label(execute_request.folder_name)
        )
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if execute_request.checksum and execute_request.checksum != compute_plan_checksum(plan):
        raise HTTPException(
            status_code=409,
            detail="Plan checksum mismatch: the content or configuration changed since preview"
        )
    return plan


@router.post("/api/v1/jira/hierarchy/execute", response_model=ExecuteResponse)
def execute(
    execute_request: ExecuteRequest,
    jira_client: JiraClient = Depends(get_jira_client),
    audit_logger: AuditLogger = Depends(get_audit_logger)
) -> ExecuteResponse:
    """
    Create the selected plan nodes in Jira.

    Individual node failures do not fail the request; they are returned in
    'errors' next to the issues that were created.
    """
    config = execute_request.config
    plan = _resolve_plan(execute_request)
    checksum = compute_plan_checksum(plan)
    run_id = str(uuid.uuid4())

    warnings = []
    selected_ids = execute_request.selected_ids or selected_ids_from_plan(plan)
    orphaned = find_orphaned_selections(plan, selected_ids)
    if orphaned:
        message = (
            f"{len(orphaned)} selected items have an unselected parent and will be skipped: "
            f"{', '.join(orphaned)}"
        )
        logger.warning(message)
        warnings.append(message)

    logger.info(
        f"Executing hierarchy run {run_id} (project={config.project_key}, shape={config.shape.value}, "
        f"parent={config.parent_issue_key or '(none)'}, planned={len(plan)})"
    )

    try:
        outcome = create_from_plan(plan, execute_request.selected_ids, config, jira_client)
    except TypeNotFoundError as e:
        logger.error(f"Issue type resolution failed: {str(e)}")
        raise HTTPException(status_code=422, detail=str(e))
    except JiraClientError as e:
        logger.error(f"Jira request failed before creation: {str(e)}", exc_info=True)
        raise HTTPException(status_code=502, detail=str(e))

    if outcome.cancelled:
        result = "cancelled"
    elif outcome.errors and not outcome.created:
        result = "failed"
    elif outcome.errors:
        result = "partial"
    else:
        result = "success"

    audit_logger.log_run({
        "run_id": run_id,
        "project_key": config.project_key,
        "shape": config.shape.value,
        "checksum": checksum,
        "planned": outcome.planned,
        "created_keys": [c.external_key for c in outcome.created],
        "error_node_ids": [e.node_id for e in outcome.errors],
        "result": result,
        "executed_at": datetime.now(timezone.utc).isoformat()
    })

    return ExecuteResponse(
        run_id=run_id,
        success=True,
        result=result,
        summary=outcome.summary(),
        created=outcome.created,
        errors=outcome.errors,
        link_outcomes=outcome.link_outcomes,
        warnings=warnings,
        checksum=checksum
    )
