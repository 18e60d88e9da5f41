"""Workflow endpoints.

Every workflow answers 200 with its report; a failed run sets ``ok`` to
false and carries the reason in ``error``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from devhub.api.deps import get_workflows
from devhub.api.models import SprintPlanningRequest, WorkflowRequest, WorkflowResponse
from devhub.workflows import (
    PerformanceWorkflowResult,
    PullRequestWorkflowResult,
    SecurityWorkflowResult,
    SprintPlanningResult,
    WorkflowKind,
    WorkflowRunner,
)

router = APIRouter()

WorkflowResult = SecurityWorkflowResult | PerformanceWorkflowResult | SprintPlanningResult | PullRequestWorkflowResult


def _response(kind: WorkflowKind, result: WorkflowResult) -> WorkflowResponse:
    return WorkflowResponse(
        workflow=kind.value,
        ok=result.ok,
        report=result.format_report(),
        error=result.error,
        started_at=result.started_at,
        finished_at=result.finished_at,
    )


@router.post("/api/workflows/run", response_model=WorkflowResponse)
async def run_workflow(
    request: WorkflowRequest,
    workflows: WorkflowRunner = Depends(get_workflows),
) -> WorkflowResponse:
    """Pick and run a workflow from a free-text description."""
    run = await workflows.run(request.description)
    return WorkflowResponse(
        workflow=run.kind.value,
        ok=run.ok,
        report=run.format_report(),
        error=run.error,
        started_at=run.started_at,
        finished_at=run.finished_at,
    )


@router.post("/api/workflows/security/{sha}", response_model=WorkflowResponse)
async def security(sha: str, workflows: WorkflowRunner = Depends(get_workflows)) -> WorkflowResponse:
    return _response(WorkflowKind.SECURITY, await workflows.security.run(sha))


@router.post("/api/workflows/performance", response_model=WorkflowResponse)
async def performance(
    days: int = Query(default=7, ge=1, le=365),
    workflows: WorkflowRunner = Depends(get_workflows),
) -> WorkflowResponse:
    return _response(WorkflowKind.PERFORMANCE, await workflows.performance.run(days))


@router.post("/api/workflows/sprint-planning", response_model=WorkflowResponse)
async def sprint_planning(
    request: SprintPlanningRequest,
    workflows: WorkflowRunner = Depends(get_workflows),
) -> WorkflowResponse:
    return _response(WorkflowKind.SPRINT_PLANNING, await workflows.sprint_planning.run(request.goals))


@router.post("/api/workflows/pulls/{number}", response_model=WorkflowResponse)
async def pull_request(number: int, workflows: WorkflowRunner = Depends(get_workflows)) -> WorkflowResponse:
    return _response(WorkflowKind.PULL_REQUEST, await workflows.pull_request.run(number))
