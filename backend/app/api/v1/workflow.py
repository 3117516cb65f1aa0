"""Workflow API - 9 endpoints."""
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_current_principal, get_db, require_action
from app.schemas.common import APIResponse
from app.schemas.content import ContentResponse
from app.schemas.workflow import (
    PublishRequest,
    ScheduleRequest,
    UnpublishRequest,
    WorkflowActionRequest,
    WorkflowApprovalResponse,
    WorkflowDetailResponse,
    WorkflowInstanceResponse,
    WorkflowStepResponse,
    WorkflowSubmitRequest,
)
from app.services import content_service, workflow_service
from app.services.auth_service import Principal
from app.services.role_service import Action

router = APIRouter()


# POST /workflow/submit - content author or anyone who can edit it
@router.post("/submit", response_model=APIResponse)
async def submit_for_review(
    body: WorkflowSubmitRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    instance = await workflow_service.submit_for_review(db, body.content_id, body.comments, principal)
    return APIResponse(
        status="success",
        data={"workflow_instance": WorkflowInstanceResponse.model_validate(instance).model_dump()},
        message="Content submitted for review",
    )


# POST /workflow/request-changes - editor, approver, publisher, admin
@router.post("/request-changes", response_model=APIResponse)
async def request_changes(
    body: WorkflowActionRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await workflow_service.request_changes(db, body.workflow_instance_id, body.comments, principal)
    return APIResponse(status="success", message="Changes requested successfully")


# POST /workflow/approve - approver, publisher, admin
@router.post("/approve", response_model=APIResponse)
async def approve(
    body: WorkflowActionRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await workflow_service.approve(db, body.workflow_instance_id, body.comments, principal)
    return APIResponse(status="success", message="Content approved successfully")


# POST /workflow/publish - publisher, admin
@router.post("/publish", response_model=APIResponse)
async def publish(
    body: PublishRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await workflow_service.publish(db, body.workflow_instance_id, principal)
    return APIResponse(status="success", message="Content published successfully")


# POST /workflow/schedule - approver, publisher, admin
@router.post("/schedule", response_model=APIResponse)
async def schedule(
    body: ScheduleRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    content = await workflow_service.schedule(
        db, body.content_id, body.publish_at, body.unpublish_at, principal,
    )
    return APIResponse(
        status="success",
        data={"content": ContentResponse.model_validate(content).model_dump()},
        message="Publishing scheduled successfully",
    )


# POST /workflow/unpublish - publisher, admin
@router.post("/unpublish", response_model=APIResponse)
async def unpublish(
    body: UnpublishRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await workflow_service.unpublish(db, body.content_id, principal)
    return APIResponse(status="success", message="Content unpublished successfully")


# GET /workflow/queue - editor, approver, publisher, admin
@router.get("/queue", response_model=APIResponse)
async def review_queue(
    _principal: Principal = require_action(Action.REQUEST_CHANGES),
    db: AsyncSession = Depends(get_db),
):
    contents = await workflow_service.review_queue(db)
    return APIResponse(
        status="success",
        data=[ContentResponse.model_validate(c).model_dump() for c in contents],
    )


# GET /workflow/content/{content_id} - review history and next legal moves
@router.get("/content/{content_id}", response_model=APIResponse)
async def content_workflows(
    content_id: uuid.UUID,
    _principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    content = await content_service.get_content(db, content_id)
    instances = await workflow_service.list_workflows(db, content_id)
    return APIResponse(
        status="success",
        data={
            "status": content.status.value,
            "allowed_transitions": [t.value for t in workflow_service.allowed_transitions(content.status)],
            "workflows": [WorkflowInstanceResponse.model_validate(i).model_dump() for i in instances],
        },
    )


# GET /workflow/{workflow_instance_id}
@router.get("/{workflow_instance_id}", response_model=APIResponse)
async def get_workflow(
    workflow_instance_id: uuid.UUID,
    _principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    instance, steps, approvals = await workflow_service.get_workflow(db, workflow_instance_id)
    return APIResponse(
        status="success",
        data=WorkflowDetailResponse(
            instance=WorkflowInstanceResponse.model_validate(instance),
            steps=[WorkflowStepResponse.model_validate(s) for s in steps],
            approvals=[WorkflowApprovalResponse.model_validate(a) for a in approvals],
        ).model_dump(),
    )
