"""Workflow request/response schemas."""
import uuid
from datetime import datetime

from pydantic import AwareDatetime, BaseModel, model_validator

from app.models.workflow import WorkflowStatus, WorkflowStepStatus


class WorkflowSubmitRequest(BaseModel):
    content_id: uuid.UUID
    comments: str | None = None


class WorkflowActionRequest(BaseModel):
    workflow_instance_id: uuid.UUID
    comments: str | None = None


class PublishRequest(BaseModel):
    workflow_instance_id: uuid.UUID


class UnpublishRequest(BaseModel):
    content_id: uuid.UUID


class ScheduleRequest(BaseModel):
    content_id: uuid.UUID
    publish_at: AwareDatetime
    unpublish_at: AwareDatetime | None = None

    @model_validator(mode="after")
    def _unpublish_after_publish(self) -> "ScheduleRequest":
        if self.unpublish_at is not None and self.unpublish_at <= self.publish_at:
            raise ValueError("unpublish_at must be later than publish_at")
        return self


class WorkflowInstanceResponse(BaseModel):
    id: uuid.UUID
    content_id: uuid.UUID
    current_step: str
    status: WorkflowStatus
    initiated_by: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class WorkflowStepResponse(BaseModel):
    id: uuid.UUID
    workflow_instance_id: uuid.UUID
    step_name: str
    status: WorkflowStepStatus
    comments: str | None = None
    completed_by: uuid.UUID | None = None
    completed_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class WorkflowApprovalResponse(BaseModel):
    id: uuid.UUID
    workflow_instance_id: uuid.UUID
    workflow_step_id: uuid.UUID
    approved_by: uuid.UUID
    approved: bool
    comments: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class WorkflowDetailResponse(BaseModel):
    instance: WorkflowInstanceResponse
    steps: list[WorkflowStepResponse]
    approvals: list[WorkflowApprovalResponse]
