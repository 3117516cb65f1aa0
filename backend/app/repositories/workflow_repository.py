"""Workflow instance/step/approval data access layer."""
import uuid as _uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.workflow import WorkflowApproval, WorkflowInstance, WorkflowStatus, WorkflowStep


async def get_instance(db: AsyncSession, instance_id: _uuid.UUID, *, for_update: bool = False) -> WorkflowInstance | None:
    q = select(WorkflowInstance).where(WorkflowInstance.id == instance_id)
    if for_update:
        q = q.with_for_update().execution_options(populate_existing=True)
    return (await db.execute(q)).scalar_one_or_none()


async def get_active_instance(db: AsyncSession, content_id: _uuid.UUID) -> WorkflowInstance | None:
    q = select(WorkflowInstance).where(
        WorkflowInstance.content_id == content_id,
        WorkflowInstance.status == WorkflowStatus.ACTIVE,
    )
    return (await db.execute(q)).scalar_one_or_none()


async def list_instances(db: AsyncSession, content_id: _uuid.UUID) -> list[WorkflowInstance]:
    q = (
        select(WorkflowInstance)
        .where(WorkflowInstance.content_id == content_id)
        .order_by(WorkflowInstance.created_at.desc())
    )
    return list((await db.execute(q)).scalars().all())


async def list_steps(db: AsyncSession, instance_id: _uuid.UUID) -> list[WorkflowStep]:
    q = (
        select(WorkflowStep)
        .where(WorkflowStep.workflow_instance_id == instance_id)
        .order_by(WorkflowStep.created_at.asc())
    )
    return list((await db.execute(q)).scalars().all())


async def list_approvals(db: AsyncSession, instance_id: _uuid.UUID) -> list[WorkflowApproval]:
    q = select(WorkflowApproval).where(WorkflowApproval.workflow_instance_id == instance_id)
    return list((await db.execute(q)).scalars().all())


async def add(db: AsyncSession, row: WorkflowInstance | WorkflowStep | WorkflowApproval):
    db.add(row)
    await db.flush()
    await db.refresh(row)
    return row


async def update_instance(db: AsyncSession, instance: WorkflowInstance) -> WorkflowInstance:
    await db.flush()
    await db.refresh(instance)
    return instance
