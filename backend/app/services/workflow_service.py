"""Content workflow state machine.

    draft --submit--> in_review --approve--> approved --publish--> published
      ^                   |                                 ^          |
      +--request_changes--+                        publish  |      unpublish
                                                            +-- unpublished <--+

Every transition runs the same sequence: role gate, load (row-locked), state
guard, effects, one audit entry. All effects are flushed into the request's
transaction, so a failure part-way leaves nothing behind. This module is the
only writer of ``ContentItem.status``.
"""
import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.error_handler import InvalidState, NotFound, ValidationFailed
from app.middleware.metrics import increment
from app.models.audit_log import AuditAction
from app.models.content import ContentItem, ContentStatus
from app.models.workflow import (
    WorkflowApproval,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowStep,
    WorkflowStepStatus,
)
from app.repositories import content_repository, workflow_repository
from app.services import audit_service, role_service, version_service
from app.services.auth_service import Principal
from app.services.role_service import Action
from app.utils.helpers import as_utc, utc_now

logger = logging.getLogger(__name__)


class Transition(str, enum.Enum):
    SUBMIT = "submit"
    REQUEST_CHANGES = "request_changes"
    APPROVE = "approve"
    PUBLISH = "publish"
    SCHEDULE = "schedule"
    UNPUBLISH = "unpublish"


@dataclass(frozen=True)
class TransitionRule:
    from_statuses: frozenset[ContentStatus]
    to_status: ContentStatus | None
    audit_action: AuditAction
    # None means the content-level edit check applies instead of a role whitelist
    gate: Action | None


TRANSITIONS: dict[Transition, TransitionRule] = {
    Transition.SUBMIT: TransitionRule(
        frozenset({ContentStatus.DRAFT}), ContentStatus.IN_REVIEW, AuditAction.SUBMIT, None,
    ),
    Transition.REQUEST_CHANGES: TransitionRule(
        frozenset({ContentStatus.IN_REVIEW}), ContentStatus.DRAFT, AuditAction.REJECT, Action.REQUEST_CHANGES,
    ),
    Transition.APPROVE: TransitionRule(
        frozenset({ContentStatus.IN_REVIEW}), ContentStatus.APPROVED, AuditAction.APPROVE, Action.APPROVE,
    ),
    Transition.PUBLISH: TransitionRule(
        frozenset({ContentStatus.APPROVED, ContentStatus.UNPUBLISHED}),
        ContentStatus.PUBLISHED, AuditAction.PUBLISH, Action.PUBLISH,
    ),
    Transition.SCHEDULE: TransitionRule(
        frozenset(ContentStatus), None, AuditAction.UPDATE, Action.SCHEDULE,
    ),
    Transition.UNPUBLISH: TransitionRule(
        frozenset({ContentStatus.PUBLISHED}), ContentStatus.UNPUBLISHED, AuditAction.UNPUBLISH, Action.UNPUBLISH,
    ),
}


def allowed_transitions(status: ContentStatus) -> list[Transition]:
    """Transitions whose state guard accepts ``status``."""
    return [name for name, rule in TRANSITIONS.items() if status in rule.from_statuses]


# --- Internal helpers ---

def _guard(transition: Transition, content: ContentItem) -> TransitionRule:
    rule = TRANSITIONS[transition]
    if content.status not in rule.from_statuses:
        raise InvalidState(
            f"Cannot {transition.value.replace('_', ' ')} content in '{content.status.value}' status",
            details={
                "current_status": content.status.value,
                "allowed_statuses": sorted(s.value for s in rule.from_statuses),
            },
        )
    return rule


def _require_active(instance: WorkflowInstance) -> None:
    if instance.status != WorkflowStatus.ACTIVE:
        raise InvalidState(
            f"Workflow is {instance.status.value}, not active",
            details={"workflow_status": instance.status.value},
        )


def _apply_status(content: ContentItem, rule: TransitionRule) -> dict | None:
    if rule.to_status is None or rule.to_status == content.status:
        return None
    change = {"from": content.status.value, "to": rule.to_status.value}
    content.status = rule.to_status
    return change


async def _load_content(db: AsyncSession, content_id: uuid.UUID) -> ContentItem:
    content = await content_repository.get_for_update(db, content_id)
    if content is None:
        raise NotFound("Content not found")
    return content


async def _load_instance(db: AsyncSession, instance_id: uuid.UUID) -> tuple[WorkflowInstance, ContentItem]:
    instance = await workflow_repository.get_instance(db, instance_id, for_update=True)
    if instance is None:
        raise NotFound("Workflow not found")
    content = await _load_content(db, instance.content_id)
    return instance, content


async def _finish(
    db: AsyncSession,
    principal: Principal,
    transition: Transition,
    content: ContentItem,
    metadata: dict,
) -> None:
    rule = TRANSITIONS[transition]
    await audit_service.record(
        db, principal, rule.audit_action, audit_service.CONTENT_RESOURCE, content.id, content.title, metadata,
    )
    increment("workflow_transitions_total", action=transition.value)
    logger.info(
        "Workflow transition %s: content=%s status=%s user=%s",
        transition.value, content.id, content.status.value, principal.id,
    )


# --- Transitions ---

async def submit_for_review(
    db: AsyncSession, content_id: uuid.UUID, comments: str | None, principal: Principal,
) -> WorkflowInstance:
    content = await _load_content(db, content_id)
    role_service.require_edit_permission(
        principal, content, "You do not have permission to submit this content",
    )
    rule = _guard(Transition.SUBMIT, content)

    if await workflow_repository.get_active_instance(db, content.id) is not None:
        raise InvalidState("A review is already in progress for this content")

    status_change = _apply_status(content, rule)
    content = await content_repository.update(db, content)

    instance = await workflow_repository.add(db, WorkflowInstance(
        content_id=content.id,
        current_step="review",
        status=WorkflowStatus.ACTIVE,
        initiated_by=principal.id,
    ))
    await workflow_repository.add(db, WorkflowStep(
        workflow_instance_id=instance.id,
        step_name="review",
        status=WorkflowStepStatus.PENDING,
        comments=comments,
    ))
    await version_service.snapshot(db, content, principal)

    await _finish(db, principal, Transition.SUBMIT, content, {
        "workflow_id": str(instance.id),
        "status": status_change,
    })
    return instance


async def request_changes(
    db: AsyncSession, instance_id: uuid.UUID, comments: str | None, principal: Principal,
) -> ContentItem:
    role_service.require_permission(principal, Action.REQUEST_CHANGES)
    instance, content = await _load_instance(db, instance_id)
    _require_active(instance)
    rule = _guard(Transition.REQUEST_CHANGES, content)

    status_change = _apply_status(content, rule)
    content = await content_repository.update(db, content)

    instance.status = WorkflowStatus.CANCELLED
    instance.current_step = "request_changes"
    await workflow_repository.update_instance(db, instance)
    await workflow_repository.add(db, WorkflowStep(
        workflow_instance_id=instance.id,
        step_name="request_changes",
        status=WorkflowStepStatus.COMPLETED,
        comments=comments,
        completed_by=principal.id,
        completed_at=utc_now(),
    ))

    await _finish(db, principal, Transition.REQUEST_CHANGES, content, {
        "workflow_id": str(instance.id),
        "status": status_change,
    })
    return content


async def approve(
    db: AsyncSession, instance_id: uuid.UUID, comments: str | None, principal: Principal,
) -> ContentItem:
    role_service.require_permission(principal, Action.APPROVE)
    instance, content = await _load_instance(db, instance_id)
    _require_active(instance)
    rule = _guard(Transition.APPROVE, content)

    status_change = _apply_status(content, rule)
    content = await content_repository.update(db, content)

    instance.status = WorkflowStatus.COMPLETED
    instance.current_step = "approved"
    await workflow_repository.update_instance(db, instance)
    step = await workflow_repository.add(db, WorkflowStep(
        workflow_instance_id=instance.id,
        step_name="approve",
        status=WorkflowStepStatus.COMPLETED,
        comments=comments,
        completed_by=principal.id,
        completed_at=utc_now(),
    ))
    await workflow_repository.add(db, WorkflowApproval(
        workflow_instance_id=instance.id,
        workflow_step_id=step.id,
        approved_by=principal.id,
        approved=True,
        comments=comments,
    ))

    await _finish(db, principal, Transition.APPROVE, content, {
        "workflow_id": str(instance.id),
        "status": status_change,
    })
    return content


async def publish(db: AsyncSession, instance_id: uuid.UUID, principal: Principal) -> ContentItem:
    role_service.require_permission(principal, Action.PUBLISH)
    instance, content = await _load_instance(db, instance_id)
    if instance.status != WorkflowStatus.COMPLETED:
        raise InvalidState(
            "Content can only be published from an approved workflow",
            details={"workflow_status": instance.status.value},
        )
    rule = _guard(Transition.PUBLISH, content)

    status_change = _apply_status(content, rule)
    content.publish_at = utc_now()
    content = await content_repository.update(db, content)

    await _finish(db, principal, Transition.PUBLISH, content, {
        "workflow_id": str(instance.id),
        "status": status_change,
    })
    return content


async def schedule(
    db: AsyncSession,
    content_id: uuid.UUID,
    publish_at: datetime,
    unpublish_at: datetime | None,
    principal: Principal,
) -> ContentItem:
    """Record future publish/unpublish instants. Status is not changed."""
    now = utc_now()
    publish_at = as_utc(publish_at)
    unpublish_at = as_utc(unpublish_at) if unpublish_at is not None else None
    issues = []
    if publish_at <= now:
        issues.append({"loc": ["publish_at"], "msg": "publish_at must be in the future"})
    if unpublish_at is not None and unpublish_at <= publish_at:
        issues.append({"loc": ["unpublish_at"], "msg": "unpublish_at must be later than publish_at"})
    if issues:
        raise ValidationFailed("Invalid request data", details=issues)

    role_service.require_permission(principal, Action.SCHEDULE)
    content = await _load_content(db, content_id)
    _guard(Transition.SCHEDULE, content)

    content.publish_at = publish_at
    content.unpublish_at = unpublish_at
    content = await content_repository.update(db, content)

    await _finish(db, principal, Transition.SCHEDULE, content, {
        "publish_at": publish_at.isoformat(),
        "unpublish_at": unpublish_at.isoformat() if unpublish_at else None,
    })
    return content


async def unpublish(db: AsyncSession, content_id: uuid.UUID, principal: Principal) -> ContentItem:
    role_service.require_permission(principal, Action.UNPUBLISH)
    content = await _load_content(db, content_id)
    rule = _guard(Transition.UNPUBLISH, content)

    status_change = _apply_status(content, rule)
    content.unpublish_at = utc_now()
    content = await content_repository.update(db, content)

    await _finish(db, principal, Transition.UNPUBLISH, content, {"status": status_change})
    return content


# --- Queries ---

async def get_workflow(
    db: AsyncSession, instance_id: uuid.UUID,
) -> tuple[WorkflowInstance, list[WorkflowStep], list[WorkflowApproval]]:
    instance = await workflow_repository.get_instance(db, instance_id)
    if instance is None:
        raise NotFound("Workflow not found")
    steps = await workflow_repository.list_steps(db, instance.id)
    approvals = await workflow_repository.list_approvals(db, instance.id)
    return instance, steps, approvals


async def list_workflows(db: AsyncSession, content_id: uuid.UUID) -> list[WorkflowInstance]:
    return await workflow_repository.list_instances(db, content_id)


async def review_queue(db: AsyncSession) -> list[ContentItem]:
    """Content currently waiting for a reviewer."""
    return await content_repository.list_by_status(db, ContentStatus.IN_REVIEW)
