"""Role assignments and system statistics for administrators.

Users are owned by the identity provider; a user exists here only through its
role assignment. Each user holds at most one role, so changing a role means
removing the current one first.
"""
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.error_handler import Conflict, NotFound
from app.models.audit_log import AuditAction
from app.models.user_role import Role, UserRoleAssignment
from app.repositories import content_repository, user_role_repository
from app.schemas.user_role import ContentStats, SystemStats
from app.services import audit_service
from app.services.auth_service import Principal

logger = logging.getLogger(__name__)

USER_ROLE_RESOURCE = "user_role"


def _conflict(existing: UserRoleAssignment, role: Role) -> Conflict:
    message = "User already has this role" if existing.role == role else "User already has a role"
    return Conflict(message, details={"current_role": existing.role.value})


async def list_users(
    db: AsyncSession, role: Role | None, page: int, per_page: int,
) -> tuple[list[UserRoleAssignment], int]:
    return await user_role_repository.list_assignments(
        db, role=role, skip=(page - 1) * per_page, limit=per_page,
    )


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> UserRoleAssignment:
    assignment = await user_role_repository.get_by_user(db, user_id)
    if assignment is None:
        raise NotFound("User not found")
    return assignment


async def assign_role(
    db: AsyncSession, user_id: uuid.UUID, role: Role, principal: Principal,
) -> UserRoleAssignment:
    existing = await user_role_repository.get_by_user(db, user_id)
    if existing is not None:
        raise _conflict(existing, role)

    try:
        async with db.begin_nested():
            assignment = await user_role_repository.create(
                db, UserRoleAssignment(user_id=user_id, role=role, created_by=principal.id),
            )
    except IntegrityError:
        # Lost a race with a concurrent assignment for the same user
        existing = await user_role_repository.get_by_user(db, user_id)
        if existing is None:
            raise
        raise _conflict(existing, role)

    await audit_service.record(
        db, principal, AuditAction.CREATE, USER_ROLE_RESOURCE, assignment.id,
        f"{user_id} - {role.value}", {"user_id": str(user_id), "role": role.value},
    )
    logger.info("Role %s assigned to %s by %s", role.value, user_id, principal.id)
    return assignment


async def remove_role(db: AsyncSession, user_id: uuid.UUID, role: Role, principal: Principal) -> None:
    assignment = await user_role_repository.get_by_user(db, user_id)
    if assignment is None or assignment.role != role:
        raise NotFound("Role assignment not found")

    assignment_id = assignment.id
    await user_role_repository.delete(db, assignment)
    await audit_service.record(
        db, principal, AuditAction.DELETE, USER_ROLE_RESOURCE, assignment_id,
        f"{user_id} - {role.value}", {"user_id": str(user_id), "role": role.value},
    )
    logger.info("Role %s removed from %s by %s", role.value, user_id, principal.id)


async def get_stats(db: AsyncSession) -> SystemStats:
    by_status = await content_repository.count_by_status(db)
    return SystemStats(
        users=await user_role_repository.count(db),
        content=ContentStats(
            total=sum(by_status.values()),
            **{status.value: total for status, total in by_status.items()},
        ),
    )
