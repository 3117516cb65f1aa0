"""Role assignment data access layer."""
import uuid as _uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user_role import Role, UserRoleAssignment


async def get_by_user(db: AsyncSession, user_id: _uuid.UUID) -> UserRoleAssignment | None:
    q = select(UserRoleAssignment).where(UserRoleAssignment.user_id == user_id)
    return (await db.execute(q)).scalar_one_or_none()


async def list_assignments(
    db: AsyncSession,
    *,
    role: Role | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[UserRoleAssignment], int]:
    q = select(UserRoleAssignment)
    count_q = select(func.count()).select_from(UserRoleAssignment)

    if role:
        q = q.where(UserRoleAssignment.role == role)
        count_q = count_q.where(UserRoleAssignment.role == role)

    total = (await db.execute(count_q)).scalar() or 0
    q = q.order_by(UserRoleAssignment.created_at.desc(), UserRoleAssignment.user_id)
    rows = (await db.execute(q.offset(skip).limit(limit))).scalars().all()
    return list(rows), total


async def count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(UserRoleAssignment))).scalar() or 0


async def create(db: AsyncSession, assignment: UserRoleAssignment) -> UserRoleAssignment:
    db.add(assignment)
    await db.flush()
    await db.refresh(assignment)
    return assignment


async def delete(db: AsyncSession, assignment: UserRoleAssignment) -> None:
    await db.delete(assignment)
    await db.flush()
