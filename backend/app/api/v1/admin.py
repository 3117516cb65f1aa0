"""Admin API - 5 endpoints."""
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db, require_action
from app.models.user_role import Role
from app.schemas.common import APIResponse, PaginationMeta
from app.schemas.user_role import RoleAssignRequest, UserRoleResponse
from app.services import user_role_service
from app.services.auth_service import Principal
from app.services.role_service import Action

router = APIRouter()


# GET /admin/users - admin
@router.get("/users", response_model=APIResponse)
async def list_users(
    role: Role | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    _admin: Principal = require_action(Action.MANAGE_ROLES),
    db: AsyncSession = Depends(get_db),
):
    assignments, total = await user_role_service.list_users(db, role, page, per_page)
    return APIResponse(
        status="success",
        data=[UserRoleResponse.model_validate(a).model_dump() for a in assignments],
        pagination=PaginationMeta(
            total=total, page=page, per_page=per_page,
            has_next=(page * per_page < total),
        ),
    )


# GET /admin/users/{user_id} - admin
@router.get("/users/{user_id}", response_model=APIResponse)
async def get_user(
    user_id: uuid.UUID,
    _admin: Principal = require_action(Action.MANAGE_ROLES),
    db: AsyncSession = Depends(get_db),
):
    assignment = await user_role_service.get_user(db, user_id)
    return APIResponse(status="success", data=UserRoleResponse.model_validate(assignment).model_dump())


# POST /admin/users/{user_id}/roles - admin
@router.post("/users/{user_id}/roles", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def assign_role(
    user_id: uuid.UUID,
    body: RoleAssignRequest,
    admin: Principal = require_action(Action.MANAGE_ROLES),
    db: AsyncSession = Depends(get_db),
):
    assignment = await user_role_service.assign_role(db, user_id, body.role, admin)
    return APIResponse(
        status="success",
        data=UserRoleResponse.model_validate(assignment).model_dump(),
        message="Role assigned",
    )


# DELETE /admin/users/{user_id}/roles/{role} - admin
@router.delete("/users/{user_id}/roles/{role}", response_model=APIResponse)
async def remove_role(
    user_id: uuid.UUID,
    role: Role,
    admin: Principal = require_action(Action.MANAGE_ROLES),
    db: AsyncSession = Depends(get_db),
):
    await user_role_service.remove_role(db, user_id, role, admin)
    return APIResponse(status="success", message="Role removed")


# GET /admin/stats - admin
@router.get("/stats", response_model=APIResponse)
async def get_stats(
    _admin: Principal = require_action(Action.VIEW_SYSTEM_STATS),
    db: AsyncSession = Depends(get_db),
):
    stats = await user_role_service.get_stats(db)
    return APIResponse(status="success", data=stats.model_dump())
