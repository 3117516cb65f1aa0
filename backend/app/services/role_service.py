"""Role resolution and per-action capability checks.

Roles are not compared by rank. Each action lists the roles allowed to perform
it, e.g. an editor may request changes but may not approve.
"""
import enum
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.error_handler import Forbidden
from app.middleware.metrics import increment
from app.models.content import ContentItem
from app.models.user_role import Role
from app.repositories import user_role_repository
from app.services.auth_service import Principal

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    CREATE_CONTENT = "create_content"
    EDIT_ANY_CONTENT = "edit_any_content"
    DELETE_CONTENT = "delete_content"
    REQUEST_CHANGES = "request_changes"
    APPROVE = "approve"
    PUBLISH = "publish"
    SCHEDULE = "schedule"
    UNPUBLISH = "unpublish"
    VIEW_AUDIT_LOG = "view_audit_log"
    EXPORT_AUDIT_LOG = "export_audit_log"
    MANAGE_ROLES = "manage_roles"
    VIEW_SYSTEM_STATS = "view_system_stats"


CAPABILITIES: dict[Action, frozenset[Role]] = {
    Action.CREATE_CONTENT: frozenset(Role),
    Action.EDIT_ANY_CONTENT: frozenset({Role.EDITOR, Role.APPROVER, Role.PUBLISHER, Role.ADMIN}),
    Action.DELETE_CONTENT: frozenset({Role.ADMIN}),
    Action.REQUEST_CHANGES: frozenset({Role.EDITOR, Role.APPROVER, Role.PUBLISHER, Role.ADMIN}),
    Action.APPROVE: frozenset({Role.APPROVER, Role.PUBLISHER, Role.ADMIN}),
    Action.PUBLISH: frozenset({Role.PUBLISHER, Role.ADMIN}),
    Action.SCHEDULE: frozenset({Role.APPROVER, Role.PUBLISHER, Role.ADMIN}),
    Action.UNPUBLISH: frozenset({Role.PUBLISHER, Role.ADMIN}),
    Action.VIEW_AUDIT_LOG: frozenset({Role.PUBLISHER, Role.ADMIN}),
    Action.EXPORT_AUDIT_LOG: frozenset({Role.ADMIN}),
    Action.MANAGE_ROLES: frozenset({Role.ADMIN}),
    Action.VIEW_SYSTEM_STATS: frozenset({Role.ADMIN}),
}

# Stable ordering for error payloads
_ROLE_ORDER = [Role.AUTHOR, Role.EDITOR, Role.APPROVER, Role.PUBLISHER, Role.ADMIN]


def required_roles(action: Action) -> list[str]:
    allowed = CAPABILITIES[action]
    return [role.value for role in _ROLE_ORDER if role in allowed]


async def resolve_role(db: AsyncSession, user_id: uuid.UUID, fallback: Role | None = None) -> Role | None:
    """Look up the user's role assignment; fall back to the identity-provider claim."""
    assignment = await user_role_repository.get_by_user(db, user_id)
    if assignment is not None:
        return assignment.role
    return fallback


def is_permitted(role: Role | None, action: Action) -> bool:
    return role is not None and role in CAPABILITIES[action]


def require_permission(principal: Principal, action: Action) -> None:
    """Raise Forbidden unless the principal's role is whitelisted for ``action``."""
    if is_permitted(principal.role, action):
        return
    increment("authorization_denials_total")
    logger.warning(
        "Access denied: user=%s role=%s action=%s",
        principal.id,
        principal.role.value if principal.role else None,
        action.value,
    )
    raise Forbidden(
        "Insufficient permissions",
        details={"required_roles": required_roles(action)},
    )


def can_edit_content(principal: Principal, content: ContentItem) -> bool:
    """Authors may edit their own content; editors and above may edit anything."""
    if content.author_id == principal.id:
        return True
    return is_permitted(principal.role, Action.EDIT_ANY_CONTENT)


def require_edit_permission(principal: Principal, content: ContentItem, message: str) -> None:
    if can_edit_content(principal, content):
        return
    increment("authorization_denials_total")
    logger.warning("Edit denied: user=%s content=%s", principal.id, content.id)
    raise Forbidden(message)
