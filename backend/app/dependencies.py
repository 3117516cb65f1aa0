"""FastAPI dependency injection utilities."""
import uuid as _uuid
from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import session_scope
from app.middleware.error_handler import Unauthorized
from app.services import role_service
from app.services.auth_service import Principal, decode_access_token, metadata_role
from app.services.role_service import Action

security = HTTPBearer(auto_error=False)

__all__ = ["get_db", "get_current_principal", "require_action"]


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session, one transaction per request.

    Everything a handler flushes is committed together or rolled back together.
    """
    async with session_scope() as session:
        yield session


async def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Verify the bearer token and resolve the caller's role.

    FastAPI caches this dependency per request, so the role lookup happens
    once; the result is also left on ``request.state.principal``.
    """
    if credentials is None:
        raise Unauthorized("Missing or invalid authorization header")
    try:
        payload = decode_access_token(credentials.credentials)
        user_id = _uuid.UUID(str(payload.get("sub")))
    except JWTError as e:
        detail = "Token expired" if "expired" in str(e).lower() else "Invalid or expired token"
        raise Unauthorized(detail)
    except ValueError:
        raise Unauthorized("Invalid or expired token")

    role = await role_service.resolve_role(db, user_id, fallback=metadata_role(payload))
    principal = Principal(
        id=user_id,
        email=payload.get("email") or "",
        role=role,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    request.state.principal = principal
    return principal


def require_action(action: Action):
    """Role-based access control dependency for whole endpoints."""
    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        role_service.require_permission(principal, action)
        return principal
    return Depends(dependency)
