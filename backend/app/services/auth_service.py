"""Authentication service - identity-provider JWT verification.

Tokens are minted by the external identity provider; the API only verifies the
signature and reads the subject, email and ``user_metadata.role`` claims.
``create_access_token`` exists for local development and tests.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt

from app.config import settings
from app.models.user_role import Role


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, resolved once per request."""

    id: uuid.UUID
    email: str
    role: Role | None
    ip_address: str | None = None
    user_agent: str | None = None


def create_access_token(user_id: str, role: str | None = None, email: str = "") -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "user_metadata": {"role": role} if role else {},
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE or None,
        options=options,
    )


def metadata_role(payload: dict) -> Role | None:
    """Role embedded in the identity provider's user metadata, if it is a known one."""
    raw = (payload.get("user_metadata") or {}).get("role")
    if not raw:
        return None
    try:
        return Role(str(raw).lower())
    except ValueError:
        return None
