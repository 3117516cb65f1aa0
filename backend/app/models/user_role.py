"""User role assignment ORM model.

Users themselves live in the external identity provider; this table only maps
a user id to the single CMS role it holds.
"""
import enum
import uuid

from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin, pg_enum


class Role(str, enum.Enum):
    AUTHOR = "author"
    EDITOR = "editor"
    APPROVER = "approver"
    PUBLISHER = "publisher"
    ADMIN = "admin"


class UserRoleAssignment(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "user_roles"

    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False)
    role: Mapped[Role] = mapped_column(pg_enum(Role, name="user_role"), nullable=False)
    # Admin who made the assignment; empty for seeded rows
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
