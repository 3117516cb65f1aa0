"""Seed one user per role plus a draft page for local API testing.

Usage (from backend/ directory):
    python scripts/seed_test_data.py

Prerequisites:
    - DB is running and migrated (alembic upgrade head)
    - JWT_SECRET_KEY in .env matches the one the API verifies with
"""
import asyncio
import sys
import uuid
from pathlib import Path

# Windows: asyncpg requires SelectorEventLoop
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Allow imports from backend/app/
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import engine, session_scope
from app.models import Base  # noqa: F401 - ensures all models are registered
from app.models.content import ContentItem, ContentStatus
from app.models.content_version import ContentVersion
from app.models.user_role import Role, UserRoleAssignment
from app.services.auth_service import create_access_token

# Fixed ids so re-running the script is idempotent
SEED_USERS = {
    Role.AUTHOR: uuid.UUID("00000000-0000-4000-8000-000000000001"),
    Role.EDITOR: uuid.UUID("00000000-0000-4000-8000-000000000002"),
    Role.APPROVER: uuid.UUID("00000000-0000-4000-8000-000000000003"),
    Role.PUBLISHER: uuid.UUID("00000000-0000-4000-8000-000000000004"),
    Role.ADMIN: uuid.UUID("00000000-0000-4000-8000-000000000005"),
}

_SAMPLE_SLUG = "welcome"


async def seed(session: AsyncSession) -> None:
    # ── 1. Role assignments (idempotent) ────────────────────────────────────
    for role, user_id in SEED_USERS.items():
        result = await session.execute(select(UserRoleAssignment).where(UserRoleAssignment.user_id == user_id))
        if result.scalars().first() is None:
            session.add(UserRoleAssignment(user_id=user_id, role=role))
            print(f"Assigned role {role.value} to {user_id}")

    # ── 2. Sample draft page owned by the author ────────────────────────────
    result = await session.execute(select(ContentItem).where(ContentItem.slug == _SAMPLE_SLUG))
    page: ContentItem | None = result.scalars().first()
    if page is None:
        page = ContentItem(
            title="Welcome",
            slug=_SAMPLE_SLUG,
            excerpt="A first page to walk through the review workflow",
            page_data={"blocks": [{"id": "hero-1", "type": "Hero", "data": {"heading": "Welcome"}}]},
            status=ContentStatus.DRAFT,
            author_id=SEED_USERS[Role.AUTHOR],
        )
        session.add(page)
        await session.flush()
        session.add(ContentVersion(
            content_id=page.id,
            version_number=1,
            created_by=page.author_id,
            **page.editable_snapshot(),
        ))
        print(f"Created draft page: {page.title} (id={page.id})")
    else:
        print(f"Sample page already exists (id={page.id})")

    await session.flush()


async def main() -> None:
    async with session_scope() as session:
        await seed(session)

    print()
    print("─" * 60)
    print("Seeded successfully! Development bearer tokens:")
    for role, user_id in SEED_USERS.items():
        print(f"  {role.value:<10} {create_access_token(str(user_id), role.value)}")
    print("─" * 60)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
