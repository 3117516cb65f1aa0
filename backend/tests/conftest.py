"""Shared test fixtures with in-memory SQLite."""
import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, func, select
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles

from app.models.audit_log import AuditLog
from app.models.base import Base
from app.models.user_role import Role, UserRoleAssignment
from app.main import app
from app.dependencies import get_db
from app.services.auth_service import create_access_token

# --- SQLite compatibility: compile PostgreSQL types for SQLite ---

@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


@compiles(UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "VARCHAR(36)"


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@event.listens_for(test_engine.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(autouse=True)
async def setup_db():
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db():
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with test_session_factory() as session:
        yield session


async def _create_test_user(db: AsyncSession, role: Role | None) -> tuple[uuid.UUID, str]:
    """Assign ``role`` to a fresh user id and return (user_id, access_token)."""
    user_id = uuid.uuid4()
    if role is not None:
        db.add(UserRoleAssignment(user_id=user_id, role=role))
        await db.commit()
    token = create_access_token(str(user_id), email=f"{user_id.hex[:8]}@test.com")
    return user_id, token


@pytest.fixture
def make_auth(db_session: AsyncSession):
    """Factory: ``await make_auth(Role.EDITOR)`` -> (user_id, auth_headers)."""
    async def _make(role: Role | None) -> tuple[uuid.UUID, dict]:
        user_id, token = await _create_test_user(db_session, role)
        return user_id, {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
async def author_auth(make_auth) -> tuple[uuid.UUID, dict]:
    return await make_auth(Role.AUTHOR)


@pytest.fixture
async def editor_auth(make_auth) -> tuple[uuid.UUID, dict]:
    return await make_auth(Role.EDITOR)


@pytest.fixture
async def approver_auth(make_auth) -> tuple[uuid.UUID, dict]:
    return await make_auth(Role.APPROVER)


@pytest.fixture
async def publisher_auth(make_auth) -> tuple[uuid.UUID, dict]:
    return await make_auth(Role.PUBLISHER)


@pytest.fixture
async def admin_auth(make_auth) -> tuple[uuid.UUID, dict]:
    """Return (admin_user_id, auth_headers)."""
    return await make_auth(Role.ADMIN)


@pytest.fixture
def make_content(client: AsyncClient):
    """Factory: create a content item through the API and return its JSON."""
    async def _make(headers: dict, **fields) -> dict:
        body = {"title": f"Page {uuid.uuid4().hex[:8]}", **fields}
        resp = await client.post("/api/v1/contents", json=body, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]
    return _make


async def count_audit(db: AsyncSession, **filters) -> int:
    """Number of audit entries matching column equality ``filters``."""
    q = select(func.count()).select_from(AuditLog)
    for column, value in filters.items():
        q = q.where(getattr(AuditLog, column) == value)
    return (await db.execute(q)).scalar() or 0


@pytest.fixture
def audit_count(db_session: AsyncSession):
    async def _count(**filters) -> int:
        return await count_audit(db_session, **filters)
    return _count
