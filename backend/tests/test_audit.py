"""Audit trail API and recorder tests."""
import csv
import io
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditAction
from app.models.user_role import Role, UserRoleAssignment
from app.repositories import audit_repository
from app.services import audit_service
from app.services.auth_service import Principal


async def _seed(client: AsyncClient, make_content, headers: dict) -> dict:
    """One content item that is created, edited and submitted: three entries."""
    content = await make_content(headers, title="Audited")
    await client.patch(f"/api/v1/contents/{content['id']}", json={"excerpt": "edited"}, headers=headers)
    await client.post("/api/v1/workflow/submit", json={"content_id": content["id"]}, headers=headers)
    return content


# --- GET /api/v1/audit ---

async def test_list_audit_logs(client: AsyncClient, make_content, author_auth, publisher_auth):
    author_id, headers = author_auth
    content = await _seed(client, make_content, headers)

    resp = await client.get("/api/v1/audit", headers=publisher_auth[1])
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["total"] == 3
    assert {e["action"] for e in body["data"]} == {"create", "update", "submit"}
    entry = body["data"][0]
    assert entry["user_id"] == str(author_id)
    assert entry["resource_type"] == "content_item"
    assert entry["resource_id"] == content["id"]
    assert entry["resource_name"] == "Audited"
    assert entry["ip_address"] == "127.0.0.1"


async def test_list_audit_logs_filters(client: AsyncClient, make_content, author_auth, admin_auth):
    _, headers = author_auth
    content = await _seed(client, make_content, headers)
    await make_content(headers)

    resp = await client.get("/api/v1/audit", params={"action": "submit"}, headers=admin_auth[1])
    data = resp.json()["data"]
    assert len(data) == 1
    assert data[0]["changes"]["status"] == {"from": "draft", "to": "in_review"}

    resp = await client.get("/api/v1/audit", params={"resource_id": content["id"]}, headers=admin_auth[1])
    assert resp.json()["pagination"]["total"] == 3

    resp = await client.get("/api/v1/audit", params={"user_id": str(uuid.uuid4())}, headers=admin_auth[1])
    assert resp.json()["pagination"]["total"] == 0


async def test_list_audit_logs_paging(client: AsyncClient, make_content, author_auth, admin_auth):
    await _seed(client, make_content, author_auth[1])
    resp = await client.get("/api/v1/audit", params={"per_page": 2}, headers=admin_auth[1])
    body = resp.json()
    assert len(body["data"]) == 2
    assert body["pagination"]["has_next"] is True


@pytest.mark.parametrize("role", [Role.AUTHOR, Role.EDITOR, Role.APPROVER])
async def test_audit_log_hidden_from_non_publishers(client: AsyncClient, make_auth, role):
    _, headers = await make_auth(role)
    resp = await client.get("/api/v1/audit", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["details"]["required_roles"] == ["publisher", "admin"]


# --- GET /api/v1/audit/{id} ---

async def test_get_audit_log(client: AsyncClient, make_content, author_auth, admin_auth):
    await make_content(author_auth[1])
    entry = (await client.get("/api/v1/audit", headers=admin_auth[1])).json()["data"][0]

    resp = await client.get(f"/api/v1/audit/{entry['id']}", headers=admin_auth[1])
    assert resp.status_code == 200
    assert resp.json()["data"]["action"] == "create"


async def test_get_unknown_audit_log(client: AsyncClient, admin_auth):
    resp = await client.get(f"/api/v1/audit/{uuid.uuid4()}", headers=admin_auth[1])
    assert resp.status_code == 404
    assert resp.json()["message"] == "Audit log not found"


# --- GET /api/v1/audit/export ---

async def test_export_json(client: AsyncClient, make_content, author_auth, admin_auth):
    await _seed(client, make_content, author_auth[1])
    resp = await client.get("/api/v1/audit/export", headers=admin_auth[1])
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["count"] == 3
    assert len(data["data"]) == 3
    assert data["exported_at"]


async def test_export_csv(client: AsyncClient, make_content, author_auth, admin_auth):
    await _seed(client, make_content, author_auth[1])
    resp = await client.get("/api/v1/audit/export", params={"format": "csv"}, headers=admin_auth[1])
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(resp.text)))
    assert len(rows) == 3
    assert list(rows[0].keys()) == audit_service.EXPORT_COLUMNS
    update_row = next(r for r in rows if r["action"] == "update")
    assert update_row["changes"] == '{"fields": ["excerpt"]}'


async def test_export_rejects_unknown_format(client: AsyncClient, admin_auth):
    resp = await client.get("/api/v1/audit/export", params={"format": "xml"}, headers=admin_auth[1])
    assert resp.status_code == 400


async def test_export_is_admin_only(client: AsyncClient, publisher_auth):
    resp = await client.get("/api/v1/audit/export", headers=publisher_auth[1])
    assert resp.status_code == 403
    assert resp.json()["details"]["required_roles"] == ["admin"]


# --- Recorder ---

def test_to_csv_empty():
    assert audit_service.to_csv([]) == ""


async def test_record_rolls_back_only_its_savepoint(db_session: AsyncSession, audit_count, monkeypatch):
    principal = Principal(id=uuid.uuid4(), email="a@test.com", role=Role.ADMIN)
    user_id = uuid.uuid4()
    db_session.add(UserRoleAssignment(user_id=user_id, role=Role.EDITOR))
    await db_session.flush()

    async def _insert_then_fail(db, entry):
        db.add(entry)
        await db.flush()
        await db.execute(text("INSERT INTO no_such_table (id) VALUES (1)"))

    monkeypatch.setattr(audit_repository, "insert", _insert_then_fail)
    result = await audit_service.record(
        db_session, principal, AuditAction.UPLOAD, "asset", None, "logo.png",
    )
    assert result is None
    await db_session.commit()

    assert await audit_count(action=AuditAction.UPLOAD) == 0
    kept = await db_session.execute(select(UserRoleAssignment.role).where(UserRoleAssignment.user_id == user_id))
    assert kept.scalar_one() == Role.EDITOR


async def test_record_writes_entry(db_session: AsyncSession):
    principal = Principal(
        id=uuid.uuid4(), email="a@test.com", role=Role.ADMIN, ip_address="10.0.0.1", user_agent="pytest",
    )
    entry = await audit_service.record(
        db_session, principal, AuditAction.UPLOAD, "asset", None, "logo.png", {"size": 1024},
    )
    await db_session.commit()
    assert entry is not None
    assert entry.action == AuditAction.UPLOAD
    assert entry.changes == {"size": 1024}
    assert entry.ip_address == "10.0.0.1"
