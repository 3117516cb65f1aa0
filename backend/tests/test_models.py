"""ORM model definition tests."""
import uuid

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    Base,
    Role,
    ContentItem, ContentStatus, EDITABLE_FIELDS,
    ContentVersion,
    WorkflowInstance, WorkflowStatus, WorkflowStepStatus,
    AuditAction,
)


def test_all_7_tables_registered():
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "user_roles", "content_items", "content_versions",
        "workflow_instances", "workflow_steps", "workflow_approvals", "audit_logs",
    }
    assert expected == table_names


def test_role_enum():
    assert [r.value for r in Role] == ["author", "editor", "approver", "publisher", "admin"]


def test_content_status_enum():
    assert ContentStatus.DRAFT.value == "draft"
    assert ContentStatus.IN_REVIEW.value == "in_review"
    assert ContentStatus.APPROVED.value == "approved"
    assert ContentStatus.PUBLISHED.value == "published"
    assert ContentStatus.UNPUBLISHED.value == "unpublished"


def test_workflow_enums():
    assert {s.value for s in WorkflowStatus} == {"active", "completed", "cancelled"}
    assert {s.value for s in WorkflowStepStatus} == {"pending", "in_progress", "completed", "skipped"}


def test_audit_action_enum():
    assert {a.value for a in AuditAction} == {
        "create", "update", "delete", "submit", "approve", "reject", "publish", "unpublish", "upload",
    }


def test_table_columns_content_items():
    cols = {c.name for c in Base.metadata.tables["content_items"].columns}
    expected = {
        "id", "title", "slug", "excerpt", "hero_image_url", "page_data",
        "meta_title", "meta_description", "meta_keywords", "status", "author_id",
        "publish_at", "unpublish_at", "created_at", "updated_at",
    }
    assert expected == cols


def test_versions_snapshot_every_editable_field():
    cols = {c.name for c in Base.metadata.tables["content_versions"].columns}
    assert set(EDITABLE_FIELDS) <= cols


def test_audit_logs_have_no_updated_at():
    cols = {c.name for c in Base.metadata.tables["audit_logs"].columns}
    assert "updated_at" not in cols


def test_editable_snapshot():
    item = ContentItem(title="T", slug="t", excerpt="e", status=ContentStatus.DRAFT, author_id=uuid.uuid4())
    snap = item.editable_snapshot()
    assert set(snap) == set(EDITABLE_FIELDS)
    assert snap["title"] == "T"
    assert "status" not in snap


async def _content(db: AsyncSession) -> ContentItem:
    item = ContentItem(title="T", slug=f"t-{uuid.uuid4().hex[:6]}", status=ContentStatus.DRAFT, author_id=uuid.uuid4())
    db.add(item)
    await db.commit()
    return item


async def test_version_number_unique_per_content(db_session: AsyncSession):
    item = await _content(db_session)
    for _ in range(2):
        db_session.add(ContentVersion(
            content_id=item.id, version_number=1, title="T", slug=item.slug, created_by=item.author_id,
        ))
    with pytest.raises(IntegrityError):
        await db_session.flush()
    await db_session.rollback()


async def test_one_active_workflow_per_content(db_session: AsyncSession):
    item = await _content(db_session)
    # finished reviews may pile up
    for status in (WorkflowStatus.COMPLETED, WorkflowStatus.CANCELLED, WorkflowStatus.ACTIVE):
        db_session.add(WorkflowInstance(
            content_id=item.id, current_step="review", status=status, initiated_by=item.author_id,
        ))
    await db_session.commit()

    db_session.add(WorkflowInstance(
        content_id=item.id, current_step="review", status=WorkflowStatus.ACTIVE, initiated_by=item.author_id,
    ))
    with pytest.raises(IntegrityError):
        await db_session.flush()
    await db_session.rollback()
