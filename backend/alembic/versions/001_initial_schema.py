"""Initial schema - 7 tables + indexes.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- ENUM types ---
    user_role = sa.Enum("author", "editor", "approver", "publisher", "admin", name="user_role")
    content_status = sa.Enum("draft", "in_review", "approved", "published", "unpublished", name="content_status")
    workflow_status = sa.Enum("active", "completed", "cancelled", name="workflow_status")
    workflow_step_status = sa.Enum("pending", "in_progress", "completed", "skipped", name="workflow_step_status")
    audit_action = sa.Enum(
        "create", "update", "delete", "submit", "approve", "reject", "publish", "unpublish", "upload",
        name="audit_action",
    )

    # --- 1. user_roles ---
    op.create_table(
        "user_roles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True), unique=True, nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("created_by", UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- 2. content_items ---
    op.create_table(
        "content_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), unique=True, nullable=False),
        sa.Column("excerpt", sa.String(500), nullable=True),
        sa.Column("hero_image_url", sa.Text, nullable=True),
        sa.Column("page_data", JSONB, nullable=True),
        sa.Column("meta_title", sa.String(60), nullable=True),
        sa.Column("meta_description", sa.String(160), nullable=True),
        sa.Column("meta_keywords", JSONB, nullable=True),
        sa.Column("status", content_status, nullable=False, server_default=sa.text("'draft'")),
        sa.Column("author_id", UUID(as_uuid=True), nullable=False),
        sa.Column("publish_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unpublish_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- 3. content_versions ---
    op.create_table(
        "content_versions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("content_id", UUID(as_uuid=True), sa.ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version_number", sa.Integer, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("excerpt", sa.String(500), nullable=True),
        sa.Column("hero_image_url", sa.Text, nullable=True),
        sa.Column("page_data", JSONB, nullable=True),
        sa.Column("meta_title", sa.String(60), nullable=True),
        sa.Column("meta_description", sa.String(160), nullable=True),
        sa.Column("meta_keywords", JSONB, nullable=True),
        sa.Column("created_by", UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("content_id", "version_number", name="uq_content_version_number"),
    )

    # --- 4. workflow_instances ---
    op.create_table(
        "workflow_instances",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("content_id", UUID(as_uuid=True), sa.ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("current_step", sa.String(50), nullable=False),
        sa.Column("status", workflow_status, nullable=False, server_default=sa.text("'active'")),
        sa.Column("initiated_by", UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- 5. workflow_steps ---
    op.create_table(
        "workflow_steps",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("workflow_instance_id", UUID(as_uuid=True), sa.ForeignKey("workflow_instances.id", ondelete="CASCADE"), nullable=False),
        sa.Column("step_name", sa.String(50), nullable=False),
        sa.Column("status", workflow_step_status, nullable=False),
        sa.Column("comments", sa.Text, nullable=True),
        sa.Column("completed_by", UUID(as_uuid=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- 6. workflow_approvals ---
    op.create_table(
        "workflow_approvals",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("workflow_instance_id", UUID(as_uuid=True), sa.ForeignKey("workflow_instances.id", ondelete="CASCADE"), nullable=False),
        sa.Column("workflow_step_id", UUID(as_uuid=True), sa.ForeignKey("workflow_steps.id", ondelete="CASCADE"), nullable=False),
        sa.Column("approved_by", UUID(as_uuid=True), nullable=False),
        sa.Column("approved", sa.Boolean, nullable=False),
        sa.Column("comments", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- 7. audit_logs (append-only) ---
    op.create_table(
        "audit_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True), nullable=False),
        sa.Column("action", audit_action, nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("resource_id", UUID(as_uuid=True), nullable=True),
        sa.Column("resource_name", sa.String(255), nullable=True),
        sa.Column("changes", JSONB, nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- Indexes ---
    op.create_index("ix_content_items_author_id", "content_items", ["author_id"])
    op.create_index("idx_content_items_status", "content_items", ["status", "updated_at"])
    op.create_index("idx_content_items_scheduled", "content_items", ["publish_at"], postgresql_where=sa.text("publish_at IS NOT NULL"))
    op.create_index("ix_content_versions_content_id", "content_versions", ["content_id"])
    op.create_index("ix_workflow_instances_content_id", "workflow_instances", ["content_id"])
    op.create_index(
        "uq_workflow_instances_active_content", "workflow_instances", ["content_id"],
        unique=True, postgresql_where=sa.text("status = 'active'"),
    )
    op.create_index("ix_workflow_steps_workflow_instance_id", "workflow_steps", ["workflow_instance_id"])
    op.create_index("ix_workflow_approvals_workflow_instance_id", "workflow_approvals", ["workflow_instance_id"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_resource_id", "audit_logs", ["resource_id"])
    op.create_index("idx_audit_resource", "audit_logs", ["resource_type", "resource_id", "created_at"])

    # updated_at auto-update trigger
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    for table in ["user_roles", "content_items", "workflow_instances"]:
        op.execute(f"""
            CREATE TRIGGER trigger_update_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """)

    # audit_logs rows are never changed once written
    op.execute("""
        CREATE OR REPLACE FUNCTION reject_audit_log_mutation()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'audit_logs is append-only';
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trigger_audit_logs_append_only
        BEFORE UPDATE OR DELETE ON audit_logs
        FOR EACH ROW EXECUTE FUNCTION reject_audit_log_mutation();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trigger_audit_logs_append_only ON audit_logs")
    op.execute("DROP FUNCTION IF EXISTS reject_audit_log_mutation()")

    for table in ["user_roles", "content_items", "workflow_instances"]:
        op.execute(f"DROP TRIGGER IF EXISTS trigger_update_{table}_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    tables = [
        "audit_logs", "workflow_approvals", "workflow_steps", "workflow_instances",
        "content_versions", "content_items", "user_roles",
    ]
    for table in tables:
        op.drop_table(table)

    enums = ["audit_action", "workflow_step_status", "workflow_status", "content_status", "user_role"]
    for enum in enums:
        op.execute(f"DROP TYPE IF EXISTS {enum}")
