"""Initial schema: users, workflows, workflow_stamps, workflow_external_access

Revision ID: 0001
Revises: None
Create Date: 2025-11-26

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all core tables."""

    # --- users (no FK deps) ---
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # --- workflows (FK -> users) ---
    op.create_table(
        "workflows",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("document_path", sa.String(1024), nullable=False),
        sa.Column("created_by_user_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("internal_reviewer_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("external_reviewer_email", sa.String(255), nullable=False),
        sa.Column("status", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("internal_approved_at", sa.DateTime(), nullable=True),
        sa.Column("external_approved_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_workflows"),
        sa.ForeignKeyConstraint(
            ["created_by_user_id"],
            ["users.id"],
            name="fk_workflows_created_by_user_id_users",
        ),
        sa.ForeignKeyConstraint(
            ["internal_reviewer_id"],
            ["users.id"],
            name="fk_workflows_internal_reviewer_id_users",
        ),
        sa.CheckConstraint("status BETWEEN 0 AND 5", name="ck_workflows_status"),
    )
    op.create_index("ix_workflows_document_path", "workflows", ["document_path"])
    op.create_index("ix_workflows_internal_reviewer_id", "workflows", ["internal_reviewer_id"])
    op.create_index("ix_workflows_external_reviewer_email", "workflows", ["external_reviewer_email"])
    op.create_index("ix_workflows_status", "workflows", ["status"])
    op.create_index("ix_workflows_created_at", "workflows", ["created_at"])

    # --- workflow_stamps (FK -> workflows, users) ---
    op.create_table(
        "workflow_stamps",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("workflow_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("page_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("x", sa.Float(), nullable=False, server_default="0"),
        sa.Column("y", sa.Float(), nullable=False, server_default="0"),
        sa.Column("applied_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_workflow_stamps"),
        sa.ForeignKeyConstraint(
            ["workflow_id"],
            ["workflows.id"],
            name="fk_workflow_stamps_workflow_id_workflows",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_workflow_stamps_user_id_users",
        ),
    )
    op.create_index("ix_workflow_stamps_workflow_id", "workflow_stamps", ["workflow_id"])

    # --- workflow_external_access (FK -> workflows) ---
    op.create_table(
        "workflow_external_access",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("workflow_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("otp_hash", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_workflow_external_access"),
        sa.ForeignKeyConstraint(
            ["workflow_id"],
            ["workflows.id"],
            name="fk_workflow_external_access_workflow_id_workflows",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("token", name="uq_workflow_external_access_token"),
    )
    op.create_index("ix_workflow_external_access_token", "workflow_external_access", ["token"])
    op.create_index("ix_workflow_external_access_workflow_id", "workflow_external_access", ["workflow_id"])
    op.create_index("ix_workflow_external_access_expires_at", "workflow_external_access", ["expires_at"])


def downgrade() -> None:
    """Drop all core tables in reverse dependency order."""
    op.drop_table("workflow_external_access")
    op.drop_table("workflow_stamps")
    op.drop_table("workflows")
    op.drop_table("users")
