"""initial_schema

Revision ID: c4a81e0b9d2f
Revises:
Create Date: 2026-10-01 00:00:00.000000

Creates users, organizations, memberships, consultancy grants, projects,
matrices, task groups, tasks, assignments and the audit tables.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "c4a81e0b9d2f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = {
    "organization_type": ("CLIENT", "CONSULTANCY"),
    "member_role": ("VIEWER", "MEMBER", "ADMIN", "OWNER"),
    "member_status": ("ACTIVE", "INACTIVE", "INVITED"),
    "access_level": ("VIEW", "EDIT", "ADMIN"),
    "task_status": ("NOT_STARTED", "IN_PROGRESS", "COMPLETED", "BLOCKED", "ON_HOLD"),
    "task_priority": ("LOW", "MEDIUM", "HIGH", "CRITICAL"),
    "raci_role": ("RESPONSIBLE", "ACCOUNTABLE", "CONSULTED", "INFORMED"),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUMS[name], name=name)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    # Create users table
    op.create_table(
        "users",
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    # Create organizations table
    op.create_table(
        "organizations",
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=50), nullable=False),
        sa.Column("type", _enum("organization_type"), nullable=False),
        sa.Column("settings", postgresql.JSONB(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_organizations_id"), "organizations", ["id"], unique=False)
    op.create_index(
        "uq_organizations_slug_active",
        "organizations",
        ["slug"],
        unique=True,
        postgresql_where=sa.text("archived_at IS NULL"),
    )

    # Create members table
    op.create_table(
        "members",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("role", _enum("member_role"), nullable=False),
        sa.Column("job_title", sa.String(length=255), nullable=True),
        sa.Column("department_labels", postgresql.JSONB(), nullable=False),
        sa.Column("status", _enum("member_status"), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "organization_id", name="uq_members_user_organization"),
    )
    op.create_index(op.f("ix_members_id"), "members", ["id"], unique=False)
    op.create_index(op.f("ix_members_user_id"), "members", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_members_organization_id"), "members", ["organization_id"], unique=False
    )

    # Create consultancy_access table
    op.create_table(
        "consultancy_access",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("can_access_all_orgs", sa.Boolean(), nullable=False),
        sa.Column("access_level", _enum("access_level"), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index(
        op.f("ix_consultancy_access_id"), "consultancy_access", ["id"], unique=False
    )

    # Create projects table
    op.create_table(
        "projects",
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["owner_id"], ["members.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_projects_id"), "projects", ["id"], unique=False)
    op.create_index(
        op.f("ix_projects_organization_id"), "projects", ["organization_id"], unique=False
    )
    op.create_index(op.f("ix_projects_owner_id"), "projects", ["owner_id"], unique=False)

    # Create matrices table
    op.create_table(
        "matrices",
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_matrices_id"), "matrices", ["id"], unique=False)
    op.create_index(op.f("ix_matrices_project_id"), "matrices", ["project_id"], unique=False)
    op.create_index(op.f("ix_matrices_deleted_at"), "matrices", ["deleted_at"], unique=False)

    # Create task_groups table
    op.create_table(
        "task_groups",
        sa.Column("matrix_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=32), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["matrix_id"], ["matrices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_task_groups_id"), "task_groups", ["id"], unique=False)
    op.create_index(op.f("ix_task_groups_matrix_id"), "task_groups", ["matrix_id"], unique=False)

    # Create tasks table
    op.create_table(
        "tasks",
        sa.Column("matrix_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("parent_task_id", sa.Uuid(), nullable=True),
        sa.Column("status", _enum("task_status"), nullable=False),
        sa.Column("priority", _enum("task_priority"), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("estimated_hours", sa.Numeric(8, 2), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["matrix_id"], ["matrices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_task_id"], ["tasks.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tasks_id"), "tasks", ["id"], unique=False)
    op.create_index(op.f("ix_tasks_matrix_id"), "tasks", ["matrix_id"], unique=False)
    op.create_index(op.f("ix_tasks_parent_task_id"), "tasks", ["parent_task_id"], unique=False)
    op.create_index(op.f("ix_tasks_deleted_at"), "tasks", ["deleted_at"], unique=False)

    # Create task_group_memberships junction table
    op.create_table(
        "task_group_memberships",
        sa.Column("task_id", sa.Uuid(), nullable=False),
        sa.Column("task_group_id", sa.Uuid(), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["task_group_id"], ["task_groups.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("task_id", "task_group_id", name="uq_task_group_memberships"),
    )
    op.create_index(
        op.f("ix_task_group_memberships_id"), "task_group_memberships", ["id"], unique=False
    )
    op.create_index(
        op.f("ix_task_group_memberships_task_id"),
        "task_group_memberships",
        ["task_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_task_group_memberships_task_group_id"),
        "task_group_memberships",
        ["task_group_id"],
        unique=False,
    )

    # Create assignments table
    op.create_table(
        "assignments",
        sa.Column("matrix_id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sa.Uuid(), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("raci_role", _enum("raci_role"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("workload", sa.Integer(), nullable=True),
        sa.Column("assigned_by", sa.Uuid(), nullable=True),
        sa.Column(
            "assigned_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["matrix_id"], ["matrices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["assigned_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_assignments_id"), "assignments", ["id"], unique=False)
    op.create_index(op.f("ix_assignments_matrix_id"), "assignments", ["matrix_id"], unique=False)
    op.create_index(op.f("ix_assignments_task_id"), "assignments", ["task_id"], unique=False)
    op.create_index(op.f("ix_assignments_member_id"), "assignments", ["member_id"], unique=False)
    op.create_index(
        op.f("ix_assignments_deleted_at"), "assignments", ["deleted_at"], unique=False
    )

    # Storage-level RACI guards for concurrent writers
    op.create_index(
        "uq_assignments_task_member_role_live",
        "assignments",
        ["task_id", "member_id", "raci_role"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index(
        "uq_assignments_task_accountable_live",
        "assignments",
        ["task_id"],
        unique=True,
        postgresql_where=sa.text("raci_role = 'ACCOUNTABLE' AND deleted_at IS NULL"),
    )

    # Create audit_logs table
    op.create_table(
        "audit_logs",
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("resource_type", sa.String(length=50), nullable=False),
        sa.Column("resource_id", sa.String(length=64), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("changes", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_logs_id"), "audit_logs", ["id"], unique=False)
    op.create_index(
        op.f("ix_audit_logs_organization_id"), "audit_logs", ["organization_id"], unique=False
    )
    op.create_index(op.f("ix_audit_logs_user_id"), "audit_logs", ["user_id"], unique=False)
    op.create_index(op.f("ix_audit_logs_action"), "audit_logs", ["action"], unique=False)
    op.create_index(
        op.f("ix_audit_logs_resource_type"), "audit_logs", ["resource_type"], unique=False
    )
    op.create_index(
        op.f("ix_audit_logs_resource_id"), "audit_logs", ["resource_id"], unique=False
    )
    op.create_index(op.f("ix_audit_logs_created_at"), "audit_logs", ["created_at"], unique=False)

    # Create consultancy_audit_logs table
    op.create_table(
        "consultancy_audit_logs",
        sa.Column("consultancy_user_id", sa.Uuid(), nullable=False),
        sa.Column("client_organization_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("resource_type", sa.String(length=50), nullable=False),
        sa.Column("resource_id", sa.String(length=64), nullable=True),
        sa.Column("changes", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["consultancy_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["client_organization_id"], ["organizations.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_consultancy_audit_logs_id"), "consultancy_audit_logs", ["id"], unique=False
    )
    op.create_index(
        op.f("ix_consultancy_audit_logs_consultancy_user_id"),
        "consultancy_audit_logs",
        ["consultancy_user_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_consultancy_audit_logs_client_organization_id"),
        "consultancy_audit_logs",
        ["client_organization_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade database schema."""
    # Drop tables in reverse dependency order
    op.drop_table("consultancy_audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("assignments")
    op.drop_table("task_group_memberships")
    op.drop_table("tasks")
    op.drop_table("task_groups")
    op.drop_table("matrices")
    op.drop_table("projects")
    op.drop_table("consultancy_access")
    op.drop_table("members")
    op.drop_table("organizations")
    op.drop_table("users")

    for name in reversed(ENUMS):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
