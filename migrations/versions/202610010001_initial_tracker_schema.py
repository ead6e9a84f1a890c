"""Create profiles, projects, sprints, issues and issue activity tables (idempotent)."""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "202610010001_initial_tracker_schema"
down_revision = None
branch_labels = None
depends_on = None


ID_LENGTH = 36
STATUS_LENGTH = 20


def _id_column(name: str = "id", **kwargs) -> sa.Column:
    return sa.Column(name, sa.String(length=ID_LENGTH), **kwargs)


def upgrade():
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing = set(inspector.get_table_names())

    if "profiles" not in existing:
        op.create_table(
            "profiles",
            _id_column(nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column(
                "role",
                sa.String(length=STATUS_LENGTH),
                nullable=False,
                server_default="member",
            ),
            sa.Column("password_hash", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email", name="uq_profiles_email"),
        )
        print("[INFO] Created profiles table.")

    if "projects" not in existing:
        op.create_table(
            "projects",
            _id_column(nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            _id_column("created_by", nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], name="fk_projects_created_by"),
            sa.PrimaryKeyConstraint("id"),
        )
        print("[INFO] Created projects table.")

    if "project_members" not in existing:
        op.create_table(
            "project_members",
            _id_column("project_id", nullable=False),
            _id_column("user_id", nullable=False),
            sa.ForeignKeyConstraint(
                ["project_id"], ["projects.id"], name="fk_project_members_project_id"
            ),
            sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], name="fk_project_members_user_id"),
            sa.PrimaryKeyConstraint("project_id", "user_id"),
        )
        print("[INFO] Created project_members table.")

    if "sprints" not in existing:
        op.create_table(
            "sprints",
            _id_column(nullable=False),
            _id_column("project_id", nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("goal", sa.Text(), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("end_date", sa.Date(), nullable=True),
            sa.Column(
                "status",
                sa.String(length=STATUS_LENGTH),
                nullable=False,
                server_default="planned",
            ),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], name="fk_sprints_project_id"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_sprints_project_id", "sprints", ["project_id"])
        op.create_index("ix_sprints_project_status", "sprints", ["project_id", "status"])
        print("[INFO] Created sprints table.")

    if "issues" not in existing:
        op.create_table(
            "issues",
            _id_column(nullable=False),
            _id_column("project_id", nullable=False),
            _id_column("sprint_id", nullable=True),
            sa.Column("title", sa.Text(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=STATUS_LENGTH), nullable=False, server_default="todo"),
            sa.Column(
                "priority", sa.String(length=STATUS_LENGTH), nullable=False, server_default="medium"
            ),
            sa.Column("type", sa.String(length=STATUS_LENGTH), nullable=False, server_default="task"),
            sa.Column("story_points", sa.Integer(), nullable=True),
            sa.Column(
                "complexity",
                sa.String(length=STATUS_LENGTH),
                nullable=False,
                server_default="medium",
            ),
            sa.Column("due_date", sa.Date(), nullable=True),
            _id_column("reporter_id", nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], name="fk_issues_project_id"),
            sa.ForeignKeyConstraint(["sprint_id"], ["sprints.id"], name="fk_issues_sprint_id"),
            sa.ForeignKeyConstraint(["reporter_id"], ["profiles.id"], name="fk_issues_reporter_id"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_issues_project_id", "issues", ["project_id"])
        op.create_index("ix_issues_sprint_id", "issues", ["sprint_id"])
        print("[INFO] Created issues table.")

    if "issue_assignees" not in existing:
        op.create_table(
            "issue_assignees",
            _id_column("issue_id", nullable=False),
            _id_column("user_id", nullable=False),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], name="fk_issue_assignees_issue_id"),
            sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], name="fk_issue_assignees_user_id"),
            sa.PrimaryKeyConstraint("issue_id", "user_id"),
        )
        print("[INFO] Created issue_assignees table.")

    if "issue_comments" not in existing:
        op.create_table(
            "issue_comments",
            _id_column(nullable=False),
            _id_column("issue_id", nullable=False),
            _id_column("author_id", nullable=True),
            sa.Column("body", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], name="fk_issue_comments_issue_id"),
            sa.ForeignKeyConstraint(["author_id"], ["profiles.id"], name="fk_issue_comments_author_id"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_issue_comments_issue_id", "issue_comments", ["issue_id"])
        print("[INFO] Created issue_comments table.")

    if "issue_work_logs" not in existing:
        op.create_table(
            "issue_work_logs",
            _id_column(nullable=False),
            _id_column("issue_id", nullable=False),
            _id_column("logged_by", nullable=True),
            sa.Column("work_date", sa.Date(), nullable=False),
            sa.Column("hours", sa.Float(), nullable=False),
            sa.Column("note", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], name="fk_issue_work_logs_issue_id"),
            sa.ForeignKeyConstraint(
                ["logged_by"], ["profiles.id"], name="fk_issue_work_logs_logged_by"
            ),
            sa.CheckConstraint("hours > 0 AND hours <= 24", name="ck_issue_work_logs_hours"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_issue_work_logs_issue_id", "issue_work_logs", ["issue_id"])
        print("[INFO] Created issue_work_logs table.")

    if "issue_attachments" not in existing:
        op.create_table(
            "issue_attachments",
            _id_column(nullable=False),
            _id_column("issue_id", nullable=False),
            _id_column("uploaded_by", nullable=True),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("url", sa.Text(), nullable=False),
            sa.Column("file_path", sa.Text(), nullable=True),
            sa.Column("content_type", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(
                ["issue_id"], ["issues.id"], name="fk_issue_attachments_issue_id"
            ),
            sa.ForeignKeyConstraint(
                ["uploaded_by"], ["profiles.id"], name="fk_issue_attachments_uploaded_by"
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_issue_attachments_issue_id", "issue_attachments", ["issue_id"])
        print("[INFO] Created issue_attachments table.")


def downgrade():
    for table in (
        "issue_attachments",
        "issue_work_logs",
        "issue_comments",
        "issue_assignees",
        "issues",
        "sprints",
        "project_members",
        "projects",
        "profiles",
    ):
        op.drop_table(table)
