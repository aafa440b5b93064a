"""initial schema"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name):
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _ticket_columns():
    return [
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("uuid", sa.String(length=36), nullable=False, index=True),
        sa.Column("owner", sa.Integer(), sa.ForeignKey("users.id"), nullable=True, index=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False, server_default=""),
        sa.Column("task", sa.Integer(), nullable=True),
        sa.Column("report", sa.Integer(), nullable=True),
        sa.Column("severity", sa.Float(), nullable=True),
        sa.Column("host", sa.String(length=255), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("solution_type", sa.String(length=100), nullable=True),
        sa.Column("assigned_to", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="open"),
        sa.Column("open_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("solved_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("solved_comment", sa.Text(), nullable=True),
        sa.Column("confirmed_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_result", sa.Integer(), nullable=True),
        sa.Column("closed_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_rationale", sa.Text(), nullable=True),
        sa.Column("orphaned_time", sa.DateTime(timezone=True), nullable=True),
        _timestamp("creation_time"),
        _timestamp("modification_time"),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("uuid", sa.String(length=36), nullable=False, unique=True),
        sa.Column("username", sa.String(length=100), nullable=False, unique=True),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="user"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    op.create_table("tickets", *_ticket_columns(), sqlite_autoincrement=True)
    op.create_table("tickets_trash", *_ticket_columns(), sqlite_autoincrement=True)

    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("uuid", sa.String(length=36), nullable=False, unique=True),
        sa.Column("owner", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False, server_default=""),
        sa.Column("resource_type", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("resource", sa.Integer(), nullable=True),
        sa.Column("resource_uuid", sa.String(length=36), nullable=True),
        sa.Column("resource_location", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subject_type", sa.String(length=50), nullable=False, server_default="user"),
        sa.Column("subject", sa.Integer(), nullable=False),
        _timestamp("creation_time"),
        _timestamp("modification_time"),
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("uuid", sa.String(length=36), nullable=False, unique=True),
        sa.Column("owner", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("value", sa.Text(), nullable=False, server_default=""),
        sa.Column("comment", sa.Text(), nullable=False, server_default=""),
        _timestamp("creation_time"),
    )

    op.create_table(
        "tag_resources",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.id"), nullable=False, index=True),
        sa.Column("resource_type", sa.String(length=50), nullable=False),
        sa.Column("resource", sa.Integer(), nullable=False),
        sa.Column("resource_uuid", sa.String(length=36), nullable=True),
        sa.Column("resource_location", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade():
    op.drop_table("tag_resources")
    op.drop_table("tags")
    op.drop_table("permissions")
    op.drop_table("tickets_trash")
    op.drop_table("tickets")
    op.drop_table("users")
