"""001 – Create leave_request and leave_balance tables.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000+00:00
"""

import sqlalchemy as sa
from alembic import op

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "leave_request",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("leave_type", sa.String(length=20), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("total_days", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("admin_comment", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_request_date_order"),
    )
    op.create_index("ix_leave_request_user_id", "leave_request", ["user_id"])
    op.create_index("ix_leave_request_status", "leave_request", ["status"])
    op.create_index("ix_leave_request_created_at", "leave_request", ["created_at"])
    op.create_index("ix_leave_request_user_status", "leave_request", ["user_id", "status"])

    op.create_table(
        "leave_balance",
        sa.Column("user_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("casual_allotted", sa.Integer(), nullable=False, server_default="12"),
        sa.Column("sick_allotted", sa.Integer(), nullable=False, server_default="6"),
        sa.Column("annual_allotted", sa.Integer(), nullable=False, server_default="12"),
        sa.Column("casual_taken", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sick_taken", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("annual_taken", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_leave_balance_created_at", "leave_balance", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_leave_balance_created_at", table_name="leave_balance")
    op.drop_table("leave_balance")
    op.drop_index("ix_leave_request_user_status", table_name="leave_request")
    op.drop_index("ix_leave_request_created_at", table_name="leave_request")
    op.drop_index("ix_leave_request_status", table_name="leave_request")
    op.drop_index("ix_leave_request_user_id", table_name="leave_request")
    op.drop_table("leave_request")
