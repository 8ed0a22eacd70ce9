# ruff: noqa: TC003
from __future__ import annotations

from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leave_service.models.base import IntIDBase, TimestampMixin
from leave_service.models.enums import LeaveStatus


class LeaveRequest(IntIDBase, TimestampMixin, table=True):
    """An employee's leave request with its approval state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_user_status", "user_id", "status"),
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_request_date_order"),
    )

    user_id: int = Field(index=True)
    leave_type: str = Field(max_length=20)
    start_date: date
    end_date: date
    # Working days at creation time; never recomputed.
    total_days: int
    reason: str | None = None
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    admin_comment: str | None = None
