# ruff: noqa: TC001, TC003
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from leave_service.models.enums import LeaveStatus, LeaveType


class _CamelModel(BaseModel):
    """Serialize with camelCase keys while accepting either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ApplyLeavePayload(_CamelModel):
    """Request body for applying for leave.

    Leave type and dates arrive raw; the workflow validates and parses them so
    that bad values surface as ``InvalidInputError`` rather than a 422.
    """

    leave_type: str = Field(min_length=1)
    start_date: str = Field(min_length=1)
    end_date: str = Field(min_length=1)
    reason: str | None = Field(default=None, max_length=1000)


class StatusUpdatePayload(_CamelModel):
    """Request body for approving or rejecting a leave request."""

    status: str
    admin_comments: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(_CamelModel):
    """A single leave request, decorated with the requester's contact details."""

    id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: str | None
    status: LeaveStatus
    admin_comments: str | None
    user_name: str | None = None
    user_email: str | None = None
    created_at: datetime
    updated_at: datetime


class LeaveBalanceResponse(_CamelModel):
    """Allotted, taken and remaining days per leave type."""

    user_id: int
    casual_leaves: int
    sick_leaves: int
    annual_leaves: int
    casual_taken: int
    sick_taken: int
    annual_taken: int
    casual_remaining: int
    sick_remaining: int
    annual_remaining: int


class LeaveStatsResponse(_CamelModel):
    """Request counts and an organisation-wide balance rollup."""

    total_requests: int
    pending: int
    approved: int
    rejected: int
    leave_balances: LeaveBalanceResponse


class ResetBalanceResponse(_CamelModel):
    message: str
    balance: LeaveBalanceResponse
