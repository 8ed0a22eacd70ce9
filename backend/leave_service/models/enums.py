from __future__ import annotations

import enum


class LeaveType(enum.StrEnum):
    """Kind of leave; each has its own allotment on the balance."""

    CASUAL = "casual"
    SICK = "sick"
    ANNUAL = "annual"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests: pending -> approved | rejected."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Role(enum.StrEnum):
    """Role of the acting user."""

    USER = "user"
    ADMIN = "admin"
