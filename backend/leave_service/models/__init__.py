from sqlmodel import SQLModel

from leave_service.models.balance import LeaveBalance
from leave_service.models.base import IntIDBase, TimestampMixin
from leave_service.models.enums import LeaveStatus, LeaveType, Role
from leave_service.models.request import LeaveRequest

__all__ = [
    "IntIDBase",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "Role",
    "SQLModel",
    "TimestampMixin",
]
