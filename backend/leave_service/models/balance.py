from __future__ import annotations

from sqlmodel import Field

from leave_service.models.base import TimestampMixin
from leave_service.models.enums import LeaveType


class LeaveBalance(TimestampMixin, table=True):
    """Per-user allotted and taken day counters for every leave type.

    Remaining days are derived on read and never stored.
    """

    __tablename__ = "leave_balance"

    user_id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    casual_allotted: int = Field(default=12, sa_column_kwargs={"server_default": "12"})
    sick_allotted: int = Field(default=6, sa_column_kwargs={"server_default": "6"})
    annual_allotted: int = Field(default=12, sa_column_kwargs={"server_default": "12"})
    casual_taken: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    sick_taken: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    annual_taken: int = Field(default=0, sa_column_kwargs={"server_default": "0"})

    def allotted(self, leave_type: LeaveType) -> int:
        return getattr(self, f"{leave_type.value}_allotted")

    def taken(self, leave_type: LeaveType) -> int:
        return getattr(self, f"{leave_type.value}_taken")
