"""Read-only queries: leave histories, single lookups, balances, and summary statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_service.config import get_settings
from leave_service.exceptions import NotFoundError
from leave_service.models.balance import LeaveBalance
from leave_service.models.enums import LeaveStatus
from leave_service.models.request import LeaveRequest
from leave_service.schemas.leave import LeaveBalanceResponse, LeaveStatsResponse
from leave_service.services.leave import build_leave_responses, get_leave_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_service.schemas.leave import LeaveRequestResponse
    from leave_service.services.user import UserDirectory

_NEWEST_FIRST = (col(LeaveRequest.created_at).desc(), col(LeaveRequest.id).desc())


async def list_user_leaves(
    session: AsyncSession,
    user_id: int,
    users: UserDirectory,
) -> list[LeaveRequestResponse]:
    """A user's leave history, newest first."""
    result = await session.execute(
        select(LeaveRequest).where(col(LeaveRequest.user_id) == user_id).order_by(*_NEWEST_FIRST)
    )
    return await build_leave_responses(list(result.scalars().all()), users)


async def list_all_leaves(
    session: AsyncSession,
    users: UserDirectory,
    status_filter: LeaveStatus | None = None,
) -> list[LeaveRequestResponse]:
    """Every leave request, newest first, optionally restricted to one status."""
    query = select(LeaveRequest).order_by(*_NEWEST_FIRST)
    if status_filter is not None:
        query = query.where(col(LeaveRequest.status) == status_filter.value)

    result = await session.execute(query)
    return await build_leave_responses(list(result.scalars().all()), users)


async def get_leave(
    session: AsyncSession,
    leave_id: int,
    users: UserDirectory,
    owner_id: int | None = None,
) -> LeaveRequestResponse:
    """Get a single leave request.

    With owner_id set, another user's request is reported as not found.
    """
    leave = await get_leave_or_404(session, leave_id)
    if owner_id is not None and leave.user_id != owner_id:
        raise NotFoundError(f"Leave request {leave_id} not found")
    responses = await build_leave_responses([leave], users)
    return responses[0]


async def get_leave_stats(session: AsyncSession) -> LeaveStatsResponse:
    """Request counts by status plus an organisation-wide balance rollup.

    The rollup assumes every user on record holds the default allotment, so
    per-user overrides are not reflected in the allotted and remaining totals.
    """
    settings = get_settings()

    status_result = await session.execute(
        select(col(LeaveRequest.status), func.count()).group_by(col(LeaveRequest.status))
    )
    by_status = {row[0]: int(row[1]) for row in status_result.all()}

    balance_result = await session.execute(
        select(
            func.count().label("users"),
            func.coalesce(func.sum(col(LeaveBalance.casual_taken)), 0).label("casual_taken"),
            func.coalesce(func.sum(col(LeaveBalance.sick_taken)), 0).label("sick_taken"),
            func.coalesce(func.sum(col(LeaveBalance.annual_taken)), 0).label("annual_taken"),
        ).select_from(LeaveBalance)
    )
    totals = balance_result.one()
    users = int(totals.users) or 1

    casual_allotted = settings.default_casual_days * users
    sick_allotted = settings.default_sick_days * users
    annual_allotted = settings.default_annual_days * users

    return LeaveStatsResponse(
        total_requests=sum(by_status.values()),
        pending=by_status.get(LeaveStatus.PENDING.value, 0),
        approved=by_status.get(LeaveStatus.APPROVED.value, 0),
        rejected=by_status.get(LeaveStatus.REJECTED.value, 0),
        leave_balances=LeaveBalanceResponse(
            user_id=0,
            casual_leaves=casual_allotted,
            sick_leaves=sick_allotted,
            annual_leaves=annual_allotted,
            casual_taken=int(totals.casual_taken),
            sick_taken=int(totals.sick_taken),
            annual_taken=int(totals.annual_taken),
            casual_remaining=casual_allotted - int(totals.casual_taken),
            sick_remaining=sick_allotted - int(totals.sick_taken),
            annual_remaining=annual_allotted - int(totals.annual_taken),
        ),
    )
