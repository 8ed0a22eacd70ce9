# ruff: noqa: B008, TC001
from __future__ import annotations

from fastapi import APIRouter, Path, Query, status

from leave_service.api.deps import MAX_ID, ActorDep, AdminDep, UsersDep
from leave_service.db import SessionDep
from leave_service.models.enums import LeaveStatus, Role
from leave_service.schemas.leave import (
    ApplyLeavePayload,
    LeaveBalanceResponse,
    LeaveRequestResponse,
    LeaveStatsResponse,
    ResetBalanceResponse,
    StatusUpdatePayload,
)
from leave_service.services import balance as balance_service
from leave_service.services import leave as leave_service
from leave_service.services import report as report_service

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])


@leaves_router.post("/apply", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def apply_leave(
    payload: ApplyLeavePayload,
    session: SessionDep,
    actor: ActorDep,
    users: UsersDep,
) -> LeaveRequestResponse:
    """Apply for leave as the current user."""
    return await leave_service.apply_leave(session, actor.id(), payload, users)


@leaves_router.get("/my-leaves", response_model=list[LeaveRequestResponse])
async def list_my_leaves(
    session: SessionDep,
    actor: ActorDep,
    users: UsersDep,
) -> list[LeaveRequestResponse]:
    """List the current user's leave requests, newest first."""
    return await report_service.list_user_leaves(session, actor.id(), users)


@leaves_router.get("/balance", response_model=LeaveBalanceResponse)
async def get_my_balance(
    session: SessionDep,
    actor: ActorDep,
) -> LeaveBalanceResponse:
    """Get the current user's leave balance."""
    return await balance_service.get_balance(session, actor.id())


@leaves_router.post("/balance/{user_id}/reset", response_model=ResetBalanceResponse)
async def reset_balance(
    session: SessionDep,
    actor: AdminDep,
    user_id: int = Path(ge=1, le=MAX_ID),
) -> ResetBalanceResponse:
    """Restore a user's default allotments and clear taken days (admin only)."""
    balance = await balance_service.reset_balance(session, user_id)
    return ResetBalanceResponse(message=f"Leave balance reset for user {user_id}", balance=balance)


@leaves_router.get("/all", response_model=list[LeaveRequestResponse])
async def list_all_leaves(
    session: SessionDep,
    actor: AdminDep,
    users: UsersDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
) -> list[LeaveRequestResponse]:
    """List every leave request, optionally filtered by status (admin only)."""
    return await report_service.list_all_leaves(session, users, status_filter)


@leaves_router.get("/stats", response_model=LeaveStatsResponse)
async def get_leave_stats(
    session: SessionDep,
    actor: AdminDep,
) -> LeaveStatsResponse:
    """Get request counts and the organisation-wide balance rollup (admin only)."""
    return await report_service.get_leave_stats(session)


@leaves_router.get("/{leave_id}", response_model=LeaveRequestResponse)
async def get_leave(
    session: SessionDep,
    actor: ActorDep,
    users: UsersDep,
    leave_id: int = Path(ge=1, le=MAX_ID),
) -> LeaveRequestResponse:
    """Get a single leave request; other users' requests are not found unless the caller is admin."""
    owner_id = None if actor.role() == Role.ADMIN else actor.id()
    return await report_service.get_leave(session, leave_id, users, owner_id)


@leaves_router.patch("/{leave_id}/status", response_model=LeaveRequestResponse)
async def update_leave_status(
    payload: StatusUpdatePayload,
    session: SessionDep,
    actor: AdminDep,
    users: UsersDep,
    leave_id: int = Path(ge=1, le=MAX_ID),
) -> LeaveRequestResponse:
    """Approve or reject a pending leave request (admin only)."""
    return await leave_service.update_leave_status(session, leave_id, payload, users)
