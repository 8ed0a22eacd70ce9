from __future__ import annotations

import logging
import re
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlmodel import col

from leave_service.config import get_settings
from leave_service.exceptions import InsufficientBalanceError, InvalidInputError, InvalidStateError, NotFoundError
from leave_service.models.enums import LeaveStatus, LeaveType
from leave_service.models.request import LeaveRequest
from leave_service.schemas.leave import LeaveRequestResponse
from leave_service.services.balance import credit_balance, ensure_balance, remaining
from leave_service.services.working_days import count_working_days

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_service.schemas.leave import ApplyLeavePayload, StatusUpdatePayload
    from leave_service.services.user import UserDirectory, UserInfo

logger = logging.getLogger(__name__)

_DECISIONS = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)
_ISO_DATE_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}(?:$|[T ])")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_leave_response(leave: LeaveRequest, user: UserInfo | None = None) -> LeaveRequestResponse:
    """Map a leave request model to its response schema."""
    if leave.id is None:
        msg = "leave request must be persisted before it is returned"
        raise ValueError(msg)
    return LeaveRequestResponse(
        id=leave.id,
        user_id=leave.user_id,
        leave_type=LeaveType(leave.leave_type),
        start_date=leave.start_date,
        end_date=leave.end_date,
        total_days=leave.total_days,
        reason=leave.reason,
        status=LeaveStatus(leave.status),
        admin_comments=leave.admin_comment,
        user_name=user.name if user else None,
        user_email=user.email if user else None,
        created_at=leave.created_at,
        updated_at=leave.updated_at,
    )


async def build_leave_responses(
    leaves: Sequence[LeaveRequest],
    users: UserDirectory,
) -> list[LeaveRequestResponse]:
    """Map leave requests to responses with one directory lookup for all requesters."""
    known = await users.get_users({leave.user_id for leave in leaves})
    return [_build_leave_response(leave, known.get(leave.user_id)) for leave in leaves]


async def get_leave_or_404(session: AsyncSession, leave_id: int) -> LeaveRequest:
    """Fetch a leave request by ID. Raises NotFoundError if absent."""
    result = await session.execute(select(LeaveRequest).where(col(LeaveRequest.id) == leave_id))
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError(f"Leave request {leave_id} not found")
    return leave


def _parse_leave_type(raw: str) -> LeaveType:
    try:
        return LeaveType(raw.strip().lower())
    except ValueError:
        valid = ", ".join(t.value for t in LeaveType)
        raise InvalidInputError(f"Invalid leave type '{raw}'; expected one of: {valid}") from None


def _parse_date(raw: str, field_name: str) -> date:
    """Parse YYYY-MM-DD, or the date part of an ISO datetime that starts with one."""
    value = raw.strip()
    if _ISO_DATE_PREFIX.match(value) is None:
        raise InvalidInputError(f"Invalid {field_name}: '{raw}' is not an ISO date")
    try:
        if len(value) == len("YYYY-MM-DD"):
            return date.fromisoformat(value)
        return datetime.fromisoformat(value).date()
    except ValueError:
        raise InvalidInputError(f"Invalid {field_name}: '{raw}' is not an ISO date") from None


def _parse_decision(raw: str) -> LeaveStatus:
    try:
        decision = LeaveStatus(raw.strip().lower())
    except ValueError:
        decision = None
    if decision not in _DECISIONS:
        raise InvalidInputError(f"Invalid status '{raw}'; expected 'approved' or 'rejected'")
    return decision


async def _pending_days(session: AsyncSession, user_id: int, leave_type: LeaveType) -> int:
    """Sum of working days held by the user's pending requests of one type."""
    result = await session.execute(
        select(func.coalesce(func.sum(col(LeaveRequest.total_days)), 0)).where(
            col(LeaveRequest.user_id) == user_id,
            col(LeaveRequest.leave_type) == leave_type.value,
            col(LeaveRequest.status) == LeaveStatus.PENDING.value,
        )
    )
    return int(result.scalar_one())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def apply_leave(
    session: AsyncSession,
    user_id: int,
    payload: ApplyLeavePayload,
    users: UserDirectory,
) -> LeaveRequestResponse:
    """Create a pending leave request after validating dates and balance.

    Flow:
    1. Validate leave type
    2. Parse start and end dates
    3. Reject start after end
    4. Count working days; reject ranges with none
    5. Ensure the balance row and check sufficiency
    6. Insert the request as pending
    7. Commit

    The balance itself is not modified; days are only taken on approval.
    """
    # 1. Leave type.
    leave_type = _parse_leave_type(payload.leave_type)

    # 2. Dates.
    start_date = _parse_date(payload.start_date, "start date")
    end_date = _parse_date(payload.end_date, "end date")

    # 3. Ordering.
    if start_date > end_date:
        raise InvalidInputError("Start date cannot be after end date")

    # 4. Working days.
    total_days = count_working_days(start_date, end_date)
    if total_days <= 0:
        raise InvalidInputError("Leave must cover at least 1 working day")

    # 5. Balance check.
    balance = await ensure_balance(session, user_id)
    available = remaining(balance, leave_type)
    if get_settings().count_pending_against_balance:
        available -= await _pending_days(session, user_id, leave_type)

    if total_days > available:
        raise InsufficientBalanceError(
            f"Insufficient {leave_type.value} leave: requested {total_days} day(s), {max(available, 0)} available"
        )

    # 6. Create request.
    leave = LeaveRequest(
        user_id=user_id,
        leave_type=leave_type.value,
        start_date=start_date,
        end_date=end_date,
        total_days=total_days,
        reason=payload.reason,
        status=LeaveStatus.PENDING.value,
    )
    session.add(leave)

    # 7. Commit.
    await session.commit()
    await session.refresh(leave)
    logger.info(
        "Leave %s applied: user=%s type=%s %s..%s days=%d",
        leave.id,
        user_id,
        leave_type.value,
        start_date,
        end_date,
        total_days,
    )

    responses = await build_leave_responses([leave], users)
    return responses[0]


async def update_leave_status(
    session: AsyncSession,
    leave_id: int,
    payload: StatusUpdatePayload,
    users: UserDirectory,
) -> LeaveRequestResponse:
    """Approve or reject a pending leave request.

    1. Validate the requested decision.
    2. Fetch the request (404 if unknown) and require it to be pending.
    3. Write status and comment only if the row is still pending.
    4. On approval, add the request's days to the balance.
    5. Commit.
    """
    decision = _parse_decision(payload.status)
    leave = await get_leave_or_404(session, leave_id)

    if leave.status != LeaveStatus.PENDING.value:
        raise InvalidStateError(f"Leave request {leave_id} has already been {leave.status}")

    result = await session.execute(
        update(LeaveRequest)
        .where(
            col(LeaveRequest.id) == leave_id,
            col(LeaveRequest.status) == LeaveStatus.PENDING.value,
        )
        .values(status=decision.value, admin_comment=payload.admin_comments, updated_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # Another decision landed between the read and the write.
        await session.rollback()
        raise InvalidStateError(f"Leave request {leave_id} has already been processed")

    if decision == LeaveStatus.APPROVED:
        await ensure_balance(session, leave.user_id)
        await credit_balance(session, leave.user_id, LeaveType(leave.leave_type), leave.total_days)

    await session.commit()
    await session.refresh(leave)
    logger.info("Leave %s %s for user=%s days=%d", leave_id, decision.value, leave.user_id, leave.total_days)

    responses = await build_leave_responses([leave], users)
    return responses[0]
