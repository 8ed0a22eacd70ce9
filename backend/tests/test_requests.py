"""Tests for the leave workflow: apply validation, balance checks, and approve/reject transitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import func, select
from sqlmodel import col

from leave_service import config
from leave_service.config import Settings
from leave_service.exceptions import InsufficientBalanceError, InvalidInputError, InvalidStateError, NotFoundError
from leave_service.models.balance import LeaveBalance
from leave_service.models.enums import LeaveStatus, LeaveType
from leave_service.models.request import LeaveRequest
from leave_service.schemas.leave import ApplyLeavePayload, StatusUpdatePayload
from leave_service.services.balance import get_balance
from leave_service.services.leave import apply_leave, update_leave_status
from leave_service.services.user import InMemoryUserDirectory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_service.schemas.leave import LeaveRequestResponse

ALICE_ID = 2
UNKNOWN_USER_ID = 99

# Mon 6 Jan - Fri 10 Jan 2025: 5 working days.
WEEK_START = "2025-01-06"
WEEK_END = "2025-01-10"


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


def _payload(
    leave_type: str = "casual",
    start_date: str = WEEK_START,
    end_date: str = WEEK_END,
    reason: str | None = "Family trip",
) -> ApplyLeavePayload:
    return ApplyLeavePayload(leave_type=leave_type, start_date=start_date, end_date=end_date, reason=reason)


async def _apply(
    session: AsyncSession,
    users: InMemoryUserDirectory,
    user_id: int = ALICE_ID,
    **kwargs: str | None,
) -> LeaveRequestResponse:
    return await apply_leave(session, user_id, _payload(**kwargs), users)  # type: ignore[arg-type]


async def _decide(
    session: AsyncSession,
    users: InMemoryUserDirectory,
    leave_id: int,
    status: str,
    comment: str | None = None,
) -> LeaveRequestResponse:
    return await update_leave_status(
        session, leave_id, StatusUpdatePayload(status=status, admin_comments=comment), users
    )


async def _request_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(LeaveRequest))
    return int(result.scalar_one())


async def _balance_row(session: AsyncSession, user_id: int = ALICE_ID) -> LeaveBalance:
    result = await session.execute(
        select(LeaveBalance).where(col(LeaveBalance.user_id) == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# apply_leave: happy path
# ---------------------------------------------------------------------------


async def test_apply_creates_pending_request(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    leave = await _apply(db_session, users)

    assert leave.id > 0
    assert leave.user_id == ALICE_ID
    assert leave.leave_type == LeaveType.CASUAL
    assert leave.total_days == 5
    assert leave.status == LeaveStatus.PENDING
    assert leave.admin_comments is None
    assert leave.reason == "Family trip"


async def test_apply_snapshots_requester_details(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    leave = await _apply(db_session, users)

    assert leave.user_name == "Alice Johnson"
    assert leave.user_email == "alice@example.com"


async def test_apply_for_unknown_user_has_no_contact_details(
    db_session: AsyncSession, users: InMemoryUserDirectory
) -> None:
    leave = await _apply(db_session, users, user_id=UNKNOWN_USER_ID)

    assert leave.user_name is None
    assert leave.user_email is None


async def test_apply_does_not_touch_balance(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    await _apply(db_session, users)

    balance = await get_balance(db_session, ALICE_ID)
    assert balance.casual_taken == 0
    assert balance.casual_remaining == 12


async def test_apply_lazily_creates_balance(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    await _apply(db_session, users, leave_type="sick", start_date="2025-01-06", end_date="2025-01-07")

    balance = await _balance_row(db_session)
    assert balance.sick_allotted == 6
    assert balance.sick_taken == 0


@pytest.mark.parametrize("raw_type", ["CASUAL", "Casual", " casual "])
async def test_apply_accepts_leave_type_in_any_case(
    db_session: AsyncSession, users: InMemoryUserDirectory, raw_type: str
) -> None:
    leave = await _apply(db_session, users, leave_type=raw_type)
    assert leave.leave_type == LeaveType.CASUAL


async def test_apply_accepts_iso_datetimes(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    leave = await _apply(
        db_session, users, start_date="2025-01-06T00:00:00.000Z", end_date="2025-01-08T00:00:00.000Z"
    )

    assert leave.start_date.isoformat() == "2025-01-06"
    assert leave.end_date.isoformat() == "2025-01-08"
    assert leave.total_days == 3


async def test_apply_excludes_weekends_from_total(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    # Fri 10 Jan to Mon 13 Jan 2025.
    leave = await _apply(db_session, users, leave_type="annual", start_date="2025-01-10", end_date="2025-01-13")
    assert leave.total_days == 2


# ---------------------------------------------------------------------------
# apply_leave: validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("raw_type", ["vacation", "", "maternity"])
async def test_apply_rejects_unknown_leave_type(
    db_session: AsyncSession, users: InMemoryUserDirectory, raw_type: str
) -> None:
    payload = ApplyLeavePayload.model_construct(
        leave_type=raw_type, start_date=WEEK_START, end_date=WEEK_END, reason=None
    )
    with pytest.raises(InvalidInputError, match="leave type"):
        await apply_leave(db_session, ALICE_ID, payload, users)

    assert await _request_count(db_session) == 0


@pytest.mark.parametrize(
    ("start_date", "end_date"),
    [
        ("not-a-date", WEEK_END),
        (WEEK_START, "2025-13-01"),
        ("06/01/2025", WEEK_END),
        ("20250106", WEEK_END),
        ("2025-W02-1", WEEK_END),
        (WEEK_START, "2025-01-10junk"),
    ],
)
async def test_apply_rejects_unparseable_dates(
    db_session: AsyncSession, users: InMemoryUserDirectory, start_date: str, end_date: str
) -> None:
    with pytest.raises(InvalidInputError):
        await _apply(db_session, users, start_date=start_date, end_date=end_date)

    assert await _request_count(db_session) == 0


async def test_apply_rejects_start_after_end(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    with pytest.raises(InvalidInputError, match="Start date cannot be after end date"):
        await _apply(db_session, users, start_date=WEEK_END, end_date=WEEK_START)

    assert await _request_count(db_session) == 0


@pytest.mark.parametrize(
    ("start_date", "end_date"),
    [("2025-01-04", "2025-01-05"), ("2025-01-04", "2025-01-04"), ("2025-01-05", "2025-01-05")],
)
async def test_apply_rejects_weekend_only_range(
    db_session: AsyncSession, users: InMemoryUserDirectory, start_date: str, end_date: str
) -> None:
    with pytest.raises(InvalidInputError, match="at least 1 working day"):
        await _apply(db_session, users, start_date=start_date, end_date=end_date)

    assert await _request_count(db_session) == 0


async def test_apply_rejects_request_larger_than_allotment(
    db_session: AsyncSession, users: InMemoryUserDirectory
) -> None:
    # Mon 6 Jan - Fri 17 Jan 2025 is 10 working days; sick allotment is 6.
    with pytest.raises(InsufficientBalanceError, match="Insufficient sick leave"):
        await _apply(db_session, users, leave_type="sick", start_date="2025-01-06", end_date="2025-01-17")

    assert await _request_count(db_session) == 0


async def test_apply_uses_exactly_the_remaining_balance(
    db_session: AsyncSession, users: InMemoryUserDirectory
) -> None:
    # Mon 6 Jan - Mon 13 Jan 2025 is 6 working days, the whole sick allotment.
    leave = await _apply(db_session, users, leave_type="sick", start_date="2025-01-06", end_date="2025-01-13")
    assert leave.total_days == 6


async def test_apply_checks_against_taken_days(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    db_session.add(LeaveBalance(user_id=ALICE_ID, annual_taken=10))
    await db_session.commit()

    with pytest.raises(InsufficientBalanceError):
        await _apply(db_session, users, leave_type="annual")


# ---------------------------------------------------------------------------
# apply_leave: pending requests and the balance check
# ---------------------------------------------------------------------------


async def test_pending_days_count_against_balance(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    await _apply(db_session, users)

    # Mon 13 Jan - Wed 22 Jan 2025 is 8 working days; 5 are already pending.
    with pytest.raises(InsufficientBalanceError):
        await _apply(db_session, users, start_date="2025-01-13", end_date="2025-01-22")

    assert await _request_count(db_session) == 1


async def test_pending_days_of_other_types_do_not_count(
    db_session: AsyncSession, users: InMemoryUserDirectory
) -> None:
    await _apply(db_session, users, leave_type="annual")

    leave = await _apply(db_session, users, start_date="2025-01-13", end_date="2025-01-22")
    assert leave.total_days == 8


async def test_rejected_requests_release_pending_days(
    db_session: AsyncSession, users: InMemoryUserDirectory
) -> None:
    first = await _apply(db_session, users)
    await _decide(db_session, users, first.id, "rejected")

    leave = await _apply(db_session, users, start_date="2025-01-13", end_date="2025-01-22")
    assert leave.total_days == 8


async def test_check_only_policy_ignores_pending_days(
    db_session: AsyncSession, users: InMemoryUserDirectory
) -> None:
    config._settings = Settings(count_pending_against_balance=False)
    await _apply(db_session, users)

    leave = await _apply(db_session, users, start_date="2025-01-13", end_date="2025-01-22")

    assert leave.total_days == 8
    assert await _request_count(db_session) == 2


# ---------------------------------------------------------------------------
# update_leave_status
# ---------------------------------------------------------------------------


async def test_approve_credits_balance(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    leave = await _apply(db_session, users)

    approved = await _decide(db_session, users, leave.id, "approved", "Enjoy")

    assert approved.status == LeaveStatus.APPROVED
    assert approved.admin_comments == "Enjoy"
    assert approved.total_days == 5
    balance = await get_balance(db_session, ALICE_ID)
    assert balance.casual_taken == 5
    assert balance.casual_remaining == 7
    assert balance.sick_taken == 0
    assert balance.annual_taken == 0


async def test_reject_leaves_balance_unchanged(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    leave = await _apply(db_session, users, leave_type="annual")

    rejected = await _decide(db_session, users, leave.id, "rejected", "Busy quarter")

    assert rejected.status == LeaveStatus.REJECTED
    assert rejected.admin_comments == "Busy quarter"
    balance = await get_balance(db_session, ALICE_ID)
    assert balance.annual_taken == 0
    assert balance.annual_remaining == 12


async def test_decision_accepts_uppercase_status(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    leave = await _apply(db_session, users)
    approved = await _decide(db_session, users, leave.id, "APPROVED")
    assert approved.status == LeaveStatus.APPROVED


async def test_decision_on_unknown_leave_raises_not_found(
    db_session: AsyncSession, users: InMemoryUserDirectory
) -> None:
    with pytest.raises(NotFoundError):
        await _decide(db_session, users, 12345, "approved")


@pytest.mark.parametrize("status", ["pending", "cancelled", ""])
async def test_decision_rejects_invalid_status(
    db_session: AsyncSession, users: InMemoryUserDirectory, status: str
) -> None:
    leave = await _apply(db_session, users)

    with pytest.raises(InvalidInputError):
        await _decide(db_session, users, leave.id, status)

    row = await db_session.get(LeaveRequest, leave.id)
    assert row is not None
    assert row.status == LeaveStatus.PENDING.value


@pytest.mark.parametrize(
    ("first", "second"),
    [("approved", "approved"), ("approved", "rejected"), ("rejected", "approved")],
)
async def test_second_decision_raises_invalid_state(
    db_session: AsyncSession, users: InMemoryUserDirectory, first: str, second: str
) -> None:
    leave = await _apply(db_session, users)
    decided = await _decide(db_session, users, leave.id, first, "first call")

    with pytest.raises(InvalidStateError):
        await _decide(db_session, users, leave.id, second, "second call")

    row = await db_session.get(LeaveRequest, leave.id)
    assert row is not None
    assert row.status == decided.status.value
    assert row.admin_comment == "first call"
    balance = await _balance_row(db_session)
    assert balance.casual_taken == (5 if first == "approved" else 0)


async def test_approval_credits_stored_total_days(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    leave = await _apply(db_session, users)

    row = await db_session.get(LeaveRequest, leave.id)
    assert row is not None
    row.total_days = 2
    await db_session.commit()

    await _decide(db_session, users, leave.id, "approved")

    balance = await _balance_row(db_session)
    assert balance.casual_taken == 2


async def test_approval_recreates_missing_balance(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    leave = await _apply(db_session, users, leave_type="sick", start_date="2025-01-06", end_date="2025-01-06")
    balance = await _balance_row(db_session)
    await db_session.delete(balance)
    await db_session.commit()

    await _decide(db_session, users, leave.id, "approved")

    balance = await _balance_row(db_session)
    assert balance.sick_taken == 1


async def test_decision_losing_race_raises_invalid_state(
    db_session: AsyncSession,
    users: InMemoryUserDirectory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A caller that read the request as pending before another decision landed must not credit again."""
    leave = await _apply(db_session, users)
    await _decide(db_session, users, leave.id, "approved")

    stale = LeaveRequest(
        id=leave.id,
        user_id=ALICE_ID,
        leave_type=LeaveType.CASUAL.value,
        start_date=leave.start_date,
        end_date=leave.end_date,
        total_days=leave.total_days,
        status=LeaveStatus.PENDING.value,
    )

    async def _stale_read(session: AsyncSession, leave_id: int) -> LeaveRequest:
        return stale

    monkeypatch.setattr("leave_service.services.leave.get_leave_or_404", _stale_read)

    with pytest.raises(InvalidStateError, match="already been processed"):
        await _decide(db_session, users, leave.id, "rejected")

    row = await db_session.execute(
        select(LeaveRequest).where(col(LeaveRequest.id) == leave.id).execution_options(populate_existing=True)
    )
    assert row.scalar_one().status == LeaveStatus.APPROVED.value
    balance = await _balance_row(db_session)
    assert balance.casual_taken == 5


# ---------------------------------------------------------------------------
# End-to-end scenario
# ---------------------------------------------------------------------------


async def test_apply_approve_reapprove_scenario(db_session: AsyncSession, users: InMemoryUserDirectory) -> None:
    first = await _apply(db_session, users)
    assert first.total_days == 5
    assert first.status == LeaveStatus.PENDING
    assert (await get_balance(db_session, ALICE_ID)).casual_remaining == 12

    with pytest.raises(InsufficientBalanceError):
        await _apply(db_session, users, start_date="2025-01-13", end_date="2025-01-22")

    await _decide(db_session, users, first.id, "approved")
    balance = await get_balance(db_session, ALICE_ID)
    assert balance.casual_taken == 5
    assert balance.casual_remaining == 7

    with pytest.raises(InvalidStateError):
        await _decide(db_session, users, first.id, "approved")
