from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlmodel import col

from leave_service.config import get_settings
from leave_service.exceptions import NotFoundError
from leave_service.models.balance import LeaveBalance
from leave_service.models.enums import LeaveType
from leave_service.schemas.leave import LeaveBalanceResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def build_balance_response(balance: LeaveBalance) -> LeaveBalanceResponse:
    """Map a balance row to its response schema, deriving remaining days."""
    return LeaveBalanceResponse(
        user_id=balance.user_id,
        casual_leaves=balance.casual_allotted,
        sick_leaves=balance.sick_allotted,
        annual_leaves=balance.annual_allotted,
        casual_taken=balance.casual_taken,
        sick_taken=balance.sick_taken,
        annual_taken=balance.annual_taken,
        casual_remaining=remaining(balance, LeaveType.CASUAL),
        sick_remaining=remaining(balance, LeaveType.SICK),
        annual_remaining=remaining(balance, LeaveType.ANNUAL),
    )


def remaining(balance: LeaveBalance, leave_type: LeaveType) -> int:
    """Allotted minus taken days for one leave type."""
    return balance.allotted(leave_type) - balance.taken(leave_type)


async def ensure_balance(session: AsyncSession, user_id: int) -> LeaveBalance:
    """Return the user's balance row, creating it with default allotments if absent.

    The new row is flushed but not committed; the caller owns the transaction.
    """
    result = await session.execute(select(LeaveBalance).where(col(LeaveBalance.user_id) == user_id))
    balance = result.scalar_one_or_none()

    if balance is None:
        settings = get_settings()
        balance = LeaveBalance(
            user_id=user_id,
            casual_allotted=settings.default_casual_days,
            sick_allotted=settings.default_sick_days,
            annual_allotted=settings.default_annual_days,
            casual_taken=0,
            sick_taken=0,
            annual_taken=0,
        )
        session.add(balance)
        await session.flush()
        logger.info("Initialised leave balance for user=%s", user_id)

    return balance


async def credit_balance(session: AsyncSession, user_id: int, leave_type: LeaveType, days: int) -> None:
    """Add days to the taken counter of leave_type with a single in-database increment.

    Raises NotFoundError when the user has no balance row; call ensure_balance first.
    """
    taken_column = getattr(LeaveBalance, f"{leave_type.value}_taken")
    result = await session.execute(
        update(LeaveBalance)
        .where(col(LeaveBalance.user_id) == user_id)
        .values({taken_column: taken_column + days})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"Leave balance not found for user {user_id}")

    # The increment bypassed the identity map; drop any cached copy.
    cached = await session.get(LeaveBalance, user_id)
    if cached is not None:
        await session.refresh(cached)


async def get_balance(session: AsyncSession, user_id: int) -> LeaveBalanceResponse:
    """Read a user's balance, creating the default row on first access."""
    balance = await ensure_balance(session, user_id)
    await session.commit()
    return build_balance_response(balance)


async def reset_balance(session: AsyncSession, user_id: int) -> LeaveBalanceResponse:
    """Restore default allotments and clear taken days for a user."""
    settings = get_settings()
    balance = await ensure_balance(session, user_id)

    balance.casual_allotted = settings.default_casual_days
    balance.sick_allotted = settings.default_sick_days
    balance.annual_allotted = settings.default_annual_days
    balance.casual_taken = 0
    balance.sick_taken = 0
    balance.annual_taken = 0

    await session.commit()
    await session.refresh(balance)
    logger.info("Reset leave balance for user=%s", user_id)
    return build_balance_response(balance)
