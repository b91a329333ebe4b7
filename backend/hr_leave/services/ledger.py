"""Balance ledger: the only writer of LeaveBalance rows and accrual history.

Every mutation is a locked read-modify-write on the balance row for
(employee, leave type, policy year), performed inside the caller's
transaction. Callers commit.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import col

from hr_leave.exceptions import NotFoundError, ValidationError
from hr_leave.models.balance import LeaveBalance
from hr_leave.models.base import ZERO_DAYS
from hr_leave.models.enums import BalanceChangeType
from hr_leave.models.history import AccrualHistoryEntry
from hr_leave.models.leave_type import LeaveType
from hr_leave.schemas.balance import (
    BalanceListResponse,
    BalanceResponse,
    HistoryEntryResponse,
    HistoryListResponse,
)
from hr_leave.services.clock import get_clock

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")

# Change types that add to the entitlement (allocated + carried over).
ENTITLEMENT_CHANGE_TYPES = frozenset(
    {BalanceChangeType.ACCRUAL, BalanceChangeType.ADJUSTMENT, BalanceChangeType.CARRYOVER}
)


def quantize_days(value: Decimal | int | float) -> Decimal:
    """Round a day count to two decimal places."""
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class BalanceChange:
    """A single historised balance mutation.

    ``effective_date`` selects the policy year and becomes the history
    entry date. ``amount`` is signed.
    """

    change_type: BalanceChangeType
    amount: Decimal
    reason: str
    effective_date: date
    idempotency_key: str | None = None
    created_by: uuid.UUID | None = None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _touch(balance: LeaveBalance) -> None:
    """Recompute the derived available figure and bump the row version."""
    balance.available_days = (
        balance.allocated_days + balance.carried_over_days - balance.used_days - balance.pending_days
    )
    balance.version += 1
    balance.updated_at = get_clock().now()


async def _ensure_leave_type(session: AsyncSession, leave_type_id: uuid.UUID) -> None:
    if await session.get(LeaveType, leave_type_id) is None:
        raise NotFoundError("Leave type not found")


async def _history_key_exists(session: AsyncSession, idempotency_key: str) -> bool:
    result = await session.execute(
        select(AccrualHistoryEntry.id).where(col(AccrualHistoryEntry.idempotency_key) == idempotency_key)
    )
    return result.first() is not None


async def lock_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    policy_year: int,
) -> LeaveBalance:
    """Return the balance row with a FOR UPDATE lock, creating a zero row if absent.

    The insert is ``ON CONFLICT DO NOTHING`` so two transactions creating the
    same row concurrently both end up locking the single surviving row.
    """
    values = {
        "employee_id": employee_id,
        "leave_type_id": leave_type_id,
        "policy_year": policy_year,
        "allocated_days": ZERO_DAYS,
        "used_days": ZERO_DAYS,
        "pending_days": ZERO_DAYS,
        "carried_over_days": ZERO_DAYS,
        "available_days": ZERO_DAYS,
        "version": 1,
        "updated_at": get_clock().now(),
    }
    key_columns = ["employee_id", "leave_type_id", "policy_year"]

    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        await session.execute(pg_insert(LeaveBalance).values(**values).on_conflict_do_nothing(index_elements=key_columns))
    elif dialect == "sqlite":
        await session.execute(
            sqlite_insert(LeaveBalance).values(**values).on_conflict_do_nothing(index_elements=key_columns)
        )
    elif await get_balance(session, employee_id, leave_type_id, policy_year) is None:
        session.add(LeaveBalance(**values))
        await session.flush()

    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type_id) == leave_type_id,
            col(LeaveBalance.policy_year) == policy_year,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def mutate(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    change: BalanceChange,
) -> AccrualHistoryEntry | None:
    """Apply a historised change to a balance.

    accrual and adjustment move ``allocated_days``, carryover moves
    ``carried_over_days`` and usage moves ``used_days``. Exactly one history
    entry is appended. Returns None when ``change.idempotency_key`` was
    already applied.
    """
    await _ensure_leave_type(session, leave_type_id)
    amount = quantize_days(change.amount)
    balance = await lock_balance(session, employee_id, leave_type_id, change.effective_date.year)

    if change.idempotency_key is not None and await _history_key_exists(session, change.idempotency_key):
        logger.debug("Skipping already applied balance change %s", change.idempotency_key)
        return None

    before = balance.available_days
    if change.change_type in (BalanceChangeType.ACCRUAL, BalanceChangeType.ADJUSTMENT):
        balance.allocated_days += amount
    elif change.change_type == BalanceChangeType.CARRYOVER:
        if balance.carried_over_days + amount < 0:
            raise ValidationError("Carried-over days cannot become negative")
        balance.carried_over_days += amount
    else:
        if balance.used_days + amount < 0:
            raise ValidationError("Used days cannot become negative")
        balance.used_days += amount
    _touch(balance)

    entry = AccrualHistoryEntry(
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        policy_year=balance.policy_year,
        change_type=change.change_type.value,
        entry_date=change.effective_date,
        amount=amount,
        balance_before=before,
        balance_after=balance.available_days,
        reason=change.reason,
        idempotency_key=change.idempotency_key,
        created_by=change.created_by,
    )
    session.add(entry)
    await session.flush()
    return entry


async def reserve_pending(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    policy_year: int,
    days: Decimal,
) -> LeaveBalance:
    """Hold days for a pending request. Not historised.

    Sufficiency is re-checked under the row lock, so two concurrent
    submissions cannot both spend the same days.
    """
    days = quantize_days(days)
    if days < 0:
        raise ValidationError("Cannot reserve a negative number of days")
    await _ensure_leave_type(session, leave_type_id)
    balance = await lock_balance(session, employee_id, leave_type_id, policy_year)
    if balance.available_days < days:
        available = max(ZERO_DAYS, balance.available_days)
        raise ValidationError(f"Insufficient leave balance. Available: {available} days, Requested: {days} days")
    balance.pending_days += days
    _touch(balance)
    await session.flush()
    return balance


async def release_pending(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    policy_year: int,
    days: Decimal,
) -> LeaveBalance:
    """Return held days to the available pool. Not historised."""
    days = quantize_days(days)
    await _ensure_leave_type(session, leave_type_id)
    balance = await lock_balance(session, employee_id, leave_type_id, policy_year)
    if days < 0 or balance.pending_days < days:
        raise ValidationError(f"Cannot release {days} pending days; only {balance.pending_days} reserved")
    balance.pending_days -= days
    _touch(balance)
    await session.flush()
    return balance


async def commit_pending_to_usage(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    days: Decimal,
    *,
    effective_date: date,
    reason: str,
    created_by: uuid.UUID | None = None,
) -> AccrualHistoryEntry | None:
    """Convert a reservation into used days (request approval)."""
    await release_pending(session, employee_id, leave_type_id, effective_date.year, days)
    return await mutate(
        session,
        employee_id,
        leave_type_id,
        BalanceChange(
            change_type=BalanceChangeType.USAGE,
            amount=days,
            reason=reason,
            effective_date=effective_date,
            created_by=created_by,
        ),
    )


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    policy_year: int,
) -> LeaveBalance | None:
    """Fetch a balance row without locking it."""
    result = await session.execute(
        select(LeaveBalance).where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type_id) == leave_type_id,
            col(LeaveBalance.policy_year) == policy_year,
        )
    )
    return result.scalar_one_or_none()


async def get_available_days(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    policy_year: int,
) -> Decimal:
    """Available days floored at zero; zero when no balance row exists."""
    balance = await get_balance(session, employee_id, leave_type_id, policy_year)
    if balance is None:
        return ZERO_DAYS
    return max(ZERO_DAYS, balance.available_days)


async def list_employee_balances(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_year: int,
) -> BalanceListResponse:
    """All leave-type balances of an employee for a year."""
    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.policy_year) == policy_year,
        )
        .order_by(col(LeaveBalance.leave_type_id))
    )
    items = [BalanceResponse.model_validate(b) for b in result.scalars().all()]
    return BalanceListResponse(items=items, total=len(items))


async def get_balance_history(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID | None = None,
    policy_year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> HistoryListResponse:
    """Paginated accrual history, newest first."""
    base_filter = [col(AccrualHistoryEntry.employee_id) == employee_id]
    if leave_type_id is not None:
        base_filter.append(col(AccrualHistoryEntry.leave_type_id) == leave_type_id)
    if policy_year is not None:
        base_filter.append(col(AccrualHistoryEntry.policy_year) == policy_year)

    count_result = await session.execute(select(func.count()).select_from(AccrualHistoryEntry).where(*base_filter))
    total = count_result.scalar_one()

    entries_result = await session.execute(
        select(AccrualHistoryEntry)
        .where(*base_filter)
        .order_by(
            col(AccrualHistoryEntry.entry_date).desc(),
            col(AccrualHistoryEntry.created_at).desc(),
        )
        .offset(offset)
        .limit(limit)
    )
    items = [HistoryEntryResponse.model_validate(e) for e in entries_result.scalars().all()]
    return HistoryListResponse(items=items, total=total)
