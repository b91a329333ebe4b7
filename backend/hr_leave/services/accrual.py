"""Accrual engine: scheduled accruals, year-end top-ups, initial allocations and manual adjustments."""

# ruff: noqa: TC003
from __future__ import annotations

import calendar
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Literal

from hr_leave.config import get_settings
from hr_leave.exceptions import ConflictError, NotFoundError
from hr_leave.models.base import ZERO_DAYS
from hr_leave.models.enums import AccrualFrequency, BalanceChangeType, EmploymentStatus
from hr_leave.schemas.accrual import AccrualScheduleItem, AccrualScheduleResponse
from hr_leave.schemas.balance import BalanceListResponse, HistoryEntryResponse
from hr_leave.services import ledger
from hr_leave.services.assignment import list_active_assignments
from hr_leave.services.clock import get_clock
from hr_leave.services.employee import get_employee_directory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_leave.models.assignment import EmployeePolicyAssignment
    from hr_leave.models.policy import LeavePolicy
    from hr_leave.schemas.auth import AuthorizationContext
    from hr_leave.schemas.balance import CreateAdjustmentRequest
    from hr_leave.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)

MonthlyAccrualMode = Literal["calendar", "fixed_28_days"]

# Minimum days between two accruals, per frequency.
_ACCRUAL_INTERVAL_DAYS: dict[AccrualFrequency, int] = {
    AccrualFrequency.WEEKLY: 7,
    AccrualFrequency.BIWEEKLY: 14,
    AccrualFrequency.MONTHLY: 28,
    AccrualFrequency.QUARTERLY: 90,
    AccrualFrequency.ANNUALLY: 365,
}

YEAR_END_REASON = "year_end_adjustment"
INITIAL_ALLOCATION_REASON = "initial_allocation"

# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass
class AccrualRunResult:
    """Partial-failure report of an accrual batch."""

    as_of: date
    processed_count: int = 0
    total_accrued: Decimal = ZERO_DAYS
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.processed_count > 0 or not self.errors


@dataclass
class EmployeeAccrualResult:
    """Accruals posted for one employee; per-policy failures are collected, not raised."""

    employee_id: uuid.UUID
    as_of: date
    total_accrued: Decimal = ZERO_DAYS
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end, ignoring the day of month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _monthly_mode(mode: MonthlyAccrualMode | None) -> MonthlyAccrualMode:
    return mode if mode is not None else get_settings().monthly_accrual_mode


def calculate_next_accrual_date(
    frequency: AccrualFrequency,
    last_accrual_date: date | None,
    from_date: date,
    *,
    monthly_mode: MonthlyAccrualMode | None = None,
) -> date:
    """First date on which the next accrual becomes due."""
    if last_accrual_date is None:
        return from_date
    if frequency == AccrualFrequency.MONTHLY and _monthly_mode(monthly_mode) == "calendar":
        return add_months(last_accrual_date, 1)
    return last_accrual_date + timedelta(days=_ACCRUAL_INTERVAL_DAYS[AccrualFrequency(frequency)])


def is_accrual_due(
    frequency: AccrualFrequency,
    last_accrual_date: date | None,
    now: date,
    *,
    monthly_mode: MonthlyAccrualMode | None = None,
) -> bool:
    """Whether enough time has passed since the last accrual.

    With no previous accrual the first one is always due. Monthly
    accruals are due a calendar month later, or after 28 days in
    ``fixed_28_days`` mode.
    """
    if last_accrual_date is None:
        return True
    return now >= calculate_next_accrual_date(frequency, last_accrual_date, now, monthly_mode=monthly_mode)


def calculate_prorated_allocation(annual_allocation: Decimal, start_date: date, year: int) -> Decimal:
    """Share of an annual allocation for the part of ``year`` from start_date to Dec 31.

    Starting on or before Jan 1 yields the full allocation; starting after
    the year yields zero.
    """
    year_start = date(year, 1, 1)
    year_end = date(year, 12, 31)
    if start_date > year_end:
        return ZERO_DAYS
    effective_start = max(start_date, year_start)
    total_days = (year_end - year_start).days + 1
    remaining_days = (year_end - effective_start).days + 1
    return ledger.quantize_days(Decimal(annual_allocation) * remaining_days / total_days)


def _apply_max_balance(entitlement: Decimal, amount: Decimal, max_balance: Decimal | None) -> Decimal:
    """Clamp an accrual so allocated + carried over does not exceed max_balance."""
    if max_balance is None:
        return amount
    headroom = max_balance - entitlement
    if headroom <= 0:
        return ZERO_DAYS
    return min(amount, headroom)


def _build_accrual_key(employee_id: uuid.UUID, leave_type_id: uuid.UUID, as_of: date) -> str:
    return f"accrual:{employee_id}:{leave_type_id}:{as_of.isoformat()}"


def _build_year_end_key(employee_id: uuid.UUID, leave_type_id: uuid.UUID, year: int) -> str:
    return f"year_end:{employee_id}:{leave_type_id}:{year}"


def _build_initial_key(employee_id: uuid.UUID, leave_type_id: uuid.UUID, year: int) -> str:
    return f"initial:{employee_id}:{leave_type_id}:{year}"


# ---------------------------------------------------------------------------
# DB-backed helpers
# ---------------------------------------------------------------------------


@dataclass
class _AssignmentInfo:
    """Lightweight carrier for assignment + policy fields.

    Copied out of the ORM rows so a rollback of one unit of work does not
    expire the data the batch loop still needs.
    """

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    policy_id: uuid.UUID
    policy_name: str
    effective_date: date
    target_allocation: Decimal
    accrual_rate: Decimal
    accrual_frequency: AccrualFrequency
    max_balance: Decimal | None
    probation_period_months: int

    @classmethod
    def from_rows(cls, assignment: EmployeePolicyAssignment, policy: LeavePolicy) -> _AssignmentInfo:
        target = assignment.custom_allocation if assignment.custom_allocation is not None else policy.annual_allocation
        return cls(
            employee_id=assignment.employee_id,
            leave_type_id=assignment.leave_type_id,
            policy_id=policy.id,
            policy_name=policy.name,
            effective_date=assignment.effective_date,
            target_allocation=target,
            accrual_rate=policy.accrual_rate,
            accrual_frequency=AccrualFrequency(policy.accrual_frequency),
            max_balance=policy.max_balance,
            probation_period_months=policy.probation_period_months,
        )


async def _load_assignments(
    session: AsyncSession,
    on_date: date,
    employee_id: uuid.UUID | None = None,
) -> list[_AssignmentInfo]:
    rows = await list_active_assignments(session, on_date, employee_id=employee_id)
    return [_AssignmentInfo.from_rows(assignment, policy) for assignment, policy in rows]


async def _accrue_assignment(
    session: AsyncSession,
    info: _AssignmentInfo,
    employee: EmployeeInfo,
    as_of: date,
) -> Decimal:
    """Post one period's accrual for an assignment. Returns the days accrued."""
    if months_between(employee.hire_date, as_of) < info.probation_period_months:
        return ZERO_DAYS

    balance = await ledger.get_balance(session, info.employee_id, info.leave_type_id, as_of.year)
    last_accrual_date = balance.last_accrual_date if balance is not None else None
    if not is_accrual_due(info.accrual_frequency, last_accrual_date, as_of):
        return ZERO_DAYS
    if info.accrual_rate <= 0:
        return ZERO_DAYS

    entitlement = ZERO_DAYS
    if balance is not None:
        entitlement = balance.allocated_days + balance.carried_over_days
    amount = _apply_max_balance(entitlement, info.accrual_rate, info.max_balance)

    accrued = ZERO_DAYS
    if amount > 0:
        entry = await ledger.mutate(
            session,
            info.employee_id,
            info.leave_type_id,
            ledger.BalanceChange(
                change_type=BalanceChangeType.ACCRUAL,
                amount=amount,
                reason=f"{info.accrual_frequency.value}_accrual",
                effective_date=as_of,
                idempotency_key=_build_accrual_key(info.employee_id, info.leave_type_id, as_of),
            ),
        )
        if entry is not None:
            accrued = entry.amount

    locked = await ledger.lock_balance(session, info.employee_id, info.leave_type_id, as_of.year)
    locked.last_accrual_date = as_of
    await session.flush()
    return accrued


# ---------------------------------------------------------------------------
# Scheduled accrual orchestration
# ---------------------------------------------------------------------------


async def process_employee_accruals(
    session: AsyncSession,
    employee_id: uuid.UUID,
    as_of: date | None = None,
) -> EmployeeAccrualResult:
    """Accrue every active assignment of one employee.

    Each assignment is committed on its own; a failure rolls back only that
    assignment and is reported in ``errors``.
    """
    if as_of is None:
        as_of = get_clock().today()

    result = EmployeeAccrualResult(employee_id=employee_id, as_of=as_of)
    employee = await get_employee_directory().get_employee(employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    if not employee.is_active:
        return result

    for info in await _load_assignments(session, as_of, employee_id):
        try:
            accrued = await _accrue_assignment(session, info, employee, as_of)
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.exception(
                "Error processing accrual for employee=%s policy=%s",
                employee_id,
                info.policy_id,
            )
            result.errors.append(f"Employee {employee_id}, policy {info.policy_name}: {exc}")
            continue
        result.total_accrued += accrued

    return result


async def process_scheduled_accruals(session: AsyncSession, as_of: date | None = None) -> AccrualRunResult:
    """Run due accruals for every active employee."""
    if as_of is None:
        as_of = get_clock().today()

    result = AccrualRunResult(as_of=as_of)
    employees = await get_employee_directory().list_employees(EmploymentStatus.ACTIVE)

    for employee in employees:
        try:
            employee_result = await process_employee_accruals(session, employee.id, as_of)
        except Exception as exc:
            await session.rollback()
            logger.exception("Error processing accruals for employee=%s", employee.id)
            result.errors.append(f"Employee {employee.id}: {exc}")
            continue
        result.errors.extend(employee_result.errors)
        if employee_result.total_accrued > 0:
            result.processed_count += 1
            result.total_accrued += employee_result.total_accrued

    logger.info(
        "Scheduled accruals for %s: processed=%d accrued=%s errors=%d",
        as_of,
        result.processed_count,
        result.total_accrued,
        len(result.errors),
    )
    return result


async def process_year_end_accruals(session: AsyncSession, year: int) -> AccrualRunResult:
    """Top up annually-accruing balances to their full target for ``year``.

    Covers employees hired by Dec 31 who are not terminated. The shortfall
    ``target - allocated`` is posted as an accrual; re-running is a no-op.
    """
    year_end = date(year, 12, 31)
    result = AccrualRunResult(as_of=year_end)

    employees = [
        e
        for e in await get_employee_directory().list_employees()
        if e.hire_date <= year_end and e.employment_status != EmploymentStatus.TERMINATED
    ]

    for employee in employees:
        topped_up = ZERO_DAYS
        for info in await _load_assignments(session, year_end, employee.id):
            if info.accrual_frequency != AccrualFrequency.ANNUALLY:
                continue
            try:
                balance = await ledger.get_balance(session, employee.id, info.leave_type_id, year)
                allocated = balance.allocated_days if balance is not None else ZERO_DAYS
                shortfall = info.target_allocation - allocated
                if shortfall <= 0:
                    continue
                entry = await ledger.mutate(
                    session,
                    employee.id,
                    info.leave_type_id,
                    ledger.BalanceChange(
                        change_type=BalanceChangeType.ACCRUAL,
                        amount=shortfall,
                        reason=YEAR_END_REASON,
                        effective_date=year_end,
                        idempotency_key=_build_year_end_key(employee.id, info.leave_type_id, year),
                    ),
                )
                await session.commit()
            except Exception as exc:
                await session.rollback()
                logger.exception("Error processing year-end accrual for employee=%s policy=%s", employee.id, info.policy_id)
                result.errors.append(f"Employee {employee.id}, policy {info.policy_name}: {exc}")
                continue
            if entry is not None:
                topped_up += entry.amount

        if topped_up > 0:
            result.processed_count += 1
            result.total_accrued += topped_up

    logger.info(
        "Year-end accruals for %d: processed=%d accrued=%s errors=%d",
        year,
        result.processed_count,
        result.total_accrued,
        len(result.errors),
    )
    return result


# ---------------------------------------------------------------------------
# Initial allocation and manual adjustments
# ---------------------------------------------------------------------------


async def initialize_employee_balances(
    session: AsyncSession,
    employee_id: uuid.UUID,
    effective_date: date | None = None,
) -> BalanceListResponse:
    """Post the prorated allocation of each active assignment for the year of effective_date.

    Proration starts at the later of the hire date and the assignment's
    effective date. Already initialised balances are left untouched.
    """
    if effective_date is None:
        effective_date = get_clock().today()
    year = effective_date.year

    employee = await get_employee_directory().get_employee(employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")

    for info in await _load_assignments(session, effective_date, employee_id):
        start = max(employee.hire_date, info.effective_date)
        amount = calculate_prorated_allocation(info.target_allocation, start, year)
        if amount <= 0:
            continue
        await ledger.mutate(
            session,
            employee_id,
            info.leave_type_id,
            ledger.BalanceChange(
                change_type=BalanceChangeType.ACCRUAL,
                amount=amount,
                reason=INITIAL_ALLOCATION_REASON,
                effective_date=max(start, date(year, 1, 1)),
                idempotency_key=_build_initial_key(employee_id, info.leave_type_id, year),
            ),
        )

    await session.commit()
    return await ledger.list_employee_balances(session, employee_id, year)


async def apply_manual_adjustment(
    session: AsyncSession,
    auth: AuthorizationContext,
    payload: CreateAdjustmentRequest,
) -> HistoryEntryResponse:
    """Post an administrative adjustment. Negative amounts may leave the balance below zero."""
    employee = await get_employee_directory().get_employee(payload.employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")

    entry = await ledger.mutate(
        session,
        payload.employee_id,
        payload.leave_type_id,
        ledger.BalanceChange(
            change_type=BalanceChangeType.ADJUSTMENT,
            amount=payload.amount,
            reason=payload.reason,
            effective_date=payload.effective_date or get_clock().today(),
            created_by=auth.user_id,
        ),
    )
    if entry is None:
        raise ConflictError("Adjustment was already applied")
    await session.commit()
    logger.info(
        "Manual adjustment of %s days for employee=%s leave_type=%s by %s",
        payload.amount,
        payload.employee_id,
        payload.leave_type_id,
        auth.user_id,
    )
    return HistoryEntryResponse.model_validate(entry)


async def get_accrual_schedule(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    as_of: date | None = None,
) -> AccrualScheduleResponse:
    """Next expected accrual date for each active assignment with a positive rate."""
    if as_of is None:
        as_of = get_clock().today()

    items: list[AccrualScheduleItem] = []
    for info in await _load_assignments(session, as_of, employee_id):
        if info.accrual_rate <= 0:
            continue
        balance = await ledger.get_balance(session, info.employee_id, info.leave_type_id, as_of.year)
        last_accrual_date = balance.last_accrual_date if balance is not None else None
        items.append(
            AccrualScheduleItem(
                employee_id=info.employee_id,
                leave_type_id=info.leave_type_id,
                policy_id=info.policy_id,
                accrual_frequency=info.accrual_frequency,
                accrual_rate=info.accrual_rate,
                last_accrual_date=last_accrual_date,
                next_accrual_date=calculate_next_accrual_date(info.accrual_frequency, last_accrual_date, as_of),
            )
        )
    return AccrualScheduleResponse(items=items, total=len(items))
