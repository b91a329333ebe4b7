"""Leave request validation.

Checks run in a fixed order and accumulate: a caller gets every error and
warning for a request in one pass instead of fixing them one at a time.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from hr_leave.models.base import ZERO_DAYS
from hr_leave.models.enums import RequestStatus
from hr_leave.models.leave_type import LeaveType
from hr_leave.models.request import LeaveRequest
from hr_leave.schemas.request import ValidationResultResponse
from hr_leave.services import ledger
from hr_leave.services.accrual import add_months, months_between
from hr_leave.services.assignment import get_active_assignment
from hr_leave.services.clock import get_clock
from hr_leave.services.duration import count_leave_days, ranges_overlap
from hr_leave.services.employee import get_employee_directory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_leave.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)

# Statuses that hold a claim on the calendar.
ACTIVE_REQUEST_STATUSES = (RequestStatus.PENDING.value, RequestStatus.APPROVED.value)

LOW_BALANCE_WARNING_DAYS = Decimal(2)
TEAM_ABSENCE_WARNING_RATIO = Decimal("0.5")


@dataclass
class ValidationResult:
    """Accumulated outcome of validating one request."""

    total_days: Decimal = ZERO_DAYS
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_response(self) -> ValidationResultResponse:
        return ValidationResultResponse(
            is_valid=self.is_valid,
            errors=list(self.errors),
            warnings=list(self.warnings),
            total_days=self.total_days,
        )


# ---------------------------------------------------------------------------
# Blackout rules
# ---------------------------------------------------------------------------

BlackoutRule = Callable[[LeaveType, date, date], list[str]]


def _touches_december(start_date: date, end_date: date) -> bool:
    return any(
        ranges_overlap(start_date, end_date, date(year, 12, 1), date(year, 12, 31))
        for year in range(start_date.year, end_date.year + 1)
    )


def december_annual_leave_rule(leave_type: LeaveType, start_date: date, end_date: date) -> list[str]:
    """Annual leave touching December needs special approval."""
    if "annual" in leave_type.name.lower() and _touches_december(start_date, end_date):
        return ["Annual leave during December may require special approval due to business requirements"]
    return []


_blackout_rules: list[BlackoutRule] = [december_annual_leave_rule]


def get_blackout_rules() -> list[BlackoutRule]:
    """Return the active blackout rules."""
    return list(_blackout_rules)


def set_blackout_rules(rules: list[BlackoutRule]) -> None:
    """Replace the blackout rules (for testing or production wiring)."""
    global _blackout_rules
    _blackout_rules = list(rules)


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def _check_dates(start_date: date, end_date: date, today: date, result: ValidationResult) -> None:
    if start_date > end_date:
        result.errors.append("Start date must be before or equal to end date")
    if start_date < today:
        result.errors.append("Leave cannot be requested for past dates")
    if start_date > add_months(today, 12):
        result.warnings.append("Leave request is more than one year in advance")


async def _check_probation(
    session: AsyncSession,
    employee: EmployeeInfo,
    leave_type: LeaveType,
    start_date: date,
    today: date,
    result: ValidationResult,
) -> None:
    active = await get_active_assignment(session, employee.id, leave_type.id, start_date)
    if active is None:
        return
    _, policy = active
    months_since_hire = months_between(employee.hire_date, today)
    if months_since_hire < policy.probation_period_months:
        remaining = policy.probation_period_months - months_since_hire
        result.errors.append(
            f"Employee is still in probation period. {remaining} months remaining before eligible for {leave_type.name}"
        )


async def _check_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    start_date: date,
    exclude_request_id: uuid.UUID | None,
    result: ValidationResult,
) -> None:
    year = start_date.year
    balance = await ledger.get_balance(session, employee_id, leave_type_id, year)
    available = balance.available_days if balance is not None else ZERO_DAYS

    # A pending request being re-validated already holds its own days.
    if exclude_request_id is not None:
        own = await session.get(LeaveRequest, exclude_request_id)
        if (
            own is not None
            and own.status == RequestStatus.PENDING
            and own.employee_id == employee_id
            and own.leave_type_id == leave_type_id
            and own.start_date.year == year
        ):
            available += own.total_days

    available = max(ZERO_DAYS, available)
    if available < result.total_days:
        result.errors.append(
            f"Insufficient leave balance. Available: {available} days, Requested: {result.total_days} days"
        )
    elif available - result.total_days < LOW_BALANCE_WARNING_DAYS:
        result.warnings.append(f"This request will leave you with only {available - result.total_days} days remaining")


async def find_conflicting_requests(
    session: AsyncSession,
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_request_id: uuid.UUID | None = None,
) -> list[LeaveRequest]:
    """Pending or approved requests of the employee overlapping [start_date, end_date] inclusive."""
    query = (
        select(LeaveRequest)
        .where(
            col(LeaveRequest.employee_id) == employee_id,
            col(LeaveRequest.status).in_(ACTIVE_REQUEST_STATUSES),
            col(LeaveRequest.start_date) <= end_date,
            col(LeaveRequest.end_date) >= start_date,
        )
        .order_by(col(LeaveRequest.start_date))
    )
    if exclude_request_id is not None:
        query = query.where(col(LeaveRequest.id) != exclude_request_id)
    result = await session.execute(query)
    return list(result.scalars().all())


async def _check_conflicts(
    session: AsyncSession,
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_request_id: uuid.UUID | None,
    result: ValidationResult,
) -> None:
    conflicts = await find_conflicting_requests(session, employee_id, start_date, end_date, exclude_request_id)
    if not conflicts:
        return
    descriptions = []
    for request in conflicts:
        leave_type = await session.get(LeaveType, request.leave_type_id)
        name = leave_type.name if leave_type is not None else "Leave"
        descriptions.append(f"{name} from {request.start_date} to {request.end_date} ({request.status})")
    result.errors.append("Leave request conflicts with existing requests: " + "; ".join(descriptions))


async def _check_team_availability(
    session: AsyncSession,
    employee: EmployeeInfo,
    start_date: date,
    end_date: date,
    result: ValidationResult,
) -> None:
    if employee.manager_id is None:
        return
    team = await get_employee_directory().list_team_members(employee.manager_id)
    peers = {p.id: p for p in team if p.id != employee.id and p.is_active}
    if not peers:
        return

    on_leave = await session.execute(
        select(col(LeaveRequest.employee_id))
        .where(
            col(LeaveRequest.employee_id).in_(list(peers)),
            col(LeaveRequest.status) == RequestStatus.APPROVED.value,
            col(LeaveRequest.start_date) <= end_date,
            col(LeaveRequest.end_date) >= start_date,
        )
        .distinct()
    )
    absent_ids = [row[0] for row in on_leave.all()]
    if Decimal(len(absent_ids)) / Decimal(len(peers)) >= TEAM_ABSENCE_WARNING_RATIO:
        names = ", ".join(sorted(peers[i].full_name for i in absent_ids))
        result.warnings.append(f"Team availability concern: {names} will also be on leave during this period")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def validate_leave_request(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    start_date: date,
    end_date: date,
    *,
    exclude_request_id: uuid.UUID | None = None,
) -> ValidationResult:
    """Run every check against a prospective request.

    ``exclude_request_id`` names a request being re-validated (update,
    approval, resubmission); it is ignored for conflicts and its own
    pending reservation is credited back for the balance check.
    """
    today = get_clock().today()
    result = ValidationResult(total_days=count_leave_days(start_date, end_date))
    dates_ordered = start_date <= end_date

    # 1. Dates.
    _check_dates(start_date, end_date, today, result)
    if dates_ordered and result.total_days <= 0:
        result.errors.append("Request covers no leave days after excluding weekends and holidays")

    # 2. Leave type.
    leave_type = await session.get(LeaveType, leave_type_id)
    if leave_type is None:
        result.errors.append("Invalid leave type")
    elif not leave_type.is_active:
        result.errors.append("This leave type is no longer available")

    # 3. Employee.
    employee = await get_employee_directory().get_employee(employee_id)
    if employee is None:
        result.errors.append("Employee not found")
    elif not employee.is_active:
        result.errors.append("Only active employees can request leave")

    if leave_type is not None:
        # 4. Advance notice.
        notice = leave_type.advance_notice_days
        if notice > 0 and start_date < today + timedelta(days=notice):
            result.errors.append(f"This leave type requires {notice} days advance notice")

        # 5. Maximum consecutive days.
        if leave_type.max_consecutive_days is not None and result.total_days > leave_type.max_consecutive_days:
            result.errors.append(
                f"Maximum consecutive days for {leave_type.name} is {leave_type.max_consecutive_days}"
            )

        # 6. Probation.
        if employee is not None:
            await _check_probation(session, employee, leave_type, start_date, today, result)

    if dates_ordered:
        # 7. Balance.
        await _check_balance(session, employee_id, leave_type_id, start_date, exclude_request_id, result)

        # 8. Conflicts.
        await _check_conflicts(session, employee_id, start_date, end_date, exclude_request_id, result)

        # 9. Team availability.
        if employee is not None:
            await _check_team_availability(session, employee, start_date, end_date, result)

    # 10. Blackout periods.
    if leave_type is not None:
        for rule in get_blackout_rules():
            result.warnings.extend(rule(leave_type, start_date, end_date))

    if result.errors:
        logger.debug("Leave request for employee=%s rejected: %s", employee_id, result.errors)
    return result
