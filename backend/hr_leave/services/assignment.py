# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import or_, select
from sqlmodel import col

from hr_leave.exceptions import AppError, ConflictError, NotFoundError
from hr_leave.models.assignment import EmployeePolicyAssignment
from hr_leave.models.policy import LeavePolicy
from hr_leave.schemas.assignment import (
    AssignmentListResponse,
    AssignmentResponse,
    BulkAssignResponse,
    CreateAssignmentRequest,
)
from hr_leave.schemas.common import BulkFailure
from hr_leave.services.clock import get_clock
from hr_leave.services.employee import get_employee_directory
from hr_leave.services.policy import get_policy_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_leave.schemas.assignment import BulkAssignRequest
    from hr_leave.schemas.auth import AuthorizationContext

logger = logging.getLogger(__name__)


def _active_on(on_date: date) -> list:
    """Filters selecting assignments in force on a date (expiry is inclusive)."""
    return [
        col(EmployeePolicyAssignment.is_active).is_(True),
        col(EmployeePolicyAssignment.effective_date) <= on_date,
        or_(
            col(EmployeePolicyAssignment.expiry_date).is_(None),
            col(EmployeePolicyAssignment.expiry_date) >= on_date,
        ),
    ]


async def get_active_assignment(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    on_date: date,
) -> tuple[EmployeePolicyAssignment, LeavePolicy] | None:
    """Return the assignment (with its policy) governing a leave type on a date."""
    result = await session.execute(
        select(EmployeePolicyAssignment, LeavePolicy)
        .join(LeavePolicy, col(LeavePolicy.id) == col(EmployeePolicyAssignment.policy_id))
        .where(
            col(EmployeePolicyAssignment.employee_id) == employee_id,
            col(EmployeePolicyAssignment.leave_type_id) == leave_type_id,
            *_active_on(on_date),
        )
        .order_by(col(EmployeePolicyAssignment.effective_date).desc())
        .limit(1)
    )
    row = result.first()
    if row is None:
        return None
    return row[0], row[1]


async def list_active_assignments(
    session: AsyncSession,
    on_date: date,
    *,
    employee_id: uuid.UUID | None = None,
) -> list[tuple[EmployeePolicyAssignment, LeavePolicy]]:
    """All assignments in force on a date, joined with their policies."""
    query = (
        select(EmployeePolicyAssignment, LeavePolicy)
        .join(LeavePolicy, col(LeavePolicy.id) == col(EmployeePolicyAssignment.policy_id))
        .where(*_active_on(on_date))
        .order_by(col(EmployeePolicyAssignment.employee_id), col(EmployeePolicyAssignment.effective_date))
    )
    if employee_id is not None:
        query = query.where(col(EmployeePolicyAssignment.employee_id) == employee_id)
    result = await session.execute(query)
    return [(row[0], row[1]) for row in result.all()]


async def _supersede_existing(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    effective_date: date,
) -> None:
    """End-date the employee's active assignments for the leave type.

    The existing assignment keeps governing up to the day before the new one
    starts; it is only deactivated once that last day is already in the past.
    Raises ConflictError when the existing assignment does not start before
    the new one, since it cannot be superseded without rewriting history.
    """
    result = await session.execute(
        select(EmployeePolicyAssignment).where(
            col(EmployeePolicyAssignment.employee_id) == employee_id,
            col(EmployeePolicyAssignment.leave_type_id) == leave_type_id,
            col(EmployeePolicyAssignment.is_active).is_(True),
        )
    )
    today = get_clock().today()
    last_day = effective_date - timedelta(days=1)
    for existing in result.scalars().all():
        if existing.expiry_date is not None and existing.expiry_date < effective_date:
            continue
        if existing.effective_date >= effective_date:
            raise ConflictError("Employee already has an overlapping policy assignment for this leave type")
        existing.expiry_date = last_day
        if last_day < today:
            existing.is_active = False
        logger.info("Superseded assignment %s for employee %s from %s", existing.id, employee_id, effective_date)


async def assign_policy(
    session: AsyncSession,
    auth: AuthorizationContext,
    payload: CreateAssignmentRequest,
) -> AssignmentResponse:
    """Assign a policy to an employee, superseding any earlier assignment for the same leave type."""
    policy = await get_policy_or_404(session, payload.policy_id)
    if not policy.is_active:
        raise NotFoundError("Active leave policy not found")

    employee = await get_employee_directory().get_employee(payload.employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")

    await _supersede_existing(session, payload.employee_id, policy.leave_type_id, payload.effective_date)

    assignment = EmployeePolicyAssignment(
        employee_id=payload.employee_id,
        policy_id=policy.id,
        leave_type_id=policy.leave_type_id,
        effective_date=payload.effective_date,
        expiry_date=payload.expiry_date,
        custom_allocation=payload.custom_allocation,
        created_by=auth.user_id,
    )
    session.add(assignment)
    await session.commit()
    logger.info("Assigned policy %s to employee %s from %s", policy.id, payload.employee_id, payload.effective_date)
    return AssignmentResponse.model_validate(assignment)


async def bulk_assign_policy(
    session: AsyncSession,
    auth: AuthorizationContext,
    payload: BulkAssignRequest,
) -> BulkAssignResponse:
    """Assign one policy to many employees; each employee succeeds or fails on its own."""
    successful: list[AssignmentResponse] = []
    failed: list[BulkFailure] = []
    for employee_id in payload.employee_ids:
        try:
            successful.append(
                await assign_policy(
                    session,
                    auth,
                    CreateAssignmentRequest(
                        employee_id=employee_id,
                        policy_id=payload.policy_id,
                        effective_date=payload.effective_date,
                        custom_allocation=payload.custom_allocation,
                    ),
                )
            )
        except AppError as exc:
            await session.rollback()
            failed.append(BulkFailure(id=employee_id, error=exc.message))
    return BulkAssignResponse(successful=successful, failed=failed)


async def list_employee_assignments(
    session: AsyncSession,
    employee_id: uuid.UUID,
    *,
    include_inactive: bool = False,
) -> AssignmentListResponse:
    """List an employee's assignments, newest first."""
    query = (
        select(EmployeePolicyAssignment)
        .where(col(EmployeePolicyAssignment.employee_id) == employee_id)
        .order_by(col(EmployeePolicyAssignment.effective_date).desc())
    )
    if not include_inactive:
        query = query.where(col(EmployeePolicyAssignment.is_active).is_(True))
    result = await session.execute(query)
    items = [AssignmentResponse.model_validate(a) for a in result.scalars().all()]
    return AssignmentListResponse(items=items, total=len(items))


async def deactivate_assignment(session: AsyncSession, assignment_id: uuid.UUID) -> AssignmentResponse:
    """Deactivate an assignment, end-dating it today."""
    assignment = await session.get(EmployeePolicyAssignment, assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment not found")

    today = get_clock().today()
    assignment.is_active = False
    if assignment.expiry_date is None or assignment.expiry_date > today:
        assignment.expiry_date = today
    await session.commit()
    logger.info("Deactivated assignment %s", assignment_id)
    return AssignmentResponse.model_validate(assignment)
