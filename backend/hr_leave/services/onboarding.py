"""New-hire setup: starting policy assignments plus prorated opening balances."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hr_leave.exceptions import AppError, NotFoundError
from hr_leave.schemas.assignment import (
    AssignmentResponse,
    CreateAssignmentRequest,
    OnboardEmployeeResponse,
)
from hr_leave.schemas.balance import BalanceListResponse
from hr_leave.schemas.common import BulkFailure
from hr_leave.services.accrual import initialize_employee_balances
from hr_leave.services.assignment import assign_policy
from hr_leave.services.employee import get_employee_directory

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_leave.schemas.assignment import OnboardEmployeeRequest
    from hr_leave.schemas.auth import AuthorizationContext

logger = logging.getLogger(__name__)


async def onboard_employee(
    session: AsyncSession,
    auth: AuthorizationContext,
    employee_id: uuid.UUID,
    payload: OnboardEmployeeRequest,
) -> OnboardEmployeeResponse:
    """Assign each policy from the hire date, then post the prorated initial allocations.

    A policy that cannot be assigned is reported in ``failed`` without
    undoing the others. Balances are only initialised when at least one
    assignment succeeded.
    """
    employee = await get_employee_directory().get_employee(employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    hire_date = payload.hire_date or employee.hire_date

    successful: list[AssignmentResponse] = []
    failed: list[BulkFailure] = []
    for policy_id in payload.policy_ids:
        try:
            successful.append(
                await assign_policy(
                    session,
                    auth,
                    CreateAssignmentRequest(employee_id=employee_id, policy_id=policy_id, effective_date=hire_date),
                )
            )
        except AppError as exc:
            await session.rollback()
            logger.warning("Could not assign policy %s to new hire %s: %s", policy_id, employee_id, exc.message)
            failed.append(BulkFailure(id=policy_id, error=exc.message))

    if successful:
        try:
            balances = await initialize_employee_balances(session, employee_id, hire_date)
        except Exception:
            await session.rollback()
            raise
    else:
        balances = BalanceListResponse(items=[], total=0)

    logger.info(
        "Onboarded employee %s from %s: assigned=%d failed=%d balances=%d",
        employee_id,
        hire_date,
        len(successful),
        len(failed),
        balances.total,
    )
    return OnboardEmployeeResponse(
        employee_id=employee_id,
        hire_date=hire_date,
        successful=successful,
        failed=failed,
        balances=balances,
    )
