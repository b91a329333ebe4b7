# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from hr_leave.api.deps import AdminDep, SelfOrAdminDep
from hr_leave.db import SessionDep
from hr_leave.schemas.assignment import (
    AssignmentListResponse,
    AssignmentResponse,
    BulkAssignRequest,
    BulkAssignResponse,
    CreateAssignmentRequest,
    OnboardEmployeeRequest,
    OnboardEmployeeResponse,
)
from hr_leave.services import assignment as assignment_service
from hr_leave.services import onboarding as onboarding_service

# ---------------------------------------------------------------------------
# Assignment management: /assignments
# ---------------------------------------------------------------------------

assignments_router = APIRouter(prefix="/assignments", tags=["assignments"])


@assignments_router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def assign_policy(
    payload: CreateAssignmentRequest,
    session: SessionDep,
    auth: AdminDep,
) -> AssignmentResponse:
    """Assign a policy to an employee, superseding an older assignment for the same leave type."""
    return await assignment_service.assign_policy(session, auth, payload)


@assignments_router.post("/bulk", response_model=BulkAssignResponse)
async def bulk_assign_policy(
    payload: BulkAssignRequest,
    session: SessionDep,
    auth: AdminDep,
) -> BulkAssignResponse:
    """Assign one policy to many employees; failures are reported per employee."""
    return await assignment_service.bulk_assign_policy(session, auth, payload)


@assignments_router.post("/{assignment_id}/deactivate", response_model=AssignmentResponse)
async def deactivate_assignment(
    assignment_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> AssignmentResponse:
    """End an assignment today."""
    return await assignment_service.deactivate_assignment(session, assignment_id)


# ---------------------------------------------------------------------------
# Employee-scoped: /employees/{employee_id}/assignments
# ---------------------------------------------------------------------------

employee_assignments_router = APIRouter(prefix="/employees/{employee_id}/assignments", tags=["assignments"])


@employee_assignments_router.get("", response_model=AssignmentListResponse)
async def list_employee_assignments(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: SelfOrAdminDep,
    include_inactive: bool = Query(default=False),
) -> AssignmentListResponse:
    """List an employee's policy assignments."""
    return await assignment_service.list_employee_assignments(
        session, employee_id, include_inactive=include_inactive
    )


# ---------------------------------------------------------------------------
# New hires: /employees/{employee_id}/onboard
# ---------------------------------------------------------------------------

onboarding_router = APIRouter(prefix="/employees/{employee_id}", tags=["assignments"])


@onboarding_router.post("/onboard", response_model=OnboardEmployeeResponse)
async def onboard_employee(
    employee_id: uuid.UUID,
    payload: OnboardEmployeeRequest,
    session: SessionDep,
    auth: AdminDep,
) -> OnboardEmployeeResponse:
    """Assign starting policies from the hire date and open prorated balances (admin only).

    Policies that cannot be assigned are listed under ``failed``; the rest still apply.
    """
    return await onboarding_service.onboard_employee(session, auth, employee_id, payload)
