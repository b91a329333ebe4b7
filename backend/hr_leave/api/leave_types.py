# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from hr_leave.api.deps import AdminDep, AuthDep
from hr_leave.db import SessionDep
from hr_leave.schemas.leave_type import (
    CreateLeaveTypeRequest,
    LeaveTypeDeleteResult,
    LeaveTypeListResponse,
    LeaveTypeResponse,
    UpdateLeaveTypeRequest,
)
from hr_leave.services import leave_type as leave_type_service

router = APIRouter(prefix="/leave-types", tags=["leave-types"])


@router.post("", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_type(
    payload: CreateLeaveTypeRequest,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveTypeResponse:
    """Create a leave type (admin only)."""
    return await leave_type_service.create_leave_type(session, auth, payload)


@router.get("", response_model=LeaveTypeListResponse)
async def list_leave_types(
    session: SessionDep,
    auth: AuthDep,
    include_inactive: bool = Query(default=False),
) -> LeaveTypeListResponse:
    """List leave types, active ones only unless asked otherwise."""
    return await leave_type_service.list_leave_types(session, include_inactive=include_inactive)


@router.get("/{leave_type_id}", response_model=LeaveTypeResponse)
async def get_leave_type(
    leave_type_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveTypeResponse:
    """Get a single leave type."""
    return await leave_type_service.get_leave_type(session, leave_type_id)


@router.patch("/{leave_type_id}", response_model=LeaveTypeResponse)
async def update_leave_type(
    leave_type_id: uuid.UUID,
    payload: UpdateLeaveTypeRequest,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveTypeResponse:
    """Update a leave type (admin only)."""
    return await leave_type_service.update_leave_type(session, auth, leave_type_id, payload)


@router.delete("/{leave_type_id}", response_model=LeaveTypeDeleteResult)
async def delete_leave_type(
    leave_type_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveTypeDeleteResult:
    """Delete a leave type, or deactivate it when policies or requests still reference it."""
    return await leave_type_service.delete_leave_type(session, auth, leave_type_id)
