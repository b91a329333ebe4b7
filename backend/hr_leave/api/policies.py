# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from hr_leave.api.deps import AdminDep, AuthDep
from hr_leave.db import SessionDep
from hr_leave.schemas.policy import (
    CreatePolicyRequest,
    PolicyListResponse,
    PolicyResponse,
    UpdatePolicyRequest,
)
from hr_leave.services import policy as policy_service

router = APIRouter(prefix="/policies", tags=["policies"])


@router.post("", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def create_policy(
    payload: CreatePolicyRequest,
    session: SessionDep,
    auth: AdminDep,
) -> PolicyResponse:
    """Create a leave policy for an active leave type."""
    return await policy_service.create_policy(session, auth, payload)


@router.get("", response_model=PolicyListResponse)
async def list_policies(
    session: SessionDep,
    auth: AuthDep,
    leave_type_id: uuid.UUID | None = Query(default=None),
    include_inactive: bool = Query(default=False),
) -> PolicyListResponse:
    """List leave policies."""
    return await policy_service.list_policies(
        session, leave_type_id=leave_type_id, include_inactive=include_inactive
    )


@router.get("/{policy_id}", response_model=PolicyResponse)
async def get_policy(
    policy_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> PolicyResponse:
    """Get a single leave policy."""
    return await policy_service.get_policy(session, policy_id)


@router.patch("/{policy_id}", response_model=PolicyResponse)
async def update_policy(
    policy_id: uuid.UUID,
    payload: UpdatePolicyRequest,
    session: SessionDep,
    auth: AdminDep,
) -> PolicyResponse:
    """Update a policy; the change applies to future accruals only."""
    return await policy_service.update_policy(session, policy_id, payload)


@router.delete("/{policy_id}", response_model=PolicyResponse)
async def deactivate_policy(
    policy_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> PolicyResponse:
    """Deactivate a policy. Existing balances and history are kept."""
    return await policy_service.deactivate_policy(session, policy_id)
