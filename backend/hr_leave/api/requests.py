# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from hr_leave.api.deps import AuthDep
from hr_leave.db import SessionDep
from hr_leave.exceptions import AuthorizationError
from hr_leave.models.enums import RequestStatus, Role
from hr_leave.schemas.request import (
    AvailableActionsResponse,
    BulkTransitionPayload,
    BulkTransitionResponse,
    RequestActionResponse,
    RequestListResponse,
    RequestResponse,
    SubmitLeaveRequestPayload,
    TransitionPayload,
    UpdateLeaveRequestPayload,
    ValidateLeaveRequestPayload,
    ValidationResultResponse,
)
from hr_leave.services import request as request_service
from hr_leave.services import workflow

requests_router = APIRouter(prefix="/requests", tags=["requests"])


def _reason(payload: TransitionPayload | None) -> str | None:
    return payload.reason if payload is not None else None


# ---------------------------------------------------------------------------
# Submission and queries
# ---------------------------------------------------------------------------


@requests_router.post("", response_model=RequestActionResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: SubmitLeaveRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestActionResponse:
    """Submit a leave request; its days are held as pending until a decision."""
    return await request_service.create_leave_request(session, auth, payload)


@requests_router.post("/validate", response_model=ValidationResultResponse)
async def validate_request(
    payload: ValidateLeaveRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> ValidationResultResponse:
    """Dry-run every validation check without creating anything."""
    return await request_service.dry_run_leave_request(session, auth, payload)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    employee_id: uuid.UUID | None = Query(default=None),
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    leave_type_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List leave requests. Employees only ever see their own."""
    if auth.role == Role.EMPLOYEE:
        employee_ids = [auth.user_id]
    elif employee_id is not None:
        employee_ids = [employee_id]
    else:
        employee_ids = None
    return await request_service.list_leave_requests(
        session,
        employee_ids=employee_ids,
        status=status_filter,
        leave_type_id=leave_type_id,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )


@requests_router.get("/team", response_model=RequestListResponse)
async def list_team_requests(
    session: SessionDep,
    auth: AuthDep,
    manager_id: uuid.UUID | None = Query(default=None),
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """Requests of the caller's direct reports. Admins may name another manager."""
    if auth.role == Role.EMPLOYEE:
        raise AuthorizationError("Only managers and admins can view team requests")
    target = manager_id if manager_id is not None and auth.is_admin else auth.user_id
    return await request_service.list_team_requests(
        session, target, status=status_filter, offset=offset, limit=limit
    )


@requests_router.post("/bulk-transitions", response_model=BulkTransitionResponse)
async def bulk_transition(
    payload: BulkTransitionPayload,
    session: SessionDep,
    auth: AuthDep,
) -> BulkTransitionResponse:
    """Apply one action to many requests; each succeeds or fails independently."""
    return await workflow.bulk_transition(session, auth, payload.request_ids, payload.action, payload.reason)


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Get a single leave request."""
    response = await request_service.get_leave_request(session, request_id)
    if auth.role == Role.EMPLOYEE and response.employee_id != auth.user_id:
        raise AuthorizationError("You may only view your own leave requests")
    return response


@requests_router.patch("/{request_id}", response_model=RequestActionResponse)
async def update_request(
    request_id: uuid.UUID,
    payload: UpdateLeaveRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestActionResponse:
    """Change the dates or reason of a pending request."""
    return await request_service.update_leave_request(session, auth, request_id, payload)


@requests_router.get("/{request_id}/actions", response_model=AvailableActionsResponse)
async def get_available_actions(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> AvailableActionsResponse:
    """Statuses the caller may move this request to."""
    return await workflow.get_available_actions(session, auth, request_id)


# ---------------------------------------------------------------------------
# Workflow transitions
# ---------------------------------------------------------------------------


@requests_router.post("/{request_id}/approve", response_model=RequestActionResponse)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestActionResponse:
    """Approve a pending request; its pending days become used days."""
    return await workflow.approve_request(session, auth, request_id)


@requests_router.post("/{request_id}/deny", response_model=RequestActionResponse)
async def deny_request(
    request_id: uuid.UUID,
    payload: TransitionPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestActionResponse:
    """Deny a pending request with a reason."""
    return await workflow.deny_request(session, auth, request_id, payload.reason)


@requests_router.post("/{request_id}/withdraw", response_model=RequestActionResponse)
async def withdraw_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: TransitionPayload | None = None,
) -> RequestActionResponse:
    """Withdraw a pending request."""
    return await workflow.withdraw_request(session, auth, request_id, _reason(payload))


@requests_router.post("/{request_id}/cancel", response_model=RequestActionResponse)
async def cancel_request(
    request_id: uuid.UUID,
    payload: TransitionPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestActionResponse:
    """Cancel an approved request; its days are restored."""
    return await workflow.cancel_request(session, auth, request_id, payload.reason)


@requests_router.post("/{request_id}/resubmit", response_model=RequestActionResponse)
async def resubmit_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestActionResponse:
    """Resubmit a denied request (submitter only)."""
    return await workflow.resubmit_request(session, auth, request_id)
