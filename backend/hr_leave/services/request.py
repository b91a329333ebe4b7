# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from hr_leave.exceptions import AuthorizationError, NotFoundError, ValidationError
from hr_leave.models.enums import RequestStatus, Role
from hr_leave.models.request import LeaveRequest
from hr_leave.schemas.request import (
    RequestActionResponse,
    RequestListResponse,
    RequestResponse,
    ValidationResultResponse,
)
from hr_leave.services import ledger
from hr_leave.services.clock import get_clock
from hr_leave.services.employee import get_employee_directory
from hr_leave.services.notification import send_notification
from hr_leave.services.validation import validate_leave_request

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_leave.schemas.auth import AuthorizationContext
    from hr_leave.schemas.request import (
        SubmitLeaveRequestPayload,
        UpdateLeaveRequestPayload,
        ValidateLeaveRequestPayload,
    )

logger = logging.getLogger(__name__)

NOTIFICATION_FAILED_WARNING = "Notification could not be delivered"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def get_request_or_404(
    session: AsyncSession,
    request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveRequest:
    """Fetch a request by ID, optionally locking the row. Raises NotFoundError if missing."""
    query = select(LeaveRequest).where(col(LeaveRequest.id) == request_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Leave request not found")
    return request


async def _ensure_can_act_for(auth: AuthorizationContext, employee_id: uuid.UUID) -> None:
    """Employees act for themselves, managers for their reports, admins for anyone."""
    if auth.user_id == employee_id or auth.is_admin:
        return
    if auth.role == Role.MANAGER:
        employee = await get_employee_directory().get_employee(employee_id)
        if employee is not None and employee.manager_id == auth.user_id:
            return
    raise AuthorizationError("You may not manage leave requests for this employee")


async def _manager_of(employee_id: uuid.UUID) -> uuid.UUID | None:
    employee = await get_employee_directory().get_employee(employee_id)
    return employee.manager_id if employee is not None else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def dry_run_leave_request(
    session: AsyncSession,
    auth: AuthorizationContext,
    payload: ValidateLeaveRequestPayload,
) -> ValidationResultResponse:
    """Run every validation check for a prospective request without creating anything."""
    await _ensure_can_act_for(auth, payload.employee_id)
    result = await validate_leave_request(
        session,
        payload.employee_id,
        payload.leave_type_id,
        payload.start_date,
        payload.end_date,
        exclude_request_id=payload.exclude_request_id,
    )
    return result.to_response()


async def create_leave_request(
    session: AsyncSession,
    auth: AuthorizationContext,
    payload: SubmitLeaveRequestPayload,
) -> RequestActionResponse:
    """Validate, reserve pending days and persist a new pending request.

    The reservation and the request row are committed together; a failure
    leaves neither behind.
    """
    await _ensure_can_act_for(auth, payload.employee_id)

    validation = await validate_leave_request(
        session, payload.employee_id, payload.leave_type_id, payload.start_date, payload.end_date
    )
    if not validation.is_valid:
        raise ValidationError("Leave request failed validation", validation.errors)

    request = LeaveRequest(
        employee_id=payload.employee_id,
        leave_type_id=payload.leave_type_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        total_days=validation.total_days,
        reason=payload.reason,
        status=RequestStatus.PENDING.value,
        created_by=auth.user_id,
    )
    try:
        session.add(request)
        await ledger.reserve_pending(
            session, request.employee_id, request.leave_type_id, request.start_date.year, request.total_days
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Leave request %s submitted for employee=%s (%s days)", request.id, request.employee_id, request.total_days
    )
    response = RequestResponse.model_validate(request)
    warnings = list(validation.warnings)
    manager_id = await _manager_of(request.employee_id)
    if manager_id is not None:
        delivered = await send_notification(
            [manager_id], "leave_request.submitted", {"request_id": str(request.id), "employee_id": str(request.employee_id)}
        )
        if not delivered:
            warnings.append(NOTIFICATION_FAILED_WARNING)
    return RequestActionResponse(request=response, warnings=warnings)


async def update_leave_request(
    session: AsyncSession,
    auth: AuthorizationContext,
    request_id: uuid.UUID,
    payload: UpdateLeaveRequestPayload,
) -> RequestActionResponse:
    """Change the dates or reason of a pending request, moving its reservation."""
    try:
        request = await get_request_or_404(session, request_id, for_update=True)
        await _ensure_can_act_for(auth, request.employee_id)
        if request.status != RequestStatus.PENDING:
            raise ValidationError("Only pending leave requests can be updated")

        start_date = payload.start_date or request.start_date
        end_date = payload.end_date or request.end_date
        warnings: list[str] = []

        if (start_date, end_date) != (request.start_date, request.end_date):
            validation = await validate_leave_request(
                session,
                request.employee_id,
                request.leave_type_id,
                start_date,
                end_date,
                exclude_request_id=request.id,
            )
            if not validation.is_valid:
                raise ValidationError("Leave request failed validation", validation.errors)
            warnings.extend(validation.warnings)

            await ledger.release_pending(
                session, request.employee_id, request.leave_type_id, request.start_date.year, request.total_days
            )
            await ledger.reserve_pending(
                session, request.employee_id, request.leave_type_id, start_date.year, validation.total_days
            )
            request.start_date = start_date
            request.end_date = end_date
            request.total_days = validation.total_days

        if "reason" in payload.model_fields_set:
            request.reason = payload.reason
        request.updated_by = auth.user_id
        request.updated_at = get_clock().now()
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    return RequestActionResponse(request=RequestResponse.model_validate(request), warnings=warnings)


async def get_leave_request(session: AsyncSession, request_id: uuid.UUID) -> RequestResponse:
    """Get a single leave request."""
    return RequestResponse.model_validate(await get_request_or_404(session, request_id))


async def list_leave_requests(
    session: AsyncSession,
    *,
    employee_ids: list[uuid.UUID] | None = None,
    status: RequestStatus | None = None,
    leave_type_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List leave requests, newest start date first.

    ``start_date``/``end_date`` select requests overlapping that window.
    """
    filters = []
    if employee_ids is not None:
        filters.append(col(LeaveRequest.employee_id).in_(employee_ids))
    if status is not None:
        filters.append(col(LeaveRequest.status) == status.value)
    if leave_type_id is not None:
        filters.append(col(LeaveRequest.leave_type_id) == leave_type_id)
    if start_date is not None:
        filters.append(col(LeaveRequest.end_date) >= start_date)
    if end_date is not None:
        filters.append(col(LeaveRequest.start_date) <= end_date)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*filters)
        .order_by(col(LeaveRequest.start_date).desc(), col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    items = [RequestResponse.model_validate(r) for r in result.scalars().all()]
    return RequestListResponse(items=items, total=total)


async def list_team_requests(
    session: AsyncSession,
    manager_id: uuid.UUID,
    *,
    status: RequestStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """Requests of every employee reporting to the manager."""
    team = await get_employee_directory().list_team_members(manager_id)
    return await list_leave_requests(
        session,
        employee_ids=[member.id for member in team],
        status=status,
        offset=offset,
        limit=limit,
    )
