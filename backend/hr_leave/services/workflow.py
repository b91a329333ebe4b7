"""Request workflow: the status state machine and its balance side effects.

Legal moves live in ``TRANSITIONS``; the code below only interprets that
table. A transition and its balance effect are committed together.
"""

# ruff: noqa: TC003
from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hr_leave.exceptions import AppError, AuthorizationError, ValidationError
from hr_leave.models.enums import BalanceChangeType, RequestStatus, Role
from hr_leave.schemas.common import BulkFailure
from hr_leave.schemas.request import (
    AvailableActionsResponse,
    BulkTransitionResponse,
    RequestActionResponse,
    RequestResponse,
    WorkflowAction,
)
from hr_leave.services import ledger
from hr_leave.services.clock import get_clock
from hr_leave.services.employee import get_employee_directory
from hr_leave.services.notification import send_notification
from hr_leave.services.request import NOTIFICATION_FAILED_WARNING, get_request_or_404
from hr_leave.services.validation import validate_leave_request

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_leave.models.request import LeaveRequest
    from hr_leave.schemas.auth import AuthorizationContext

logger = logging.getLogger(__name__)


class BalanceEffect(enum.StrEnum):
    """What a transition does to the balance."""

    COMMIT_PENDING = "commit_pending"
    RELEASE_PENDING = "release_pending"
    RESTORE_USAGE = "restore_usage"
    RESERVE_PENDING = "reserve_pending"


@dataclass(frozen=True)
class StatusTransition:
    """One legal (from, to) move and the rules attached to it."""

    from_status: RequestStatus
    to_status: RequestStatus
    allowed_roles: frozenset[Role]
    requires_reason: bool
    balance_effect: BalanceEffect
    event_type: str
    revalidate: bool = False
    submitter_only: bool = False


_DECIDERS = frozenset({Role.MANAGER, Role.HR_ADMIN, Role.SUPER_ADMIN})
_EVERYONE = frozenset({Role.EMPLOYEE, Role.MANAGER, Role.HR_ADMIN, Role.SUPER_ADMIN})

TRANSITIONS: tuple[StatusTransition, ...] = (
    StatusTransition(
        from_status=RequestStatus.PENDING,
        to_status=RequestStatus.APPROVED,
        allowed_roles=_DECIDERS,
        requires_reason=False,
        balance_effect=BalanceEffect.COMMIT_PENDING,
        event_type="leave_request.approved",
        revalidate=True,
    ),
    StatusTransition(
        from_status=RequestStatus.PENDING,
        to_status=RequestStatus.DENIED,
        allowed_roles=_DECIDERS,
        requires_reason=True,
        balance_effect=BalanceEffect.RELEASE_PENDING,
        event_type="leave_request.denied",
    ),
    StatusTransition(
        from_status=RequestStatus.PENDING,
        to_status=RequestStatus.WITHDRAWN,
        allowed_roles=_EVERYONE,
        requires_reason=False,
        balance_effect=BalanceEffect.RELEASE_PENDING,
        event_type="leave_request.withdrawn",
    ),
    StatusTransition(
        from_status=RequestStatus.APPROVED,
        to_status=RequestStatus.CANCELLED,
        allowed_roles=_EVERYONE,
        requires_reason=True,
        balance_effect=BalanceEffect.RESTORE_USAGE,
        event_type="leave_request.cancelled",
    ),
    StatusTransition(
        from_status=RequestStatus.DENIED,
        to_status=RequestStatus.PENDING,
        allowed_roles=frozenset({Role.EMPLOYEE}),
        requires_reason=False,
        balance_effect=BalanceEffect.RESERVE_PENDING,
        event_type="leave_request.resubmitted",
        revalidate=True,
        submitter_only=True,
    ),
)

_TRANSITION_INDEX: dict[tuple[RequestStatus, RequestStatus], StatusTransition] = {
    (t.from_status, t.to_status): t for t in TRANSITIONS
}

_ACTION_TARGETS: dict[str, RequestStatus] = {
    "approve": RequestStatus.APPROVED,
    "deny": RequestStatus.DENIED,
    "withdraw": RequestStatus.WITHDRAWN,
    "cancel": RequestStatus.CANCELLED,
    "resubmit": RequestStatus.PENDING,
}


def get_transition(from_status: RequestStatus, to_status: RequestStatus) -> StatusTransition | None:
    """Look up a transition; None means the move is illegal."""
    return _TRANSITION_INDEX.get((from_status, to_status))


def resolve_action_target(action: WorkflowAction, current_status: RequestStatus) -> RequestStatus:
    """Target status for an action. Cancelling a request that is still pending withdraws it."""
    if action == "cancel" and current_status == RequestStatus.PENDING:
        return RequestStatus.WITHDRAWN
    return _ACTION_TARGETS[action]


def _is_permitted(transition: StatusTransition, auth: AuthorizationContext, request: LeaveRequest) -> bool:
    if auth.role not in transition.allowed_roles:
        return False
    if transition.submitter_only or auth.role == Role.EMPLOYEE:
        return auth.user_id == request.employee_id
    return True


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _apply_balance_effect(
    session: AsyncSession,
    effect: BalanceEffect,
    request: LeaveRequest,
    auth: AuthorizationContext,
) -> None:
    year = request.start_date.year
    if effect == BalanceEffect.COMMIT_PENDING:
        await ledger.commit_pending_to_usage(
            session,
            request.employee_id,
            request.leave_type_id,
            request.total_days,
            effective_date=request.start_date,
            reason=f"Approved leave request: {request.start_date} to {request.end_date}",
            created_by=auth.user_id,
        )
    elif effect == BalanceEffect.RELEASE_PENDING:
        await ledger.release_pending(session, request.employee_id, request.leave_type_id, year, request.total_days)
    elif effect == BalanceEffect.RESTORE_USAGE:
        await ledger.mutate(
            session,
            request.employee_id,
            request.leave_type_id,
            ledger.BalanceChange(
                change_type=BalanceChangeType.ADJUSTMENT,
                amount=request.total_days,
                reason=f"Cancelled leave request: {request.start_date} to {request.end_date}",
                effective_date=request.start_date,
                created_by=auth.user_id,
            ),
        )
    else:
        await ledger.reserve_pending(session, request.employee_id, request.leave_type_id, year, request.total_days)


def _record_decision(
    request: LeaveRequest,
    to_status: RequestStatus,
    auth: AuthorizationContext,
    reason: str | None,
) -> None:
    now = get_clock().now()
    request.status = to_status.value
    request.updated_by = auth.user_id
    request.updated_at = now
    if to_status == RequestStatus.APPROVED:
        request.approved_by = auth.user_id
        request.approved_at = now
    elif to_status == RequestStatus.DENIED:
        request.denial_reason = reason
    elif to_status in (RequestStatus.CANCELLED, RequestStatus.WITHDRAWN):
        request.cancellation_reason = reason
    elif to_status == RequestStatus.PENDING:
        request.denial_reason = None


async def _notify(request: LeaveRequest, transition: StatusTransition, auth: AuthorizationContext) -> bool:
    recipients: list[uuid.UUID] = []
    if auth.user_id != request.employee_id:
        recipients.append(request.employee_id)
    if transition.to_status in (RequestStatus.PENDING, RequestStatus.WITHDRAWN, RequestStatus.CANCELLED):
        employee = await get_employee_directory().get_employee(request.employee_id)
        if employee is not None and employee.manager_id is not None and employee.manager_id != auth.user_id:
            recipients.append(employee.manager_id)
    return await send_notification(
        recipients,
        transition.event_type,
        {
            "request_id": str(request.id),
            "employee_id": str(request.employee_id),
            "status": request.status,
            "actor_id": str(auth.user_id),
        },
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def transition_request(
    session: AsyncSession,
    auth: AuthorizationContext,
    request_id: uuid.UUID,
    to_status: RequestStatus,
    reason: str | None = None,
) -> RequestActionResponse:
    """Move a request to ``to_status`` and apply the balance effect atomically.

    Notifications go out after the commit; a delivery failure is reported as
    a warning and never undoes the transition.
    """
    reason = reason.strip() if reason and reason.strip() else None
    warnings: list[str] = []

    try:
        request = await get_request_or_404(session, request_id, for_update=True)
        from_status = RequestStatus(request.status)

        transition = get_transition(from_status, to_status)
        if transition is None:
            raise ValidationError(f"Invalid status transition from {from_status} to {to_status}")
        if not _is_permitted(transition, auth, request):
            raise AuthorizationError(f"Role {auth.role} may not move this request from {from_status} to {to_status}")
        if transition.requires_reason and reason is None:
            raise ValidationError(f"A reason is required to move a request from {from_status} to {to_status}")

        if transition.revalidate:
            validation = await validate_leave_request(
                session,
                request.employee_id,
                request.leave_type_id,
                request.start_date,
                request.end_date,
                exclude_request_id=request.id,
            )
            if not validation.is_valid:
                raise ValidationError("Leave request failed validation", validation.errors)
            warnings.extend(validation.warnings)
            if transition.balance_effect == BalanceEffect.RESERVE_PENDING:
                request.total_days = validation.total_days

        await _apply_balance_effect(session, transition.balance_effect, request, auth)
        _record_decision(request, to_status, auth, reason)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Leave request %s moved from %s to %s by %s (%s)", request_id, from_status, to_status, auth.user_id, auth.role
    )
    response = RequestResponse.model_validate(request)
    if not await _notify(request, transition, auth):
        warnings.append(NOTIFICATION_FAILED_WARNING)
    return RequestActionResponse(request=response, warnings=warnings)


async def approve_request(
    session: AsyncSession, auth: AuthorizationContext, request_id: uuid.UUID
) -> RequestActionResponse:
    return await transition_request(session, auth, request_id, RequestStatus.APPROVED)


async def deny_request(
    session: AsyncSession, auth: AuthorizationContext, request_id: uuid.UUID, reason: str | None
) -> RequestActionResponse:
    return await transition_request(session, auth, request_id, RequestStatus.DENIED, reason)


async def withdraw_request(
    session: AsyncSession, auth: AuthorizationContext, request_id: uuid.UUID, reason: str | None = None
) -> RequestActionResponse:
    return await transition_request(session, auth, request_id, RequestStatus.WITHDRAWN, reason)


async def cancel_request(
    session: AsyncSession, auth: AuthorizationContext, request_id: uuid.UUID, reason: str | None
) -> RequestActionResponse:
    return await transition_request(session, auth, request_id, RequestStatus.CANCELLED, reason)


async def resubmit_request(
    session: AsyncSession, auth: AuthorizationContext, request_id: uuid.UUID
) -> RequestActionResponse:
    return await transition_request(session, auth, request_id, RequestStatus.PENDING)


async def perform_action(
    session: AsyncSession,
    auth: AuthorizationContext,
    request_id: uuid.UUID,
    action: WorkflowAction,
    reason: str | None = None,
) -> RequestActionResponse:
    """Apply a named action, resolving its target from the request's current status."""
    request = await get_request_or_404(session, request_id)
    target = resolve_action_target(action, RequestStatus(request.status))
    return await transition_request(session, auth, request_id, target, reason)


async def get_available_actions(
    session: AsyncSession,
    auth: AuthorizationContext,
    request_id: uuid.UUID,
) -> AvailableActionsResponse:
    """Statuses the caller may move the request to right now."""
    request = await get_request_or_404(session, request_id)
    status = RequestStatus(request.status)
    actions = [t.to_status for t in TRANSITIONS if t.from_status == status and _is_permitted(t, auth, request)]
    return AvailableActionsResponse(request_id=request.id, status=status, actions=actions)


async def bulk_transition(
    session: AsyncSession,
    auth: AuthorizationContext,
    request_ids: list[uuid.UUID],
    action: WorkflowAction,
    reason: str | None = None,
) -> BulkTransitionResponse:
    """Apply one action to many requests; each succeeds or fails on its own."""
    successful: list[uuid.UUID] = []
    failed: list[BulkFailure] = []
    for request_id in request_ids:
        try:
            await perform_action(session, auth, request_id, action, reason)
        except AppError as exc:
            failed.append(BulkFailure(id=request_id, error=exc.message))
            continue
        successful.append(request_id)
    logger.info("Bulk %s: %d succeeded, %d failed", action, len(successful), len(failed))
    return BulkTransitionResponse(successful=successful, failed=failed)
