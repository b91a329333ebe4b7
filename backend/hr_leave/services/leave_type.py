# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from hr_leave.exceptions import ConflictError, NotFoundError
from hr_leave.models.balance import LeaveBalance
from hr_leave.models.leave_type import LeaveType
from hr_leave.models.policy import LeavePolicy
from hr_leave.models.request import LeaveRequest
from hr_leave.schemas.leave_type import (
    Deactivated,
    HardDeleted,
    LeaveTypeDeleteResult,
    LeaveTypeListResponse,
    LeaveTypeResponse,
)
from hr_leave.services.clock import get_clock

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_leave.schemas.auth import AuthorizationContext
    from hr_leave.schemas.leave_type import CreateLeaveTypeRequest, UpdateLeaveTypeRequest

logger = logging.getLogger(__name__)


async def get_leave_type_or_404(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveType:
    """Fetch a leave type by ID. Raises NotFoundError if missing."""
    leave_type = await session.get(LeaveType, leave_type_id)
    if leave_type is None:
        raise NotFoundError("Leave type not found")
    return leave_type


async def _ensure_name_available(
    session: AsyncSession,
    name: str,
    exclude_id: uuid.UUID | None = None,
) -> None:
    query = select(LeaveType.id).where(col(LeaveType.name) == name)
    if exclude_id is not None:
        query = query.where(col(LeaveType.id) != exclude_id)
    result = await session.execute(query)
    if result.first() is not None:
        raise ConflictError(f"Leave type with name '{name}' already exists")


async def create_leave_type(
    session: AsyncSession,
    auth: AuthorizationContext,
    payload: CreateLeaveTypeRequest,
) -> LeaveTypeResponse:
    """Create a leave type. Names are unique."""
    await _ensure_name_available(session, payload.name)

    leave_type = LeaveType(**payload.model_dump(), created_by=auth.user_id)
    session.add(leave_type)
    await session.commit()
    logger.info("Created leave type %s (%s)", leave_type.id, leave_type.name)
    return LeaveTypeResponse.model_validate(leave_type)


async def get_leave_type(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveTypeResponse:
    """Get a single leave type."""
    return LeaveTypeResponse.model_validate(await get_leave_type_or_404(session, leave_type_id))


async def list_leave_types(session: AsyncSession, *, include_inactive: bool = False) -> LeaveTypeListResponse:
    """List leave types ordered by name."""
    query = select(LeaveType).order_by(col(LeaveType.name))
    if not include_inactive:
        query = query.where(col(LeaveType.is_active).is_(True))
    result = await session.execute(query)
    items = [LeaveTypeResponse.model_validate(lt) for lt in result.scalars().all()]
    return LeaveTypeListResponse(items=items, total=len(items))


async def update_leave_type(
    session: AsyncSession,
    auth: AuthorizationContext,
    leave_type_id: uuid.UUID,
    payload: UpdateLeaveTypeRequest,
) -> LeaveTypeResponse:
    """Apply a partial update to a leave type."""
    leave_type = await get_leave_type_or_404(session, leave_type_id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] != leave_type.name:
        await _ensure_name_available(session, changes["name"], exclude_id=leave_type_id)

    for key, value in changes.items():
        setattr(leave_type, key, value)
    leave_type.updated_by = auth.user_id
    leave_type.updated_at = get_clock().now()

    await session.commit()
    return LeaveTypeResponse.model_validate(leave_type)


async def delete_leave_type(
    session: AsyncSession,
    auth: AuthorizationContext,
    leave_type_id: uuid.UUID,
) -> LeaveTypeDeleteResult:
    """Delete a leave type, or deactivate it when policies, requests or balances still reference it."""
    leave_type = await get_leave_type_or_404(session, leave_type_id)

    policy_count = (
        await session.execute(
            select(func.count()).select_from(LeavePolicy).where(col(LeavePolicy.leave_type_id) == leave_type_id)
        )
    ).scalar_one()
    request_count = (
        await session.execute(
            select(func.count()).select_from(LeaveRequest).where(col(LeaveRequest.leave_type_id) == leave_type_id)
        )
    ).scalar_one()
    balance_count = (
        await session.execute(
            select(func.count()).select_from(LeaveBalance).where(col(LeaveBalance.leave_type_id) == leave_type_id)
        )
    ).scalar_one()

    if policy_count or request_count or balance_count:
        leave_type.is_active = False
        leave_type.updated_by = auth.user_id
        leave_type.updated_at = get_clock().now()
        await session.commit()
        logger.info(
            "Deactivated leave type %s (policies=%d requests=%d balances=%d)",
            leave_type_id,
            policy_count,
            request_count,
            balance_count,
        )
        return Deactivated(
            leave_type_id=leave_type_id,
            policy_count=policy_count,
            request_count=request_count,
            balance_count=balance_count,
        )

    await session.delete(leave_type)
    await session.commit()
    logger.info("Deleted leave type %s", leave_type_id)
    return HardDeleted(leave_type_id=leave_type_id)
