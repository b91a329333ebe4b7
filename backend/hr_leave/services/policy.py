# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from hr_leave.exceptions import ConflictError, NotFoundError, ValidationError
from hr_leave.models.policy import LeavePolicy
from hr_leave.schemas.policy import PolicyListResponse, PolicyResponse
from hr_leave.services.clock import get_clock
from hr_leave.services.leave_type import get_leave_type_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_leave.schemas.auth import AuthorizationContext
    from hr_leave.schemas.policy import CreatePolicyRequest, UpdatePolicyRequest

logger = logging.getLogger(__name__)


async def get_policy_or_404(session: AsyncSession, policy_id: uuid.UUID) -> LeavePolicy:
    """Fetch a policy by ID. Raises NotFoundError if missing."""
    policy = await session.get(LeavePolicy, policy_id)
    if policy is None:
        raise NotFoundError("Leave policy not found")
    return policy


async def _ensure_name_available(
    session: AsyncSession,
    name: str,
    exclude_id: uuid.UUID | None = None,
) -> None:
    query = select(LeavePolicy.id).where(col(LeavePolicy.name) == name)
    if exclude_id is not None:
        query = query.where(col(LeavePolicy.id) != exclude_id)
    result = await session.execute(query)
    if result.first() is not None:
        raise ConflictError(f"Leave policy with name '{name}' already exists")


async def create_policy(
    session: AsyncSession,
    auth: AuthorizationContext,
    payload: CreatePolicyRequest,
) -> PolicyResponse:
    """Create a leave policy for an existing, active leave type."""
    leave_type = await get_leave_type_or_404(session, payload.leave_type_id)
    if not leave_type.is_active:
        raise ValidationError("Cannot create a policy for an inactive leave type")
    await _ensure_name_available(session, payload.name)

    policy = LeavePolicy(**payload.model_dump(), created_by=auth.user_id)
    session.add(policy)
    await session.commit()
    logger.info("Created leave policy %s (%s) for leave type %s", policy.id, policy.name, policy.leave_type_id)
    return PolicyResponse.model_validate(policy)


async def get_policy(session: AsyncSession, policy_id: uuid.UUID) -> PolicyResponse:
    """Get a single policy."""
    return PolicyResponse.model_validate(await get_policy_or_404(session, policy_id))


async def list_policies(
    session: AsyncSession,
    *,
    leave_type_id: uuid.UUID | None = None,
    include_inactive: bool = False,
) -> PolicyListResponse:
    """List policies, optionally for a single leave type."""
    query = select(LeavePolicy).order_by(col(LeavePolicy.name))
    if leave_type_id is not None:
        query = query.where(col(LeavePolicy.leave_type_id) == leave_type_id)
    if not include_inactive:
        query = query.where(col(LeavePolicy.is_active).is_(True))
    result = await session.execute(query)
    items = [PolicyResponse.model_validate(p) for p in result.scalars().all()]
    return PolicyListResponse(items=items, total=len(items))


async def update_policy(
    session: AsyncSession,
    policy_id: uuid.UUID,
    payload: UpdatePolicyRequest,
) -> PolicyResponse:
    """Apply a partial update to a policy.

    Changes apply to future accruals and validations of every employee
    assigned to the policy; balances already posted are not recomputed.
    """
    policy = await get_policy_or_404(session, policy_id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] != policy.name:
        await _ensure_name_available(session, changes["name"], exclude_id=policy_id)

    for key, value in changes.items():
        setattr(policy, key, value)
    policy.updated_at = get_clock().now()

    await session.commit()
    return PolicyResponse.model_validate(policy)


async def deactivate_policy(session: AsyncSession, policy_id: uuid.UUID) -> PolicyResponse:
    """Deactivate a policy. Existing assignments keep referencing it but no new ones are allowed."""
    policy = await get_policy_or_404(session, policy_id)
    policy.is_active = False
    policy.updated_at = get_clock().now()
    await session.commit()
    logger.info("Deactivated leave policy %s", policy_id)
    return PolicyResponse.model_validate(policy)
