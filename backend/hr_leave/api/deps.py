# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header

from hr_leave.exceptions import AuthorizationError
from hr_leave.models.enums import Role
from hr_leave.schemas.auth import AuthorizationContext
from hr_leave.services.role import resolve_authorization


async def get_authorization_context(x_user_id: uuid.UUID = Header()) -> AuthorizationContext:
    """Resolve the caller's active role from the role authority on every request."""
    return await resolve_authorization(x_user_id)


AuthDep = Annotated[AuthorizationContext, Depends(get_authorization_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthorizationContext:
    """Require an HR admin or super admin role."""
    if not auth.is_admin:
        raise AuthorizationError("Admin access required")
    return auth


AdminDep = Annotated[AuthorizationContext, Depends(require_admin)]


async def require_self_or_admin(
    employee_id: uuid.UUID,
    auth: AuthDep,
) -> AuthorizationContext:
    """Allow employee-scoped reads by the employee themself, managers and admins."""
    if auth.user_id != employee_id and auth.role == Role.EMPLOYEE:
        raise AuthorizationError("You may only view your own leave data")
    return auth


SelfOrAdminDep = Annotated[AuthorizationContext, Depends(require_self_or_admin)]
