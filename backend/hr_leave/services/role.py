# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from hr_leave.exceptions import AuthorizationError
from hr_leave.models.enums import Role
from hr_leave.schemas.auth import AuthorizationContext


@runtime_checkable
class RoleAuthority(Protocol):
    """Interface for the service that owns user role assignments."""

    async def get_active_role(self, user_id: uuid.UUID) -> str | None:
        """Return the user's currently active role, or None if they have none."""
        ...


class InMemoryRoleAuthority:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._roles: dict[uuid.UUID, str] = {}

    def seed(self, user_id: uuid.UUID, role: str) -> None:
        """Grant a role for testing."""
        self._roles[user_id] = role

    def revoke(self, user_id: uuid.UUID) -> None:
        """Remove a user's role."""
        self._roles.pop(user_id, None)

    async def get_active_role(self, user_id: uuid.UUID) -> str | None:
        return self._roles.get(user_id)


_role_authority: RoleAuthority = InMemoryRoleAuthority()


def get_role_authority() -> RoleAuthority:
    """FastAPI dependency for the role authority."""
    return _role_authority


def set_role_authority(authority: RoleAuthority) -> None:
    """Override the authority (for testing or production wiring)."""
    global _role_authority
    _role_authority = authority


async def resolve_authorization(user_id: uuid.UUID) -> AuthorizationContext:
    """Look up the caller's active role and build an authorization context.

    The role is read from the authority on every call and never cached or
    defaulted, so a revoked role takes effect on the next request.
    """
    role = await get_role_authority().get_active_role(user_id)
    if role is None:
        raise AuthorizationError("User has no active role")
    try:
        resolved = Role(role)
    except ValueError:
        raise AuthorizationError(f"Unknown role: {role}") from None
    return AuthorizationContext(user_id=user_id, role=resolved)
