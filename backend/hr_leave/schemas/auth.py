# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict

from hr_leave.models.enums import Role


class AuthorizationContext(BaseModel):
    """The acting user and the role resolved for them for this call."""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role in (Role.HR_ADMIN, Role.SUPER_ADMIN)
