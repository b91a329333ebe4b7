# ruff: noqa: TC003
from __future__ import annotations

import uuid

from sqlmodel import Field

from hr_leave.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class LeaveType(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """A category of leave (annual, sick, parental...)."""

    __tablename__ = "leave_type"

    name: str = Field(max_length=100, unique=True)
    description: str | None = None
    color_code: str = Field(default="#007bff", max_length=7)
    is_paid: bool = True
    requires_approval: bool = True
    max_consecutive_days: int | None = None
    advance_notice_days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    is_active: bool = Field(default=True, index=True)
    created_by: uuid.UUID
    updated_by: uuid.UUID | None = None
