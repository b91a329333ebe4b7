# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateLeaveTypeRequest(BaseModel):
    """Request body for creating a leave type."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    color_code: str = Field(default="#007bff", pattern=_COLOR_PATTERN)
    is_paid: bool = True
    requires_approval: bool = True
    max_consecutive_days: int | None = Field(default=None, ge=1)
    advance_notice_days: int = Field(default=0, ge=0)


class UpdateLeaveTypeRequest(BaseModel):
    """Partial update of a leave type. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    color_code: str | None = Field(default=None, pattern=_COLOR_PATTERN)
    is_paid: bool | None = None
    requires_approval: bool | None = None
    max_consecutive_days: int | None = Field(default=None, ge=1)
    advance_notice_days: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveTypeResponse(BaseModel):
    """Response schema for a single leave type."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None
    color_code: str
    is_paid: bool
    requires_approval: bool
    max_consecutive_days: int | None
    advance_notice_days: int
    is_active: bool
    created_by: uuid.UUID
    updated_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime | None


class LeaveTypeListResponse(BaseModel):
    """List of leave types."""

    items: list[LeaveTypeResponse]
    total: int


class HardDeleted(BaseModel):
    """The leave type had no references and was removed."""

    outcome: Literal["hard_deleted"] = "hard_deleted"
    leave_type_id: uuid.UUID


class Deactivated(BaseModel):
    """The leave type is referenced by policies, requests or balances and was only deactivated."""

    outcome: Literal["deactivated"] = "deactivated"
    leave_type_id: uuid.UUID
    policy_count: int
    request_count: int
    balance_count: int = 0


LeaveTypeDeleteResult = Annotated[HardDeleted | Deactivated, Field(discriminator="outcome")]
