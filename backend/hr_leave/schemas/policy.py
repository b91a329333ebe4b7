# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from hr_leave.models.enums import AccrualFrequency

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreatePolicyRequest(BaseModel):
    """Request body for creating a leave policy."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    leave_type_id: uuid.UUID
    annual_allocation: Decimal = Field(default=Decimal(0), ge=0, max_digits=8, decimal_places=2)
    accrual_rate: Decimal = Field(default=Decimal(0), ge=0, max_digits=8, decimal_places=2)
    accrual_frequency: AccrualFrequency = AccrualFrequency.MONTHLY
    max_balance: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    probation_period_months: int = Field(default=0, ge=0)
    carryover_limit: Decimal = Field(default=Decimal(0), ge=0, max_digits=8, decimal_places=2)


class UpdatePolicyRequest(BaseModel):
    """Partial update of a policy. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    annual_allocation: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    accrual_rate: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    accrual_frequency: AccrualFrequency | None = None
    max_balance: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    probation_period_months: int | None = Field(default=None, ge=0)
    carryover_limit: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    is_active: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PolicyResponse(BaseModel):
    """Response schema for a single leave policy."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None
    leave_type_id: uuid.UUID
    annual_allocation: Decimal
    accrual_rate: Decimal
    accrual_frequency: AccrualFrequency
    max_balance: Decimal | None
    probation_period_months: int
    carryover_limit: Decimal
    is_active: bool
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime | None


class PolicyListResponse(BaseModel):
    """List of leave policies."""

    items: list[PolicyResponse]
    total: int
