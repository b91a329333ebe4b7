# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hr_leave.schemas.balance import BalanceListResponse
from hr_leave.schemas.common import BulkFailure


class CreateAssignmentRequest(BaseModel):
    """Request body for assigning a policy to an employee."""

    employee_id: uuid.UUID
    policy_id: uuid.UUID
    effective_date: date
    expiry_date: date | None = None
    custom_allocation: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.expiry_date is not None and self.expiry_date <= self.effective_date:
            msg = "expiry_date must be after effective_date"
            raise ValueError(msg)
        return self


class BulkAssignRequest(BaseModel):
    """Assign one policy to many employees."""

    employee_ids: list[uuid.UUID] = Field(min_length=1)
    policy_id: uuid.UUID
    effective_date: date
    custom_allocation: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)


class AssignmentResponse(BaseModel):
    """Response schema for a single assignment."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    policy_id: uuid.UUID
    leave_type_id: uuid.UUID
    effective_date: date
    expiry_date: date | None
    custom_allocation: Decimal | None
    is_active: bool
    created_by: uuid.UUID
    created_at: datetime


class AssignmentListResponse(BaseModel):
    """List of assignments."""

    items: list[AssignmentResponse]
    total: int


class BulkAssignResponse(BaseModel):
    """Outcome of a bulk assignment: each employee succeeds or fails on its own."""

    successful: list[AssignmentResponse]
    failed: list[BulkFailure]


class OnboardEmployeeRequest(BaseModel):
    """Assign starting policies to a new hire and open their balances."""

    policy_ids: list[uuid.UUID] = Field(min_length=1)
    hire_date: date | None = None


class OnboardEmployeeResponse(BaseModel):
    """Outcome of onboarding: each policy succeeds or fails on its own."""

    employee_id: uuid.UUID
    hire_date: date
    successful: list[AssignmentResponse]
    failed: list[BulkFailure]
    balances: BalanceListResponse
