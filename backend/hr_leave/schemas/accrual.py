# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from hr_leave.models.enums import AccrualFrequency


class TriggerAccrualRequest(BaseModel):
    """Request body for manually triggering scheduled accruals."""

    as_of: date | None = None


class YearRequest(BaseModel):
    """Request body for year-scoped batch jobs (year-end top-up, carryover)."""

    year: int = Field(ge=1970, le=9999)


class InitializeBalancesRequest(BaseModel):
    """Request body for posting prorated initial allocations."""

    effective_date: date | None = None


class AccrualRunResponse(BaseModel):
    """Partial-failure report of an accrual batch."""

    as_of: date
    processed_count: int
    total_accrued: Decimal
    errors: list[str]
    success: bool


class CarryoverRunResponse(BaseModel):
    """Partial-failure report of a carryover batch."""

    year: int
    processed_count: int
    total_carried_over: Decimal
    total_expired: Decimal
    errors: list[str]
    success: bool


class AccrualScheduleItem(BaseModel):
    """When the next accrual for one assignment is expected."""

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    policy_id: uuid.UUID
    accrual_frequency: AccrualFrequency
    accrual_rate: Decimal
    last_accrual_date: date | None
    next_accrual_date: date


class AccrualScheduleResponse(BaseModel):
    """Upcoming accruals."""

    items: list[AccrualScheduleItem]
    total: int
