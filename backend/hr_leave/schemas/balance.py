# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from hr_leave.models.enums import BalanceChangeType

# ---------------------------------------------------------------------------
# Balance response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Balance for one leave type in one policy year."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    policy_year: int
    allocated_days: Decimal
    used_days: Decimal
    pending_days: Decimal
    carried_over_days: Decimal
    available_days: Decimal
    last_accrual_date: date | None
    version: int
    updated_at: datetime


class BalanceListResponse(BaseModel):
    """All leave-type balances for an employee in one year."""

    items: list[BalanceResponse]
    total: int


# ---------------------------------------------------------------------------
# History response schemas
# ---------------------------------------------------------------------------


class HistoryEntryResponse(BaseModel):
    """A single accrual history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    policy_year: int
    change_type: BalanceChangeType
    entry_date: date
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    reason: str
    created_by: uuid.UUID | None
    created_at: datetime


class HistoryListResponse(BaseModel):
    """Accrual history, newest first."""

    items: list[HistoryEntryResponse]
    total: int


# ---------------------------------------------------------------------------
# Adjustment request schema
# ---------------------------------------------------------------------------


class CreateAdjustmentRequest(BaseModel):
    """Request body for an administrative balance adjustment."""

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    amount: Decimal = Field(
        max_digits=8,
        decimal_places=2,
        description="Signed day count: positive to grant, negative to deduct",
    )
    reason: str = Field(min_length=1, max_length=255)
    effective_date: date | None = None
