# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hr_leave.models.base import DAYS_TYPE, ZERO_DAYS, TimestampMixin, UpdatedAtMixin, UUIDBase
from hr_leave.models.enums import AccrualFrequency


class LeavePolicy(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Entitlement rules for one leave type: allocation, accrual, probation, carryover."""

    __tablename__ = "leave_policy"

    name: str = Field(max_length=100, unique=True)
    description: str | None = None
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id"), nullable=False, index=True),
    )
    annual_allocation: Decimal = Field(default=ZERO_DAYS, sa_type=DAYS_TYPE)
    accrual_rate: Decimal = Field(default=ZERO_DAYS, sa_type=DAYS_TYPE)
    accrual_frequency: str = Field(default=AccrualFrequency.MONTHLY, max_length=20)
    max_balance: Decimal | None = Field(default=None, sa_type=DAYS_TYPE)
    probation_period_months: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    carryover_limit: Decimal = Field(default=ZERO_DAYS, sa_type=DAYS_TYPE)
    is_active: bool = Field(default=True, index=True)
    created_by: uuid.UUID
