# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hr_leave.models.base import DAYS_TYPE, TimestampMixin, UUIDBase


class AccrualHistoryEntry(UUIDBase, TimestampMixin, table=True):
    """Append-only record of a single balance mutation."""

    __tablename__ = "accrual_history"
    __table_args__ = (
        sa.Index("ix_history_balance_key", "employee_id", "leave_type_id", "policy_year"),
        sa.UniqueConstraint("idempotency_key", name="uq_history_idempotency"),
    )

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="RESTRICT"), nullable=False),
    )
    policy_year: int
    change_type: str = Field(max_length=20)
    entry_date: date
    amount: Decimal = Field(sa_type=DAYS_TYPE)
    balance_before: Decimal = Field(sa_type=DAYS_TYPE)
    balance_after: Decimal = Field(sa_type=DAYS_TYPE)
    reason: str = Field(max_length=255)
    idempotency_key: str | None = Field(default=None, max_length=255)
    created_by: uuid.UUID | None = None
