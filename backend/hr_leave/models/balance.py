# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from hr_leave.models.base import DAYS_TYPE, ZERO_DAYS


def _now_utc() -> datetime:
    return datetime.now(UTC)


class LeaveBalance(SQLModel, table=True):
    """Running balance for one employee, leave type and policy year.

    ``available_days`` is maintained as
    ``allocated + carried_over - used - pending`` on every mutation.
    """

    __tablename__ = "leave_balance"
    __table_args__ = (sa.PrimaryKeyConstraint("employee_id", "leave_type_id", "policy_year"),)

    employee_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="RESTRICT")),
    )
    policy_year: int
    allocated_days: Decimal = Field(default=ZERO_DAYS, sa_type=DAYS_TYPE, sa_column_kwargs={"server_default": "0"})
    used_days: Decimal = Field(default=ZERO_DAYS, sa_type=DAYS_TYPE, sa_column_kwargs={"server_default": "0"})
    pending_days: Decimal = Field(default=ZERO_DAYS, sa_type=DAYS_TYPE, sa_column_kwargs={"server_default": "0"})
    carried_over_days: Decimal = Field(
        default=ZERO_DAYS, sa_type=DAYS_TYPE, sa_column_kwargs={"server_default": "0"}
    )
    available_days: Decimal = Field(default=ZERO_DAYS, sa_type=DAYS_TYPE, sa_column_kwargs={"server_default": "0"})
    last_accrual_date: date | None = None
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
