# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hr_leave.models.base import DAYS_TYPE, TimestampMixin, UpdatedAtMixin, UUIDBase
from hr_leave.models.enums import RequestStatus


class LeaveRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An employee's leave request and its workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (sa.Index("ix_request_employee_status", "employee_id", "status"),)

    employee_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    total_days: Decimal = Field(sa_type=DAYS_TYPE)
    reason: str | None = None
    status: str = Field(
        default=RequestStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    approved_by: uuid.UUID | None = None
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    denial_reason: str | None = None
    cancellation_reason: str | None = None
    created_by: uuid.UUID
    updated_by: uuid.UUID | None = None
