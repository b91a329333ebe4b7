# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hr_leave.models.base import DAYS_TYPE, TimestampMixin, UUIDBase


class EmployeePolicyAssignment(UUIDBase, TimestampMixin, table=True):
    """Links an employee to a leave policy with effective dating.

    ``leave_type_id`` is copied from the policy so the one-active-assignment
    per leave type rule can be checked without a join.
    """

    __tablename__ = "employee_policy_assignment"
    __table_args__ = (sa.Index("ix_assignment_employee_leave_type", "employee_id", "leave_type_id"),)

    employee_id: uuid.UUID = Field(index=True)
    policy_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_policy.id"), nullable=False, index=True),
    )
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id"), nullable=False),
    )
    effective_date: date
    expiry_date: date | None = None
    custom_allocation: Decimal | None = Field(default=None, sa_type=DAYS_TYPE)
    is_active: bool = Field(default=True, index=True)
    created_by: uuid.UUID
