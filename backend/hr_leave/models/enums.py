from __future__ import annotations

import enum


class AccrualFrequency(enum.StrEnum):
    """How often a policy's accrual rate is posted."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


class BalanceChangeType(enum.StrEnum):
    """Kind of balance mutation recorded in the accrual history."""

    ACCRUAL = "accrual"
    USAGE = "usage"
    ADJUSTMENT = "adjustment"
    CARRYOVER = "carryover"


class RequestStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    WITHDRAWN = "withdrawn"
    CANCELLED = "cancelled"


class Role(enum.StrEnum):
    """Roles recognised by the request workflow."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    HR_ADMIN = "hr-admin"
    SUPER_ADMIN = "super-admin"


class EmploymentStatus(enum.StrEnum):
    """Employment status as reported by the employee directory."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"
