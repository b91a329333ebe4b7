from sqlmodel import SQLModel

from hr_leave.models.assignment import EmployeePolicyAssignment
from hr_leave.models.balance import LeaveBalance
from hr_leave.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from hr_leave.models.enums import (
    AccrualFrequency,
    BalanceChangeType,
    EmploymentStatus,
    RequestStatus,
    Role,
)
from hr_leave.models.history import AccrualHistoryEntry
from hr_leave.models.leave_type import LeaveType
from hr_leave.models.policy import LeavePolicy
from hr_leave.models.request import LeaveRequest

__all__ = [
    "AccrualFrequency",
    "AccrualHistoryEntry",
    "BalanceChangeType",
    "EmployeePolicyAssignment",
    "EmploymentStatus",
    "LeaveBalance",
    "LeavePolicy",
    "LeaveRequest",
    "LeaveType",
    "RequestStatus",
    "Role",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
]
