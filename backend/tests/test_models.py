from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from hr_leave.models import (
    AccrualHistoryEntry,
    EmployeePolicyAssignment,
    LeaveBalance,
    LeavePolicy,
    LeaveRequest,
    LeaveType,
    SQLModel,
)
from hr_leave.models.enums import AccrualFrequency, RequestStatus

EXPECTED_TABLES = {
    "accrual_history",
    "employee_policy_assignment",
    "leave_balance",
    "leave_policy",
    "leave_request",
    "leave_type",
}


def test_all_tables_registered() -> None:
    table_names = set(SQLModel.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(table_names)


def test_leave_type_defaults() -> None:
    leave_type = LeaveType(name="Vacation", created_by=uuid.uuid4())
    assert leave_type.id is not None
    assert leave_type.color_code == "#007bff"
    assert leave_type.is_paid is True
    assert leave_type.requires_approval is True
    assert leave_type.advance_notice_days == 0
    assert leave_type.max_consecutive_days is None
    assert leave_type.is_active is True


def test_leave_policy_defaults() -> None:
    policy = LeavePolicy(name="Standard", leave_type_id=uuid.uuid4(), created_by=uuid.uuid4())
    assert policy.accrual_frequency == AccrualFrequency.MONTHLY
    assert policy.max_balance is None
    assert policy.probation_period_months == 0
    assert policy.is_active is True


def test_assignment_defaults() -> None:
    assignment = EmployeePolicyAssignment(
        employee_id=uuid.uuid4(),
        policy_id=uuid.uuid4(),
        leave_type_id=uuid.uuid4(),
        effective_date=date(2025, 1, 1),
        created_by=uuid.uuid4(),
    )
    assert assignment.expiry_date is None
    assert assignment.custom_allocation is None
    assert assignment.is_active is True


def test_balance_starts_at_zero() -> None:
    balance = LeaveBalance(employee_id=uuid.uuid4(), leave_type_id=uuid.uuid4(), policy_year=2025)
    assert balance.allocated_days == Decimal(0)
    assert balance.used_days == Decimal(0)
    assert balance.pending_days == Decimal(0)
    assert balance.carried_over_days == Decimal(0)
    assert balance.available_days == Decimal(0)
    assert balance.last_accrual_date is None
    assert balance.version == 1


def test_leave_request_defaults_to_pending() -> None:
    request = LeaveRequest(
        employee_id=uuid.uuid4(),
        leave_type_id=uuid.uuid4(),
        start_date=date(2025, 3, 10),
        end_date=date(2025, 3, 12),
        total_days=Decimal(3),
        created_by=uuid.uuid4(),
    )
    assert request.status == RequestStatus.PENDING
    assert request.approved_by is None
    assert request.denial_reason is None


def test_history_idempotency_key_is_unique() -> None:
    table = SQLModel.metadata.tables["accrual_history"]
    unique_columns = [
        {c.name for c in constraint.columns}
        for constraint in table.constraints
        if constraint.__class__.__name__ == "UniqueConstraint"
    ]
    assert {"idempotency_key"} in unique_columns


def test_history_entry_instantiation() -> None:
    entry = AccrualHistoryEntry(
        employee_id=uuid.uuid4(),
        leave_type_id=uuid.uuid4(),
        policy_year=2025,
        change_type="accrual",
        entry_date=date(2025, 1, 31),
        amount=Decimal("1.75"),
        balance_before=Decimal(0),
        balance_after=Decimal("1.75"),
        reason="monthly_accrual",
    )
    assert entry.idempotency_key is None
    assert entry.created_by is None


def test_balance_primary_key_is_employee_type_year() -> None:
    table = SQLModel.metadata.tables["leave_balance"]
    assert [c.name for c in table.primary_key.columns] == ["employee_id", "leave_type_id", "policy_year"]


def test_ledger_rows_block_leave_type_deletion() -> None:
    for name in ("leave_balance", "accrual_history"):
        table = SQLModel.metadata.tables[name]
        (fk,) = [fk for fk in table.foreign_keys if fk.target_fullname == "leave_type.id"]
        assert fk.ondelete == "RESTRICT"
