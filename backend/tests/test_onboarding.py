"""Tests for new-hire onboarding."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from conftest import ADMIN_ID, headers_for

from hr_leave.exceptions import NotFoundError
from hr_leave.schemas.assignment import OnboardEmployeeRequest
from hr_leave.services import ledger
from hr_leave.services.onboarding import onboard_employee

if TYPE_CHECKING:
    from conftest import LeaveWorld
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

ADMIN_HEADERS = headers_for(ADMIN_ID)


async def test_onboarding_assigns_and_prorates(db_session: AsyncSession, world: LeaveWorld) -> None:
    employee = world.employee(hire_date=date(2025, 7, 1))
    vacation = await world.leave_type("Vacation")
    sick = await world.leave_type("Sick Leave")
    vacation_policy = await world.policy(vacation.id)
    sick_policy = await world.policy(sick.id)

    result = await onboard_employee(
        db_session,
        world.admin,
        employee.id,
        OnboardEmployeeRequest(policy_ids=[vacation_policy.id, sick_policy.id], hire_date=date(2025, 7, 1)),
    )

    assert result.failed == []
    assert {a.policy_id for a in result.successful} == {vacation_policy.id, sick_policy.id}
    assert all(a.effective_date == date(2025, 7, 1) for a in result.successful)
    assert result.balances.total == 2
    assert {b.allocated_days for b in result.balances.items} == {Decimal("10.59")}

    history = await ledger.get_balance_history(db_session, employee.id, vacation.id, 2025)
    assert [e.reason for e in history.items] == ["initial_allocation"]


async def test_one_bad_policy_does_not_block_the_others(db_session: AsyncSession, world: LeaveWorld) -> None:
    employee = world.employee(hire_date=date(2025, 1, 1))
    vacation = await world.leave_type("Vacation")
    sick = await world.leave_type("Sick Leave")
    first = await world.policy(vacation.id, "Standard")
    clashing = await world.policy(vacation.id, "Senior")
    sick_policy = await world.policy(sick.id)
    missing = uuid.uuid4()

    result = await onboard_employee(
        db_session,
        world.admin,
        employee.id,
        OnboardEmployeeRequest(policy_ids=[first.id, clashing.id, missing, sick_policy.id]),
    )

    assert [a.policy_id for a in result.successful] == [first.id, sick_policy.id]
    errors = {f.id: f.error for f in result.failed}
    assert set(errors) == {clashing.id, missing}
    assert "overlapping policy assignment" in errors[clashing.id]
    assert errors[missing] == "Leave policy not found"
    # Hire date falls back to the directory record.
    assert result.hire_date == date(2025, 1, 1)
    assert result.balances.total == 2
    assert {b.allocated_days for b in result.balances.items} == {Decimal(21)}


async def test_no_balances_when_every_policy_fails(db_session: AsyncSession, world: LeaveWorld) -> None:
    employee = world.employee()
    result = await onboard_employee(
        db_session, world.admin, employee.id, OnboardEmployeeRequest(policy_ids=[uuid.uuid4()])
    )

    assert result.successful == []
    assert len(result.failed) == 1
    assert result.balances.total == 0
    balances = await ledger.list_employee_balances(db_session, employee.id, 2025)
    assert balances.total == 0


async def test_onboarding_unknown_employee(db_session: AsyncSession, world: LeaveWorld) -> None:
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id)
    with pytest.raises(NotFoundError, match="Employee not found"):
        await onboard_employee(db_session, world.admin, uuid.uuid4(), OnboardEmployeeRequest(policy_ids=[policy.id]))


async def test_onboard_endpoint(async_client: AsyncClient, world: LeaveWorld) -> None:
    employee = world.employee(hire_date=date(2025, 7, 1))
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id)

    body = {"policy_ids": [str(policy.id)], "hire_date": "2025-07-01"}
    forbidden = await async_client.post(f"/employees/{employee.id}/onboard", json=body, headers=headers_for(employee.id))
    assert forbidden.status_code == 403

    resp = await async_client.post(f"/employees/{employee.id}/onboard", json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["hire_date"] == "2025-07-01"
    assert len(data["successful"]) == 1
    assert data["failed"] == []
    assert Decimal(data["balances"]["items"][0]["allocated_days"]) == Decimal("10.59")


async def test_onboard_requires_policies(async_client: AsyncClient, world: LeaveWorld) -> None:
    employee = world.employee()
    resp = await async_client.post(f"/employees/{employee.id}/onboard", json={"policy_ids": []}, headers=ADMIN_HEADERS)
    assert resp.status_code == 422
