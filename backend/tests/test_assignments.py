"""Integration tests for policy assignment, supersession and active lookup."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from conftest import ADMIN_ID, TODAY, headers_for

from hr_leave.exceptions import ConflictError, NotFoundError
from hr_leave.models.assignment import EmployeePolicyAssignment
from hr_leave.services import assignment as assignment_service
from hr_leave.services import policy as policy_service

if TYPE_CHECKING:
    from conftest import LeaveWorld
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

ADMIN_HEADERS = headers_for(ADMIN_ID)


async def test_assign_policy(async_client: AsyncClient, world: LeaveWorld) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id)

    resp = await async_client.post(
        "/assignments",
        json={
            "employee_id": str(employee.id),
            "policy_id": str(policy.id),
            "effective_date": "2025-01-01",
            "custom_allocation": "25",
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["leave_type_id"] == str(leave_type.id)
    assert Decimal(data["custom_allocation"]) == Decimal(25)
    assert data["expiry_date"] is None
    assert data["is_active"] is True


async def test_assign_rejects_expiry_before_effective(async_client: AsyncClient, world: LeaveWorld) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id)
    resp = await async_client.post(
        "/assignments",
        json={
            "employee_id": str(employee.id),
            "policy_id": str(policy.id),
            "effective_date": "2025-06-01",
            "expiry_date": "2025-05-31",
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 422


async def test_assign_unknown_employee(world: LeaveWorld) -> None:
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id)
    with pytest.raises(NotFoundError, match="Employee not found"):
        await world.assign(uuid.uuid4(), policy.id)


async def test_assign_inactive_policy(world: LeaveWorld, db_session: AsyncSession) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id)
    await policy_service.deactivate_policy(db_session, policy.id)
    with pytest.raises(NotFoundError, match="Active leave policy not found"):
        await world.assign(employee.id, policy.id)


async def test_new_assignment_supersedes_older_one(world: LeaveWorld, db_session: AsyncSession) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    old_policy = await world.policy(leave_type.id, "Old")
    new_policy = await world.policy(leave_type.id, "New")

    old = await world.assign(employee.id, old_policy.id, date(2025, 1, 1))
    await world.assign(employee.id, new_policy.id, date(2025, 4, 1))

    superseded = await db_session.get(EmployeePolicyAssignment, old.id)
    assert superseded is not None
    # Still governing until the new one starts.
    assert superseded.is_active is True
    assert superseded.expiry_date == date(2025, 3, 31)

    lookup = assignment_service.get_active_assignment
    before = await lookup(db_session, employee.id, leave_type.id, date(2025, 3, 15))
    assert before is not None
    assert before[1].id == old_policy.id
    last_day = await lookup(db_session, employee.id, leave_type.id, date(2025, 3, 31))
    assert last_day is not None
    assert last_day[1].id == old_policy.id
    after = await lookup(db_session, employee.id, leave_type.id, date(2025, 4, 1))
    assert after is not None
    assert after[1].id == new_policy.id


async def test_backdated_assignment_deactivates_older_one(world: LeaveWorld, db_session: AsyncSession) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    old_policy = await world.policy(leave_type.id, "Old")
    new_policy = await world.policy(leave_type.id, "New")

    old = await world.assign(employee.id, old_policy.id, date(2025, 1, 1))
    await world.assign(employee.id, new_policy.id, date(2025, 2, 1))

    superseded = await db_session.get(EmployeePolicyAssignment, old.id)
    assert superseded is not None
    assert superseded.is_active is False
    assert superseded.expiry_date == date(2025, 1, 31)

    rows = await assignment_service.list_active_assignments(db_session, TODAY, employee_id=employee.id)
    assert [policy.id for _, policy in rows] == [new_policy.id]


async def test_assignment_after_expired_one_leaves_it_untouched(world: LeaveWorld, db_session: AsyncSession) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    old_policy = await world.policy(leave_type.id, "Old")
    new_policy = await world.policy(leave_type.id, "New")

    old = await world.assign(employee.id, old_policy.id, date(2025, 1, 1), expiry_date=date(2025, 2, 15))
    await world.assign(employee.id, new_policy.id, date(2025, 3, 1))

    earlier = await db_session.get(EmployeePolicyAssignment, old.id)
    assert earlier is not None
    assert earlier.expiry_date == date(2025, 2, 15)


async def test_assignment_not_starting_later_conflicts(world: LeaveWorld) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    first = await world.policy(leave_type.id, "First")
    second = await world.policy(leave_type.id, "Second")

    await world.assign(employee.id, first.id, date(2025, 4, 1))
    with pytest.raises(ConflictError, match="overlapping policy assignment"):
        await world.assign(employee.id, second.id, date(2025, 4, 1))


async def test_assignments_for_different_leave_types_coexist(world: LeaveWorld, db_session: AsyncSession) -> None:
    employee = world.employee()
    vacation = await world.leave_type("Vacation")
    sick = await world.leave_type("Sick Leave")
    await world.assign(employee.id, (await world.policy(vacation.id)).id)
    await world.assign(employee.id, (await world.policy(sick.id)).id)

    rows = await assignment_service.list_active_assignments(db_session, TODAY, employee_id=employee.id)
    assert {assignment.leave_type_id for assignment, _ in rows} == {vacation.id, sick.id}


async def test_active_assignment_respects_dates(world: LeaveWorld, db_session: AsyncSession) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id)
    await world.assign(employee.id, policy.id, date(2025, 2, 1), expiry_date=date(2025, 6, 30))

    lookup = assignment_service.get_active_assignment
    assert await lookup(db_session, employee.id, leave_type.id, date(2025, 1, 31)) is None
    assert await lookup(db_session, employee.id, leave_type.id, date(2025, 2, 1)) is not None
    assert await lookup(db_session, employee.id, leave_type.id, date(2025, 6, 30)) is not None
    assert await lookup(db_session, employee.id, leave_type.id, date(2025, 7, 1)) is None


async def test_bulk_assign_reports_failures(async_client: AsyncClient, world: LeaveWorld) -> None:
    alice = world.employee("Alice", "Adams")
    bob = world.employee("Bob", "Brown")
    stranger = uuid.uuid4()
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id)

    resp = await async_client.post(
        "/assignments/bulk",
        json={
            "employee_ids": [str(alice.id), str(stranger), str(bob.id)],
            "policy_id": str(policy.id),
            "effective_date": "2025-01-01",
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert {a["employee_id"] for a in data["successful"]} == {str(alice.id), str(bob.id)}
    assert data["failed"] == [{"id": str(stranger), "error": "Employee not found"}]


async def test_deactivate_assignment_ends_it_today(async_client: AsyncClient, world: LeaveWorld) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    assignment = await world.assign(employee.id, (await world.policy(leave_type.id)).id)

    resp = await async_client.post(f"/assignments/{assignment.id}/deactivate", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["is_active"] is False
    assert data["expiry_date"] == TODAY.isoformat()


async def test_list_employee_assignments(async_client: AsyncClient, world: LeaveWorld) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    old_policy = await world.policy(leave_type.id, "Old")
    new_policy = await world.policy(leave_type.id, "New")
    await world.assign(employee.id, old_policy.id, TODAY - timedelta(days=60))
    await world.assign(employee.id, new_policy.id, TODAY)

    url = f"/employees/{employee.id}/assignments"
    own = await async_client.get(url, headers=headers_for(employee.id))
    assert own.status_code == 200
    assert [a["policy_id"] for a in own.json()["items"]] == [str(new_policy.id)]

    everything = await async_client.get(url, params={"include_inactive": "true"}, headers=ADMIN_HEADERS)
    assert everything.json()["total"] == 2


async def test_employee_cannot_list_someone_elses_assignments(async_client: AsyncClient, world: LeaveWorld) -> None:
    alice = world.employee("Alice", "Adams")
    bob = world.employee("Bob", "Brown")
    resp = await async_client.get(f"/employees/{alice.id}/assignments", headers=headers_for(bob.id))
    assert resp.status_code == 403
