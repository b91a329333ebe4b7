"""Integration tests for the leave type catalog."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from conftest import ADMIN_ID, headers_for

from hr_leave.models.leave_type import LeaveType
from hr_leave.services import ledger

if TYPE_CHECKING:
    from conftest import LeaveWorld
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

BASE_URL = "/leave-types"
ADMIN_HEADERS = headers_for(ADMIN_ID)


async def test_create_leave_type(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        BASE_URL,
        json={"name": "Vacation", "max_consecutive_days": 15, "advance_notice_days": 7},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Vacation"
    assert data["color_code"] == "#007bff"
    assert data["max_consecutive_days"] == 15
    assert data["advance_notice_days"] == 7
    assert data["is_active"] is True
    assert data["created_by"] == str(ADMIN_ID)


async def test_create_duplicate_name_conflicts(async_client: AsyncClient) -> None:
    first = await async_client.post(BASE_URL, json={"name": "Sick Leave"}, headers=ADMIN_HEADERS)
    assert first.status_code == 201
    second = await async_client.post(BASE_URL, json={"name": "Sick Leave"}, headers=ADMIN_HEADERS)
    assert second.status_code == 409
    assert second.json()["error"] == "ConflictError"


async def test_create_rejects_bad_color(async_client: AsyncClient) -> None:
    resp = await async_client.post(BASE_URL, json={"name": "Odd", "color_code": "blue"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 422


async def test_create_requires_admin(async_client: AsyncClient, world: LeaveWorld) -> None:
    employee = world.employee()
    resp = await async_client.post(BASE_URL, json={"name": "Vacation"}, headers=headers_for(employee.id))
    assert resp.status_code == 403


async def test_unknown_user_is_forbidden(async_client: AsyncClient) -> None:
    resp = await async_client.get(BASE_URL, headers=headers_for(uuid.uuid4()))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "User has no active role"


async def test_missing_user_header_is_rejected(async_client: AsyncClient) -> None:
    resp = await async_client.get(BASE_URL)
    assert resp.status_code == 422


async def test_list_hides_inactive_by_default(async_client: AsyncClient, world: LeaveWorld) -> None:
    await world.leave_type("Vacation")
    retired = await world.leave_type("Sabbatical")
    await async_client.patch(f"{BASE_URL}/{retired.id}", json={"is_active": False}, headers=ADMIN_HEADERS)

    resp = await async_client.get(BASE_URL, headers=ADMIN_HEADERS)
    assert [lt["name"] for lt in resp.json()["items"]] == ["Vacation"]

    resp = await async_client.get(BASE_URL, params={"include_inactive": "true"}, headers=ADMIN_HEADERS)
    assert resp.json()["total"] == 2


async def test_update_leave_type(async_client: AsyncClient, world: LeaveWorld) -> None:
    leave_type = await world.leave_type("Vacation")
    resp = await async_client.patch(
        f"{BASE_URL}/{leave_type.id}",
        json={"description": "Paid time off", "advance_notice_days": 3},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["description"] == "Paid time off"
    assert data["advance_notice_days"] == 3
    assert data["updated_by"] == str(ADMIN_ID)
    assert data["updated_at"] is not None


async def test_update_rename_to_existing_name_conflicts(async_client: AsyncClient, world: LeaveWorld) -> None:
    await world.leave_type("Vacation")
    other = await world.leave_type("Sick Leave")
    resp = await async_client.patch(f"{BASE_URL}/{other.id}", json={"name": "Vacation"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 409


async def test_get_missing_leave_type(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{BASE_URL}/{uuid.uuid4()}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_delete_unreferenced_leave_type_hard_deletes(
    async_client: AsyncClient,
    world: LeaveWorld,
    db_session: AsyncSession,
) -> None:
    leave_type = await world.leave_type("Jury Duty")
    resp = await async_client.delete(f"{BASE_URL}/{leave_type.id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"outcome": "hard_deleted", "leave_type_id": str(leave_type.id)}
    assert await db_session.get(LeaveType, leave_type.id) is None


async def test_delete_referenced_leave_type_deactivates(async_client: AsyncClient, world: LeaveWorld) -> None:
    leave_type = await world.leave_type("Vacation")
    await world.policy(leave_type.id, "Standard")

    resp = await async_client.delete(f"{BASE_URL}/{leave_type.id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["outcome"] == "deactivated"
    assert data["policy_count"] == 1
    assert data["request_count"] == 0
    assert data["balance_count"] == 0

    fetched = await async_client.get(f"{BASE_URL}/{leave_type.id}", headers=ADMIN_HEADERS)
    assert fetched.json()["is_active"] is False


async def test_delete_leave_type_with_balances_keeps_the_ledger(
    async_client: AsyncClient,
    world: LeaveWorld,
    db_session: AsyncSession,
) -> None:
    leave_type = await world.leave_type("Bereavement")
    employee = world.employee()
    await world.grant(employee.id, leave_type.id, 3)

    resp = await async_client.delete(f"{BASE_URL}/{leave_type.id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["outcome"] == "deactivated"
    assert data["policy_count"] == 0
    assert data["balance_count"] == 1

    assert await db_session.get(LeaveType, leave_type.id) is not None
    history = await ledger.get_balance_history(db_session, employee.id, leave_type.id, 2025)
    assert history.total == 1


async def test_deactivated_leave_type_blocks_new_policies(async_client: AsyncClient, world: LeaveWorld) -> None:
    leave_type = await world.leave_type("Vacation")
    await async_client.patch(f"{BASE_URL}/{leave_type.id}", json={"is_active": False}, headers=ADMIN_HEADERS)
    resp = await async_client.post(
        "/policies",
        json={"name": "Late", "leave_type_id": str(leave_type.id), "annual_allocation": "10"},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot create a policy for an inactive leave type"


async def test_employee_can_read_catalog(async_client: AsyncClient, world: LeaveWorld) -> None:
    await world.leave_type("Vacation")
    employee = world.employee(hire_date=date(2024, 1, 1))
    resp = await async_client.get(BASE_URL, headers=headers_for(employee.id))
    assert resp.status_code == 200
    assert resp.json()["total"] == 1
