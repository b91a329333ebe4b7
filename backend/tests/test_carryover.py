"""Tests for year-start carryover processing."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from conftest import ADMIN_ID, headers_for

from hr_leave.services import ledger
from hr_leave.services.carryover import process_carryovers, split_carryover

if TYPE_CHECKING:
    import uuid

    from conftest import LeaveWorld
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession


def test_split_carryover() -> None:
    assert split_carryover(Decimal(8), Decimal(5)) == (Decimal(5), Decimal(3))
    assert split_carryover(Decimal(3), Decimal(5)) == (Decimal(3), Decimal(0))
    assert split_carryover(Decimal(4), Decimal(0)) == (Decimal(0), Decimal(4))
    assert split_carryover(Decimal(-2), Decimal(5)) == (Decimal(0), Decimal(0))


async def _setup(
    world: LeaveWorld,
    *,
    carryover_limit: Decimal = Decimal(5),
    unused: int = 8,
) -> tuple[uuid.UUID, uuid.UUID]:
    employee = world.employee()
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id, carryover_limit=carryover_limit)
    await world.assign(employee.id, policy.id, date(2024, 1, 1))
    if unused:
        await world.grant(employee.id, leave_type.id, unused, effective_date=date(2024, 6, 1))
    return employee.id, leave_type.id


async def test_carryover_caps_at_limit(db_session: AsyncSession, world: LeaveWorld) -> None:
    employee_id, leave_type_id = await _setup(world)

    result = await process_carryovers(db_session, 2025)
    assert result.processed_count == 1
    assert result.total_carried_over == Decimal(5)
    assert result.total_expired == Decimal(3)
    assert result.success

    balance = await ledger.get_balance(db_session, employee_id, leave_type_id, 2025)
    assert balance is not None
    assert balance.carried_over_days == Decimal(5)
    assert balance.available_days == Decimal(5)

    history = await ledger.get_balance_history(db_session, employee_id, leave_type_id, 2025)
    assert len(history.items) == 1
    entry = history.items[0]
    assert entry.change_type == "carryover"
    assert entry.entry_date == date(2025, 1, 1)
    assert entry.reason == "Carryover from 2024"


async def test_previous_year_balance_is_untouched(db_session: AsyncSession, world: LeaveWorld) -> None:
    employee_id, leave_type_id = await _setup(world)
    await process_carryovers(db_session, 2025)
    assert await ledger.get_available_days(db_session, employee_id, leave_type_id, 2024) == Decimal(8)


async def test_rerun_carries_nothing_new(db_session: AsyncSession, world: LeaveWorld) -> None:
    employee_id, leave_type_id = await _setup(world)
    await process_carryovers(db_session, 2025)
    rerun = await process_carryovers(db_session, 2025)

    assert rerun.processed_count == 0
    assert rerun.total_carried_over == Decimal(0)
    balance = await ledger.get_balance(db_session, employee_id, leave_type_id, 2025)
    assert balance is not None
    assert balance.carried_over_days == Decimal(5)


async def test_zero_limit_expires_everything(db_session: AsyncSession, world: LeaveWorld) -> None:
    employee_id, leave_type_id = await _setup(world, carryover_limit=Decimal(0))
    result = await process_carryovers(db_session, 2025)

    assert result.processed_count == 1
    assert result.total_carried_over == Decimal(0)
    assert result.total_expired == Decimal(8)
    history = await ledger.get_balance_history(db_session, employee_id, leave_type_id, 2025)
    assert history.total == 1
    assert history.items[0].amount == Decimal(0)
    balance = await ledger.get_balance(db_session, employee_id, leave_type_id, 2025)
    assert balance is not None
    assert balance.carried_over_days == Decimal(0)


async def test_rerun_with_zero_limit_expires_nothing_twice(db_session: AsyncSession, world: LeaveWorld) -> None:
    await _setup(world, carryover_limit=Decimal(0))
    await process_carryovers(db_session, 2025)
    rerun = await process_carryovers(db_session, 2025)

    assert rerun.processed_count == 0
    assert rerun.total_expired == Decimal(0)


async def test_pending_days_do_not_carry_over(db_session: AsyncSession, world: LeaveWorld) -> None:
    employee_id, leave_type_id = await _setup(world, carryover_limit=Decimal(10))
    await ledger.reserve_pending(db_session, employee_id, leave_type_id, 2024, Decimal(6))
    await db_session.commit()

    result = await process_carryovers(db_session, 2025)
    assert result.total_carried_over == Decimal(2)


async def test_no_unused_days_is_skipped(db_session: AsyncSession, world: LeaveWorld) -> None:
    await _setup(world, unused=0)
    result = await process_carryovers(db_session, 2025)
    assert result.processed_count == 0
    assert result.errors == []


async def test_assignment_ended_before_new_year_is_skipped(db_session: AsyncSession, world: LeaveWorld) -> None:
    employee = world.employee()
    leave_type = await world.leave_type()
    policy = await world.policy(leave_type.id, carryover_limit=Decimal(5))
    await world.assign(employee.id, policy.id, date(2024, 1, 1), expiry_date=date(2024, 12, 31))
    await world.grant(employee.id, leave_type.id, 8, effective_date=date(2024, 6, 1))

    result = await process_carryovers(db_session, 2025)
    assert result.processed_count == 0
    assert await ledger.get_balance(db_session, employee.id, leave_type.id, 2025) is None


async def test_carryover_endpoint(async_client: AsyncClient, world: LeaveWorld) -> None:
    await _setup(world)
    resp = await async_client.post("/carryovers/run", json={"year": 2025}, headers=headers_for(ADMIN_ID))
    assert resp.status_code == 200
    data = resp.json()
    assert data["year"] == 2025
    assert data["processed_count"] == 1
    assert Decimal(data["total_carried_over"]) == Decimal(5)
    assert Decimal(data["total_expired"]) == Decimal(3)
    assert data["success"] is True
