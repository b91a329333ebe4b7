# ruff: noqa: B008, TC001, TC003
"""API endpoints for accrual and carryover batch jobs."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from hr_leave.api.deps import AdminDep
from hr_leave.db import SessionDep
from hr_leave.schemas.accrual import (
    AccrualRunResponse,
    AccrualScheduleResponse,
    CarryoverRunResponse,
    TriggerAccrualRequest,
    YearRequest,
)
from hr_leave.services import accrual as accrual_service
from hr_leave.services.carryover import process_carryovers

# ---------------------------------------------------------------------------
# Admin triggers: /accruals
# ---------------------------------------------------------------------------

accrual_router = APIRouter(prefix="/accruals", tags=["accruals"])


def _to_response(result: accrual_service.AccrualRunResult) -> AccrualRunResponse:
    return AccrualRunResponse(
        as_of=result.as_of,
        processed_count=result.processed_count,
        total_accrued=result.total_accrued,
        errors=result.errors,
        success=result.success,
    )


@accrual_router.post("/run", response_model=AccrualRunResponse)
async def trigger_accruals(
    session: SessionDep,
    auth: AdminDep,
    payload: TriggerAccrualRequest | None = None,
) -> AccrualRunResponse:
    """Run due scheduled accruals for every active employee (admin only).

    Useful for backfills; re-running for the same date posts nothing new.
    """
    as_of = payload.as_of if payload is not None else None
    return _to_response(await accrual_service.process_scheduled_accruals(session, as_of))


@accrual_router.post("/employees/{employee_id}/run", response_model=AccrualRunResponse)
async def trigger_employee_accruals(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    payload: TriggerAccrualRequest | None = None,
) -> AccrualRunResponse:
    """Run due accruals for one employee (admin only)."""
    as_of = payload.as_of if payload is not None else None
    employee_result = await accrual_service.process_employee_accruals(session, employee_id, as_of)
    result = accrual_service.AccrualRunResult(
        as_of=employee_result.as_of,
        processed_count=1 if employee_result.total_accrued > 0 else 0,
        total_accrued=employee_result.total_accrued,
        errors=employee_result.errors,
    )
    return _to_response(result)


@accrual_router.post("/year-end", response_model=AccrualRunResponse)
async def trigger_year_end(
    payload: YearRequest,
    session: SessionDep,
    auth: AdminDep,
) -> AccrualRunResponse:
    """Top up annually-accruing balances to their target for the year (admin only)."""
    return _to_response(await accrual_service.process_year_end_accruals(session, payload.year))


@accrual_router.get("/schedule", response_model=AccrualScheduleResponse)
async def get_accrual_schedule(
    session: SessionDep,
    auth: AdminDep,
    employee_id: uuid.UUID | None = Query(default=None),
) -> AccrualScheduleResponse:
    """Next expected accrual date per active assignment."""
    return await accrual_service.get_accrual_schedule(session, employee_id)


# ---------------------------------------------------------------------------
# Carryover: /carryovers
# ---------------------------------------------------------------------------

carryover_router = APIRouter(prefix="/carryovers", tags=["accruals"])


@carryover_router.post("/run", response_model=CarryoverRunResponse)
async def trigger_carryover(
    payload: YearRequest,
    session: SessionDep,
    auth: AdminDep,
) -> CarryoverRunResponse:
    """Carry unused days of ``year - 1`` into ``year`` (admin only)."""
    result = await process_carryovers(session, payload.year)
    return CarryoverRunResponse(
        year=result.year,
        processed_count=result.processed_count,
        total_carried_over=result.total_carried_over,
        total_expired=result.total_expired,
        errors=result.errors,
        success=result.success,
    )
