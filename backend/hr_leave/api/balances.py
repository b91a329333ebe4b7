# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from hr_leave.api.deps import AdminDep, SelfOrAdminDep
from hr_leave.db import SessionDep
from hr_leave.schemas.accrual import InitializeBalancesRequest
from hr_leave.schemas.balance import (
    BalanceListResponse,
    CreateAdjustmentRequest,
    HistoryEntryResponse,
    HistoryListResponse,
)
from hr_leave.services import accrual as accrual_service
from hr_leave.services import ledger
from hr_leave.services.clock import get_clock

# ---------------------------------------------------------------------------
# Employee balances: /employees/{employee_id}/balances
# ---------------------------------------------------------------------------

employee_balance_router = APIRouter(prefix="/employees/{employee_id}/balances", tags=["balances"])


@employee_balance_router.get("", response_model=BalanceListResponse)
async def get_employee_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: SelfOrAdminDep,
    year: int | None = Query(default=None, ge=1970, le=9999),
) -> BalanceListResponse:
    """All leave-type balances of an employee for a policy year (default: current year)."""
    policy_year = year if year is not None else get_clock().today().year
    return await ledger.list_employee_balances(session, employee_id, policy_year)


@employee_balance_router.get("/history", response_model=HistoryListResponse)
async def get_balance_history(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: SelfOrAdminDep,
    leave_type_id: uuid.UUID | None = Query(default=None),
    year: int | None = Query(default=None, ge=1970, le=9999),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HistoryListResponse:
    """Accrual history of an employee, newest first."""
    return await ledger.get_balance_history(session, employee_id, leave_type_id, year, offset, limit)


@employee_balance_router.post("/initialize", response_model=BalanceListResponse)
async def initialize_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    payload: InitializeBalancesRequest | None = None,
) -> BalanceListResponse:
    """Post prorated initial allocations for the employee's active assignments (admin only)."""
    effective_date = payload.effective_date if payload is not None else None
    return await accrual_service.initialize_employee_balances(session, employee_id, effective_date)


# ---------------------------------------------------------------------------
# Manual adjustments: /adjustments
# ---------------------------------------------------------------------------

adjustment_router = APIRouter(prefix="/adjustments", tags=["balances"])


@adjustment_router.post("", response_model=HistoryEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_adjustment(
    payload: CreateAdjustmentRequest,
    session: SessionDep,
    auth: AdminDep,
) -> HistoryEntryResponse:
    """Post a signed manual adjustment to an employee's balance (admin only)."""
    return await accrual_service.apply_manual_adjustment(session, auth, payload)
