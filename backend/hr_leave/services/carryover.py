"""Year-start carryover: move unused days from one policy year into the next, up to the policy limit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from hr_leave.models.balance import LeaveBalance
from hr_leave.models.base import ZERO_DAYS
from hr_leave.models.enums import BalanceChangeType
from hr_leave.services import ledger
from hr_leave.services.assignment import get_active_assignment

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class CarryoverRunResult:
    """Partial-failure report of a carryover run."""

    year: int
    processed_count: int = 0
    total_carried_over: Decimal = ZERO_DAYS
    total_expired: Decimal = ZERO_DAYS
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.processed_count > 0 or not self.errors


# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def split_carryover(available: Decimal, carryover_limit: Decimal) -> tuple[Decimal, Decimal]:
    """Split unused days into (carried, expired)."""
    if available <= 0:
        return ZERO_DAYS, ZERO_DAYS
    carried = min(available, max(carryover_limit, ZERO_DAYS))
    return carried, available - carried


def _build_carryover_key(employee_id: uuid.UUID, leave_type_id: uuid.UUID, year: int) -> str:
    return f"carryover:{employee_id}:{leave_type_id}:{year}"


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


async def process_carryovers(session: AsyncSession, year: int) -> CarryoverRunResult:
    """Carry unused ``year - 1`` days into ``year``.

    The governing policy is the one assigned on Jan 1 of ``year``. Carried
    days are posted as a carryover entry on the new year's balance;
    anything above the limit expires and is only logged. Re-running for the
    same year posts nothing new.
    """
    result = CarryoverRunResult(year=year)
    year_start = date(year, 1, 1)

    rows = await session.execute(
        select(LeaveBalance.employee_id, LeaveBalance.leave_type_id, LeaveBalance.available_days).where(
            col(LeaveBalance.policy_year) == year - 1,
            col(LeaveBalance.available_days) > 0,
        )
    )
    previous_balances = [(row.employee_id, row.leave_type_id, row.available_days) for row in rows.all()]

    for employee_id, leave_type_id, available in previous_balances:
        try:
            active = await get_active_assignment(session, employee_id, leave_type_id, year_start)
            if active is None:
                continue
            _, policy = active
            carried, expired = split_carryover(available, policy.carryover_limit)

            # A zero entry still marks the year as processed.
            entry = await ledger.mutate(
                session,
                employee_id,
                leave_type_id,
                ledger.BalanceChange(
                    change_type=BalanceChangeType.CARRYOVER,
                    amount=carried,
                    reason=f"Carryover from {year - 1}",
                    effective_date=year_start,
                    idempotency_key=_build_carryover_key(employee_id, leave_type_id, year),
                ),
            )
            if entry is None:
                continue
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.exception("Error processing carryover for employee=%s leave_type=%s", employee_id, leave_type_id)
            result.errors.append(f"Employee {employee_id}, leave type {leave_type_id}: {exc}")
            continue

        result.processed_count += 1
        result.total_carried_over += carried
        result.total_expired += expired
        if expired > 0:
            logger.info(
                "Expired %s unused days for employee=%s leave_type=%s at end of %d",
                expired,
                employee_id,
                leave_type_id,
                year - 1,
            )

    logger.info(
        "Carryover into %d: processed=%d carried=%s expired=%s errors=%d",
        year,
        result.processed_count,
        result.total_carried_over,
        result.total_expired,
        len(result.errors),
    )
    return result
