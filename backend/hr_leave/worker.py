"""Worker process for scheduled balance jobs.

Runs an asyncio loop that executes scheduled accruals once per interval.
On Jan 1 it also closes the previous year (annual top-up) and carries
unused days into the new one.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

from hr_leave.config import get_settings
from hr_leave.db import get_session_factory
from hr_leave.services.accrual import process_scheduled_accruals, process_year_end_accruals
from hr_leave.services.carryover import process_carryovers
from hr_leave.services.clock import get_clock

logger = logging.getLogger(__name__)


async def run_daily_jobs(today: date) -> None:
    """Run every job due on ``today``. Each job uses its own session."""
    session_factory = get_session_factory()

    logger.info("Running scheduled accruals for %s", today)
    try:
        async with session_factory() as session:
            result = await process_scheduled_accruals(session, today)
        logger.info(
            "Accrual run complete for %s: processed=%d accrued=%s errors=%d",
            today,
            result.processed_count,
            result.total_accrued,
            len(result.errors),
        )
    except Exception:
        logger.exception("Accrual run failed for %s", today)

    if (today.month, today.day) != (1, 1):
        return

    # Year rollover: top up the closing year before measuring what carries over.
    try:
        async with session_factory() as session:
            ye_result = await process_year_end_accruals(session, today.year - 1)
        logger.info(
            "Year-end run for %d: processed=%d accrued=%s errors=%d",
            today.year - 1,
            ye_result.processed_count,
            ye_result.total_accrued,
            len(ye_result.errors),
        )
    except Exception:
        logger.exception("Year-end run failed for %d", today.year - 1)

    try:
        async with session_factory() as session:
            co_result = await process_carryovers(session, today.year)
        logger.info(
            "Carryover run for %d: processed=%d carried=%s expired=%s errors=%d",
            today.year,
            co_result.processed_count,
            co_result.total_carried_over,
            co_result.total_expired,
            len(co_result.errors),
        )
    except Exception:
        logger.exception("Carryover run failed for %d", today.year)


async def run_accrual_loop() -> None:
    """Main worker loop."""
    interval = get_settings().accrual_interval_seconds
    logger.info("Accrual worker started (interval=%ds)", interval)

    while True:
        await run_daily_jobs(get_clock().today())
        await asyncio.sleep(interval)


def main() -> None:
    """Entry point for the worker process."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    asyncio.run(run_accrual_loop())


if __name__ == "__main__":
    main()
