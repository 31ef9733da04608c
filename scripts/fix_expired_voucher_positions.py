#!/usr/bin/env python3
"""
Complete voucher positions whose ROI window has ended.

Finds active or unstaking entries opened from a used voucher whose
roi_end_date is in the past and completes them with end_date set to that
roi_end_date. Safe to run repeatedly.

Usage:
    python scripts/fix_expired_voucher_positions.py [--dry-run]
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger

from app.config.database import async_session_maker, engine
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.services.distribution.voucher_reconciler import VoucherExpiryReconciler
from app.utils.datetime_utils import utc_now

logger.remove()
logger.add(sys.stderr, level="INFO")


async def main(dry_run: bool) -> int:
    """Run the reconciliation. Returns the process exit code."""
    try:
        async with async_session_maker() as session:
            if dry_run:
                positions = await StakingEntryRepository(session).find_expired_voucher_positions(
                    utc_now()
                )
                for entry_id, roi_end_date in positions:
                    logger.info(f"Entry {entry_id} expired at {roi_end_date.isoformat()}")
                logger.info(f"{len(positions)} voucher positions would be completed")
                return 0

            summary = await VoucherExpiryReconciler(session).reconcile_expired_vouchers()
    finally:
        await engine.dispose()

    logger.info(
        f"Checked {summary.checked}, completed {summary.completed}, failed {summary.failed}"
    )
    return 1 if summary.failed else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--dry-run", action="store_true", help="Only list affected entries")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.dry_run)))
