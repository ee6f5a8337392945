"""Seed defect types and sampling reasons.

Names that already exist are skipped, so the script can be re-run.

Usage:
    python -m qc_inspection.scripts.seed_master_data --defect Crack --defect Scratch --sampling-reason "Normal sampling"

Environment:
- DATABASE_URL (read through qc_inspection.core.config.Settings / .env)
"""

import argparse
import asyncio
import sys
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.core import database
from qc_inspection.core.database import Base, get_db_context, init_db, close_db
from qc_inspection.core.logging import get_logger
from qc_inspection.models import Defect, SamplingReason

logger = get_logger(__name__)


async def _add_missing(db: AsyncSession, model, names: Iterable[str]) -> List[str]:
    wanted = []
    for name in names:
        name = name.strip()
        if name and name not in wanted:
            wanted.append(name)
    if not wanted:
        return []

    existing = set((await db.execute(select(model.name).where(model.name.in_(wanted)))).scalars().all())
    added = [name for name in wanted if name not in existing]
    db.add_all(model(name=name) for name in added)
    return added


async def seed_master_data(
    db: AsyncSession,
    defects: Iterable[str] = (),
    sampling_reasons: Iterable[str] = (),
) -> Dict[str, List[str]]:
    """Add the missing names; the caller commits."""
    result = {
        "defects": await _add_missing(db, Defect, defects),
        "sampling_reasons": await _add_missing(db, SamplingReason, sampling_reasons),
    }
    logger.info("Master data seeded", **result)
    return result


async def main_async(argv: List[str]) -> int:
    parser = argparse.ArgumentParser(description="Seed defect types and sampling reasons")
    parser.add_argument("--defect", action="append", default=[], help="Defect name (repeatable)")
    parser.add_argument(
        "--sampling-reason", action="append", default=[], help="Sampling reason name (repeatable)"
    )
    args = parser.parse_args(argv)

    await init_db()
    try:
        async with database.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with get_db_context() as db:
            result = await seed_master_data(db, args.defect, args.sampling_reason)
    finally:
        await close_db()

    sys.stdout.write(f"defects added: {', '.join(result['defects']) or '-'}\n")
    sys.stdout.write(f"sampling reasons added: {', '.join(result['sampling_reasons']) or '-'}\n")
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(main_async(sys.argv[1:])))


if __name__ == "__main__":
    main()
