"""
Sampling round counter.

Each (station, lot_no) pair is inspected in rounds 1, 2, 3...
The next round is the highest existing round + 1.
"""

from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.core.exceptions import InspectionValidationError, StoreError
from qc_inspection.core.logging import get_logger
from qc_inspection.models.inspection import InspectionRecord
from qc_inspection.services.inspection_number import normalize_station

logger = get_logger(__name__)

# Returned by next_round() when the store could not be read
UNKNOWN_ROUND = 0


def _normalize_lot_no(lot_no: Optional[str]) -> str:
    value = (lot_no or "").strip()
    if not value:
        raise InspectionValidationError("Lot number is required", code="LOT_NO_REQUIRED")
    return value


class SamplingRoundCounter:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def current_round(self, station: str, lot_no: str) -> int:
        """
        Highest existing round for (station, lot_no), 0 when there is none.

        Raises:
            InspectionValidationError: station or lot number missing
            StoreError: the lookup failed
        """
        station = normalize_station(station)
        lot_no = _normalize_lot_no(lot_no)

        stmt = select(func.coalesce(func.max(InspectionRecord.round), 0)).where(
            InspectionRecord.station == station,
            InspectionRecord.lot_no == lot_no,
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(
                f"Could not read sampling rounds for {station}/{lot_no}",
                code="SAMPLING_ROUND_LOOKUP_FAILED",
            ) from e
        return int(result.scalar_one())

    async def next_round(self, station: str, lot_no: str) -> int:
        """
        Next round for (station, lot_no).

        Returns ``UNKNOWN_ROUND`` (0) when the store could not be read;
        callers must not persist that value.
        """
        try:
            return await self.current_round(station, lot_no) + 1
        except StoreError as e:
            logger.warning(
                "Sampling round lookup failed, returning unknown round",
                station=station,
                lot_no=lot_no,
                error=str(e.__cause__ or e),
            )
            return UNKNOWN_ROUND


async def get_next_sampling_round(db: AsyncSession, station: str, lot_no: str) -> int:
    """Shortcut for ``SamplingRoundCounter(db).next_round(...)``."""
    return await SamplingRoundCounter(db).next_round(station, lot_no)
