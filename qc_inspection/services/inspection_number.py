"""
Inspection number generator.

Format: {station}{fiscalYY}{MM}{WW}-{DD}{NNNN}
Example: OQA260806-100001

- station:  station code as given (up to 3 characters, e.g. OQA)
- fiscalYY: last two digits of the fiscal year of the reference date
- MM:       calendar month of the reference date
- WW:       fiscal work week supplied by the caller, zero padded
- DD:       calendar day of the reference date
- NNNN:     running counter for the prefix, starting at 0001

The generator only reads. Two calls with no insert in between return
the same candidate; uniqueness is enforced when the record is written
(see ``InspectionService``).
"""

import time
from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.core.config import Settings, get_settings
from qc_inspection.core.exceptions import (
    InspectionValidationError,
    StoreError,
    UniquenessConflictError,
)
from qc_inspection.core.logging import get_logger
from qc_inspection.models.inspection import InspectionRecord
from qc_inspection.utils.fiscal_calendar import get_fiscal_year

logger = get_logger(__name__)

COUNTER_WIDTH = 4
MAX_COUNTER = 10 ** COUNTER_WIDTH - 1
MAX_STATION_LENGTH = 3
MAX_WORK_WEEK = 53


def validate_station(station: Optional[str]) -> str:
    """Reject a blank or over-long station code; the code itself is returned unchanged."""
    if not station or not station.strip():
        raise InspectionValidationError("Station is required", code="STATION_REQUIRED")
    if len(station) > MAX_STATION_LENGTH:
        raise InspectionValidationError(
            f"Station must be at most {MAX_STATION_LENGTH} characters: {station!r}",
            code="STATION_TOO_LONG",
        )
    return station


def normalize_station(station: Optional[str]) -> str:
    """Stored form of a station code: stripped and upper-cased."""
    return validate_station((station or "").strip().upper())


def parse_work_week(work_week: Union[str, int, None]) -> int:
    """'6' -> 6, '06' -> 6; anything outside 1-53 is rejected."""
    raw = str(work_week).strip() if work_week is not None else ""
    if not raw.isdigit():
        raise InspectionValidationError(
            f"Work week must be a number between 1 and {MAX_WORK_WEEK}: {work_week!r}",
            code="INVALID_WORK_WEEK",
        )
    value = int(raw)
    if not 1 <= value <= MAX_WORK_WEEK:
        raise InspectionValidationError(
            f"Work week must be a number between 1 and {MAX_WORK_WEEK}: {work_week!r}",
            code="INVALID_WORK_WEEK",
        )
    return value


def parse_reference_date(value: Union[date, datetime, str, None]) -> date:
    if value is None:
        raise InspectionValidationError("Reference date is required", code="DATE_REQUIRED")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).strip()).date()
    except ValueError as e:
        raise InspectionValidationError(
            f"Invalid date, expected YYYY-MM-DD: {value!r}",
            code="INVALID_DATE",
        ) from e


def parse_counter(inspection_no: Optional[str]) -> Optional[int]:
    """
    Running counter of an existing number (its last 4 characters).

    Returns None when they are not plain ASCII digits.

    >>> parse_counter("OQA260806-100012")
    12
    >>> parse_counter("OQA260806-10ABCD") is None
    True
    """
    if not inspection_no or len(inspection_no) < COUNTER_WIDTH:
        return None
    tail = inspection_no[-COUNTER_WIDTH:]
    if not (tail.isascii() and tail.isdigit()):
        return None
    return int(tail)


class InspectionNumberGenerator:
    """
    Inspection number generation service.

    Example:
    >>> generator = InspectionNumberGenerator(db)
    >>> await generator.generate("OQA", date(2025, 8, 10), "6")
    'OQA260806-100001'
    """

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def build_prefix(
        self,
        station: str,
        reference_date: Union[date, datetime, str],
        work_week: Union[str, int],
    ) -> str:
        """
        Build the fixed part of the number.

        >>> generator.build_prefix("OQA", date(2025, 8, 10), "6")
        'OQA260806-10'
        """
        station = validate_station(station)
        day = parse_reference_date(reference_date)
        week = parse_work_week(work_week)

        fiscal_year = get_fiscal_year(
            day,
            week_start_day=self.settings.fiscal_week_start_day,
            start_month=self.settings.fiscal_year_start_month,
        )
        return f"{station}{fiscal_year % 100:02d}{day.month:02d}{week:02d}-{day.day:02d}"

    async def next_counter(self, prefix: str) -> int:
        """
        Next running counter for ``prefix``: max existing + 1, or 1.

        Raises:
            SQLAlchemyError: the lookup failed
            UniquenessConflictError: all counters of the day are used
        """
        stmt = select(InspectionRecord.inspection_no).where(
            InspectionRecord.inspection_no.startswith(prefix, autoescape=True)
        )
        result = await self.db.execute(stmt)

        counters = []
        for value in result.scalars().all():
            # LIKE is case-insensitive on some backends
            if not value.startswith(prefix):
                continue
            counter = parse_counter(value)
            if counter is not None:
                counters.append(counter)

        next_value = max(counters, default=0) + 1
        if next_value > MAX_COUNTER:
            raise UniquenessConflictError(
                f"No inspection numbers left for prefix {prefix}",
                code="INSPECTION_NUMBER_EXHAUSTED",
            )
        return next_value

    def fallback(self, prefix: str) -> str:
        """Prefix + last four digits of the epoch milliseconds. Not guaranteed unique."""
        millis = int(time.time() * 1000)
        return f"{prefix}{millis % (MAX_COUNTER + 1):0{COUNTER_WIDTH}d}"

    async def generate(
        self,
        station: str,
        reference_date: Union[date, datetime, str],
        work_week: Union[str, int],
    ) -> str:
        """
        Generate the next inspection number.

        Raises:
            InspectionValidationError: station / date / work week are invalid
            UniquenessConflictError: the counter for the day is exhausted
            StoreError: the lookup failed and the fallback is disabled
        """
        prefix = self.build_prefix(station, reference_date, work_week)

        try:
            counter = await self.next_counter(prefix)
        except SQLAlchemyError as e:
            if not self.settings.inspection_number_fallback_enabled:
                logger.error("Inspection number lookup failed", prefix=prefix, error=str(e))
                raise StoreError(
                    f"Could not read existing inspection numbers for {prefix}",
                    code="INSPECTION_NUMBER_LOOKUP_FAILED",
                ) from e

            inspection_no = self.fallback(prefix)
            logger.warning(
                "Inspection number lookup failed, using timestamp fallback",
                station=station,
                reference_date=str(reference_date),
                work_week=str(work_week),
                inspection_no=inspection_no,
                error=str(e),
            )
            return inspection_no

        inspection_no = f"{prefix}{counter:0{COUNTER_WIDTH}d}"
        logger.debug("Inspection number generated", inspection_no=inspection_no)
        return inspection_no


async def generate_inspection_number(
    db: AsyncSession,
    station: str,
    reference_date: Union[date, datetime, str],
    work_week: Union[str, int],
) -> str:
    """
    Shortcut: generate an inspection number with the application settings.

    Examples:
        >>> from qc_inspection.services.inspection_number import generate_inspection_number
        >>> await generate_inspection_number(db, "OQA", date(2025, 8, 10), "6")
        'OQA260806-100001'
    """
    return await InspectionNumberGenerator(db).generate(station, reference_date, work_week)
