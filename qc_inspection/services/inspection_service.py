"""
Inspection record service.

CRUD over ``inspectiondata`` plus the derived-record factory that opens a
follow-up inspection (SIV by default) for the lot of an existing one.

Identifiers and rounds are computed from the current state of the table;
the UNIQUE constraints on ``inspection_no`` and (station, lot_no, round)
decide which of two concurrent writers wins. The loser rolls back,
recomputes and tries again.
"""

import math
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select, func, delete, case, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.core.config import Settings, get_settings
from qc_inspection.core.exceptions import (
    InspectionValidationError,
    NotFoundError,
    StoreError,
    UniquenessConflictError,
)
from qc_inspection.core.logging import get_logger
from qc_inspection.models import InspectionRecord, DefectData, SamplingReason
from qc_inspection.schemas.inspection import InspectionRecordCreate, InspectionRecordUpdate
from qc_inspection.services.inspection_number import (
    InspectionNumberGenerator,
    normalize_station,
    parse_work_week,
)
from qc_inspection.services.master_data import DefectDataService
from qc_inspection.services.sampling_round import SamplingRoundCounter, UNKNOWN_ROUND
from qc_inspection.utils.fiscal_calendar import (
    calculate_fiscal_week_number,
    format_work_week,
    get_fiscal_year,
    month_year,
)

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100

# Copied from the source record when a derived record is created
DERIVED_COPY_FIELDS = (
    "lot_no",
    "part_site",
    "item_no",
    "model",
    "version",
    "mc_line_no",
    "sampling_reason_id",
    "fvi_lot_qty",
)

# Left empty on a derived record, filled in by the inspector at the new station
DERIVED_BLANK_FIELDS = (
    "shift",
    "fvi_line_no",
    "qc_id",
    "general_sampling_qty",
    "crack_sampling_qty",
    "judgment",
)

IMMUTABLE_FIELDS = ("inspection_no", "station", "round")
NOT_NULL_FIELDS = ("lot_no", "inspection_date", "fy", "ww", "month_year")

SEARCH_COLUMNS = (
    InspectionRecord.inspection_no,
    InspectionRecord.station,
    InspectionRecord.shift,
    InspectionRecord.lot_no,
    InspectionRecord.part_site,
    InspectionRecord.item_no,
    InspectionRecord.model,
    InspectionRecord.version,
    InspectionRecord.fvi_line_no,
    InspectionRecord.mc_line_no,
)


class InspectionService:
    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.numbers = InspectionNumberGenerator(db, self.settings)
        self.rounds = SamplingRoundCounter(db)

    # ------------------------------------------------------------------
    # Fiscal calendar helpers
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def fiscal_year(self, value: date) -> str:
        return str(get_fiscal_year(
            value,
            week_start_day=self.settings.fiscal_week_start_day,
            start_month=self.settings.fiscal_year_start_month,
        ))

    def fiscal_week(self, value: date) -> str:
        return format_work_week(calculate_fiscal_week_number(
            value,
            week_start_day=self.settings.fiscal_week_start_day,
            start_month=self.settings.fiscal_year_start_month,
        ))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, record_id: int) -> InspectionRecord:
        try:
            record = await self.db.get(InspectionRecord, record_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read inspection record {record_id}") from e

        if record is None:
            raise NotFoundError(f"Inspection record {record_id} not found", code="INSPECTION_NOT_FOUND")
        return record

    async def list_records(
        self,
        search: Optional[str] = None,
        station: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """
        Paginated list, newest first.

        ``search`` matches case-insensitively anywhere in the number,
        station, shift, lot, part site, item, model, version and line columns.
        """
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        stmt = select(InspectionRecord)
        if station:
            stmt = stmt.where(InspectionRecord.station == station.strip().upper())
        if search and search.strip():
            term = search.strip()
            stmt = stmt.where(or_(*(column.icontains(term, autoescape=True) for column in SEARCH_COLUMNS)))

        count_stmt = select(func.count()).select_from(stmt.subquery())
        page_stmt = (
            stmt.order_by(InspectionRecord.inspection_date.desc(), InspectionRecord.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        try:
            total = (await self.db.execute(count_stmt)).scalar_one()
            items = (await self.db.execute(page_stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise StoreError("Could not list inspection records") from e

        return {
            "items": list(items),
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        }

    async def defects_for(self, inspection_no: str) -> List[DefectData]:
        return await DefectDataService(self.db).list_for_inspection(inspection_no)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _validate_create(self, data: Dict[str, Any]) -> List[str]:
        errors = []
        station = data.get("station")
        if not station:
            errors.append("station is required")
        if not data.get("lot_no"):
            errors.append("lot_no is required")

        if station and station.upper() not in self.settings.stations_without_line_fields:
            if not data.get("shift"):
                errors.append(f"shift is required for station {station.upper()}")
            if not data.get("fvi_line_no"):
                errors.append(f"fvi_line_no is required for station {station.upper()}")
        return errors

    async def _ensure_sampling_reason(self, sampling_reason_id: Optional[int]) -> None:
        if sampling_reason_id is None:
            return
        try:
            reason = await self.db.get(SamplingReason, sampling_reason_id)
        except SQLAlchemyError as e:
            raise StoreError("Could not read sampling reasons") from e
        if reason is None:
            raise InspectionValidationError(
                f"Sampling reason {sampling_reason_id} does not exist",
                code="UNKNOWN_SAMPLING_REASON",
            )

    async def _inspection_no_exists(self, inspection_no: str) -> bool:
        stmt = select(InspectionRecord.id).where(InspectionRecord.inspection_no == inspection_no)
        try:
            return (await self.db.execute(stmt)).first() is not None
        except SQLAlchemyError as e:
            raise StoreError("Could not read inspection numbers") from e

    async def _next_round(self, station: str, lot_no: str) -> int:
        round_no = await self.rounds.next_round(station, lot_no)
        if round_no == UNKNOWN_ROUND:
            raise StoreError(
                f"Could not determine the sampling round for {station}/{lot_no}",
                code="SAMPLING_ROUND_UNKNOWN",
            )
        return round_no

    async def _insert_with_retry(
        self,
        build: Callable[[], Awaitable[InspectionRecord]],
        retryable: bool,
    ) -> InspectionRecord:
        """
        Insert the record returned by ``build`` in its own transaction.

        ``build`` is called again after each uniqueness violation so that it
        can recompute the inspection number and round. When nothing in the
        record is computed (``retryable`` is False) the first violation is final.
        """
        max_attempts = self.settings.inspection_number_max_attempts if retryable else 1

        for attempt in range(1, max_attempts + 1):
            record = await build()
            self.db.add(record)
            try:
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                logger.warning(
                    "Inspection record insert conflicted",
                    inspection_no=record.inspection_no,
                    station=record.station,
                    lot_no=record.lot_no,
                    round=record.round,
                    attempt=attempt,
                    max_attempts=max_attempts,
                )
                if attempt == max_attempts:
                    raise UniquenessConflictError(
                        f"Inspection number {record.inspection_no} or round {record.round} "
                        f"for lot {record.lot_no} at {record.station} already exists",
                    ) from e
                continue
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error("Inspection record insert failed", error=str(e))
                raise StoreError("Could not save inspection record") from e

            await self.db.refresh(record)
            logger.info(
                "Inspection record created",
                id=record.id,
                inspection_no=record.inspection_no,
                station=record.station,
                lot_no=record.lot_no,
                round=record.round,
            )
            return record

        # max_attempts is at least 1, the loop always returns or raises
        raise StoreError("Could not save inspection record")

    async def create(self, payload: InspectionRecordCreate, user_id: int = 0) -> InspectionRecord:
        """
        Create an inspection record.

        Missing ``inspection_no`` / ``round`` are generated; missing ``fy``,
        ``ww`` and ``month_year`` are derived from ``inspection_date`` (now
        by default).

        Raises:
            InspectionValidationError: required fields missing or malformed
            UniquenessConflictError: the number or round is already taken
            StoreError: the store could not be read or written
        """
        data = payload.model_dump()

        errors = self._validate_create(data)
        if errors:
            raise InspectionValidationError("Validation failed", errors=errors)

        station = normalize_station(data.pop("station"))
        lot_no = data.pop("lot_no")
        supplied_no = data.pop("inspection_no")
        supplied_round = data.pop("round")

        inspection_date = data.pop("inspection_date") or self.now()
        ww = data.pop("ww")
        ww = format_work_week(parse_work_week(ww)) if ww else self.fiscal_week(inspection_date)
        fy = data.pop("fy") or self.fiscal_year(inspection_date)
        record_month = data.pop("month_year") or month_year(inspection_date)

        await self._ensure_sampling_reason(data.get("sampling_reason_id"))

        if supplied_no and await self._inspection_no_exists(supplied_no):
            raise UniquenessConflictError(
                f"Inspection number {supplied_no} already exists",
                code="INSPECTION_NO_EXISTS",
            )

        async def build() -> InspectionRecord:
            inspection_no = supplied_no or await self.numbers.generate(station, inspection_date, ww)
            round_no = supplied_round or await self._next_round(station, lot_no)
            return InspectionRecord(
                **data,
                station=station,
                lot_no=lot_no,
                inspection_no=inspection_no,
                inspection_date=inspection_date,
                fy=fy,
                ww=ww,
                month_year=record_month,
                round=round_no,
                created_by=user_id,
                updated_by=user_id,
            )

        retryable = supplied_no is None or supplied_round is None
        return await self._insert_with_retry(build, retryable=retryable)

    async def create_derived_record(
        self,
        source_id: int,
        user_id: int = 0,
        station: Optional[str] = None,
    ) -> InspectionRecord:
        """
        Open a follow-up inspection (SIV by default) for the lot of ``source_id``.

        Product fields are copied from the source, station-specific fields
        are left empty, ``inspection_no_ref`` points back at the source and
        the number / fiscal week / round are computed for *now*.

        Raises:
            NotFoundError: the source record does not exist (nothing is written)
            InspectionValidationError: the source is already at the target station
            UniquenessConflictError: no free number or round after all retries
            StoreError: the store could not be read or written
        """
        target_station = normalize_station(station or self.settings.derived_station)
        source = await self.get(source_id)

        if source.station == target_station:
            raise InspectionValidationError(
                f"Inspection {source.inspection_no} is already a {target_station} record",
                code="ALREADY_DERIVED",
            )

        # Plain values; the session may be rolled back between attempts
        copied = {field: getattr(source, field) for field in DERIVED_COPY_FIELDS}
        source_no = source.inspection_no

        now = self.now()
        fy = self.fiscal_year(now)
        ww = self.fiscal_week(now)

        async def build() -> InspectionRecord:
            inspection_no = await self.numbers.generate(target_station, now, ww)
            round_no = await self._next_round(target_station, copied["lot_no"])
            return InspectionRecord(
                **copied,
                **{field: None for field in DERIVED_BLANK_FIELDS},
                station=target_station,
                inspection_no=inspection_no,
                inspection_no_ref=source_no,
                inspection_date=now,
                fy=fy,
                ww=ww,
                month_year=month_year(now),
                round=round_no,
                created_by=user_id,
                updated_by=user_id,
            )

        record = await self._insert_with_retry(build, retryable=True)
        logger.info(
            "Derived inspection record created",
            source_id=source_id,
            source_inspection_no=source_no,
            inspection_no=record.inspection_no,
            station=target_station,
        )
        return record

    async def update(
        self,
        record_id: int,
        changes: InspectionRecordUpdate,
        user_id: int = 0,
    ) -> InspectionRecord:
        record = await self.get(record_id)
        data = changes.model_dump(exclude_unset=True)

        errors = []
        for field in IMMUTABLE_FIELDS:
            if field in data and data[field] != getattr(record, field):
                errors.append(f"{field} cannot be changed")
        for field in NOT_NULL_FIELDS:
            if field in data and data[field] in (None, ""):
                errors.append(f"{field} cannot be empty")
        if record.station not in self.settings.stations_without_line_fields:
            for field in ("shift", "fvi_line_no"):
                if field in data and not data[field]:
                    errors.append(f"{field} is required for station {record.station}")
        if errors:
            raise InspectionValidationError("Validation failed", errors=errors)

        for field in IMMUTABLE_FIELDS:
            data.pop(field, None)
        if "ww" in data:
            data["ww"] = format_work_week(parse_work_week(data["ww"]))
        if "sampling_reason_id" in data:
            await self._ensure_sampling_reason(data["sampling_reason_id"])

        for field, value in data.items():
            setattr(record, field, value)
        record.updated_by = user_id

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise UniquenessConflictError(
                f"Lot {data.get('lot_no')} already has round {record.round} at {record.station}"
            ) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Could not update inspection record {record_id}") from e

        await self.db.refresh(record)
        logger.info("Inspection record updated", id=record_id, fields=sorted(data))
        return record

    async def delete(self, record_id: int) -> None:
        """Remove a record together with its defect observations."""
        record = await self.get(record_id)
        inspection_no = record.inspection_no

        try:
            await self.db.execute(delete(DefectData).where(DefectData.inspection_no == inspection_no))
            await self.db.delete(record)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Could not delete inspection record {record_id}") from e

        logger.info("Inspection record deleted", id=record_id, inspection_no=inspection_no)

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def _count(self, *conditions) -> int:
        stmt = select(func.count(InspectionRecord.id)).where(*conditions)
        return (await self.db.execute(stmt)).scalar_one()

    async def station_statistics(self, station: str) -> Dict[str, Any]:
        station = normalize_station(station)
        now = self.now()
        fy = self.fiscal_year(now)
        ww = self.fiscal_week(now)
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        at_station = InspectionRecord.station == station

        try:
            stats = {
                "total": await self._count(at_station),
                "this_fiscal_year": await self._count(at_station, InspectionRecord.fy == fy),
                "this_month": await self._count(at_station, InspectionRecord.month_year == month_year(now)),
                "this_week": await self._count(
                    at_station, InspectionRecord.fy == fy, InspectionRecord.ww == ww
                ),
                "today": await self._count(
                    at_station,
                    InspectionRecord.inspection_date >= start_of_day,
                    InspectionRecord.inspection_date < start_of_day + timedelta(days=1),
                ),
            }
        except SQLAlchemyError as e:
            raise StoreError(f"Could not compute statistics for {station}") from e

        return {"station": station, "fy": fy, "ww": ww, **stats}

    def _recent_weeks(self, count: int) -> List[Tuple[str, str]]:
        """The last ``count`` fiscal weeks up to the current one, oldest first."""
        weeks: List[Tuple[str, str]] = []
        day = self.now()
        while len(weeks) < count:
            key = (self.fiscal_year(day), self.fiscal_week(day))
            # week 52 absorbs the tail of a long year
            if key not in weeks:
                weeks.append(key)
            day -= timedelta(days=7)
        weeks.reverse()
        return weeks

    async def weekly_trend(self, station: str, weeks: Optional[int] = None) -> List[Dict[str, Any]]:
        station = normalize_station(station)
        keys = self._recent_weeks(weeks or self.settings.weekly_trend_weeks)
        fiscal_years = {fy for fy, _ in keys}

        stmt = (
            select(
                InspectionRecord.fy,
                InspectionRecord.ww,
                func.count(InspectionRecord.id),
                func.sum(case((InspectionRecord.judgment.is_(True), 1), else_=0)),
                func.sum(case((InspectionRecord.judgment.is_(False), 1), else_=0)),
            )
            .where(InspectionRecord.station == station, InspectionRecord.fy.in_(fiscal_years))
            .group_by(InspectionRecord.fy, InspectionRecord.ww)
        )
        try:
            rows = (await self.db.execute(stmt)).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not compute weekly trend for {station}") from e

        by_week = {(fy, ww): (total, passed or 0, failed or 0) for fy, ww, total, passed, failed in rows}
        trend = []
        for fy, ww in keys:
            total, passed, failed = by_week.get((fy, ww), (0, 0, 0))
            trend.append({"fy": fy, "ww": ww, "total": total, "passed": passed, "failed": failed})
        return trend
