"""
LAR (Line Acceptance Rate) reports.

Computed over first-round inspections at the report station (OQA):

- LAR  = passed lots / inspected lots * 100
- DPPM = NG pieces / sampled pieces * 1,000,000

Lot counts and NG quantities are aggregated separately so that a lot with
several defect rows is still counted once.
"""

import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.core.config import Settings, get_settings
from qc_inspection.core.exceptions import InspectionValidationError, StoreError
from qc_inspection.core.logging import get_logger
from qc_inspection.models import InspectionRecord, DefectData, Defect
from qc_inspection.utils.fiscal_calendar import (
    calculate_fiscal_week_number,
    format_work_week,
    get_fiscal_year,
    weeks_in_fiscal_year,
)

logger = get_logger(__name__)

FIRST_ROUND = 1
WORK_WEEK_PATTERN = re.compile(r"^\d{2}$")
FISCAL_YEAR_PATTERN = re.compile(r"^\d{4}$")

WeekKey = Tuple[str, str]


def model_label():
    """SQL expression for the ``"model version"`` label used by the model filter."""
    return func.coalesce(InspectionRecord.model, "") + " " + func.coalesce(InspectionRecord.version, "")


def lar_percent(passed: int, total: int) -> Optional[float]:
    """
    >>> lar_percent(9, 10)
    90.0
    >>> lar_percent(0, 0) is None
    True
    """
    if not total:
        return None
    return round(passed / total * 100, 2)


def dppm(ng_qty: int, inspected_qty: int) -> Optional[float]:
    """
    >>> dppm(3, 1000)
    3000.0
    """
    if not inspected_qty:
        return None
    return round(ng_qty / inspected_qty * 1_000_000, 2)


class ReportService:
    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    @property
    def station(self) -> str:
        return self.settings.report_station

    def _resolve_range(
        self,
        year_from: Optional[str],
        ww_from: Optional[str],
        year_to: Optional[str],
        ww_to: Optional[str],
    ) -> Tuple[WeekKey, WeekKey]:
        """
        Fill in missing bounds and validate the range.

        Defaults: from week 01 of the current fiscal year to the current week.
        """
        for name, value in (("year_from", year_from), ("year_to", year_to)):
            if value is not None and not FISCAL_YEAR_PATTERN.match(value):
                raise InspectionValidationError(
                    f"Invalid fiscal year for {name}: {value}. Expected format: YYYY",
                    code="INVALID_FISCAL_YEAR",
                )
        for name, value in (("ww_from", ww_from), ("ww_to", ww_to)):
            if value is not None and not WORK_WEEK_PATTERN.match(value):
                raise InspectionValidationError(
                    f"Invalid work week format for {name}: {value}. Expected format: xx (e.g., 01, 52)",
                    code="INVALID_WORK_WEEK",
                )

        week_start_day = self.settings.fiscal_week_start_day
        start_month = self.settings.fiscal_year_start_month

        if year_from is None and year_to is None:
            today = date.today()
            current_fy = str(get_fiscal_year(today, week_start_day, start_month))
            year_from = year_to = current_fy
            ww_to = ww_to or format_work_week(calculate_fiscal_week_number(today, week_start_day, start_month))
        year_from = year_from or year_to
        year_to = year_to or year_from

        ww_from = ww_from or "01"
        ww_to = ww_to or format_work_week(weeks_in_fiscal_year(int(year_to), week_start_day, start_month))

        start, end = (year_from, ww_from), (year_to, ww_to)
        if start > end:
            raise InspectionValidationError(
                f"Range start {year_from}-{ww_from} is after range end {year_to}-{ww_to}",
                code="INVALID_RANGE",
            )
        return start, end

    def _weeks_between(self, start: WeekKey, end: WeekKey) -> List[WeekKey]:
        weeks = []
        for fy in range(int(start[0]), int(end[0]) + 1):
            first = int(start[1]) if fy == int(start[0]) else 1
            if fy == int(end[0]):
                last = int(end[1])
            else:
                last = weeks_in_fiscal_year(
                    fy, self.settings.fiscal_week_start_day, self.settings.fiscal_year_start_month
                )
            weeks.extend((str(fy), format_work_week(ww)) for ww in range(first, last + 1))
        return weeks

    def _filters(self, start: WeekKey, end: WeekKey, model: Optional[str]) -> list:
        fiscal_week = InspectionRecord.fy + InspectionRecord.ww
        filters = [
            InspectionRecord.station == self.station,
            InspectionRecord.round == FIRST_ROUND,
            fiscal_week >= start[0] + start[1],
            fiscal_week <= end[0] + end[1],
        ]
        if model:
            filters.append(model_label() == model.strip())
        return filters

    async def lar_chart(
        self,
        year_from: Optional[str] = None,
        ww_from: Optional[str] = None,
        year_to: Optional[str] = None,
        ww_to: Optional[str] = None,
        model: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """One row per fiscal week in the range, including weeks without inspections."""
        start, end = self._resolve_range(year_from, ww_from, year_to, ww_to)
        filters = self._filters(start, end, model)

        lots_stmt = (
            select(
                InspectionRecord.fy,
                InspectionRecord.ww,
                func.count(InspectionRecord.id),
                func.sum(case((InspectionRecord.judgment.is_(True), 1), else_=0)),
                func.sum(case((InspectionRecord.judgment.is_(False), 1), else_=0)),
                func.sum(func.coalesce(InspectionRecord.general_sampling_qty, 0)),
            )
            .where(*filters)
            .group_by(InspectionRecord.fy, InspectionRecord.ww)
        )
        ng_stmt = (
            select(
                InspectionRecord.fy,
                InspectionRecord.ww,
                func.sum(DefectData.ng_qty),
            )
            .join(DefectData, DefectData.inspection_no == InspectionRecord.inspection_no)
            .where(*filters)
            .group_by(InspectionRecord.fy, InspectionRecord.ww)
        )

        try:
            lot_rows = (await self.db.execute(lots_stmt)).all()
            ng_rows = (await self.db.execute(ng_stmt)).all()
        except SQLAlchemyError as e:
            logger.error("LAR chart query failed", error=str(e))
            raise StoreError("Could not compute the LAR chart") from e

        lots = {(fy, ww): row for fy, ww, *row in lot_rows}
        ng = {(fy, ww): int(total or 0) for fy, ww, total in ng_rows}

        result = []
        for key in self._weeks_between(start, end):
            total_lot, passed, failed, inspected = lots.get(key, (0, 0, 0, 0))
            passed, failed, inspected = int(passed or 0), int(failed or 0), int(inspected or 0)
            total_ng = ng.get(key, 0)
            result.append({
                "fy": key[0],
                "ww": key[1],
                "total_lot": total_lot,
                "total_pass_lot": passed,
                "total_fail_lot": failed,
                "total_inspection": inspected,
                "total_ng": total_ng,
                "lar": lar_percent(passed, total_lot),
                "dppm": dppm(total_ng, inspected),
            })

        logger.info(
            "LAR chart computed",
            start=f"{start[0]}-{start[1]}",
            end=f"{end[0]}-{end[1]}",
            model=model,
            weeks=len(result),
        )
        return result

    async def lar_defects(
        self,
        year_from: Optional[str] = None,
        ww_from: Optional[str] = None,
        year_to: Optional[str] = None,
        ww_to: Optional[str] = None,
        model: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """NG quantity per fiscal week and defect name."""
        start, end = self._resolve_range(year_from, ww_from, year_to, ww_to)
        ng_total = func.sum(DefectData.ng_qty)

        stmt = (
            select(InspectionRecord.fy, InspectionRecord.ww, Defect.name, ng_total)
            .join(DefectData, DefectData.inspection_no == InspectionRecord.inspection_no)
            .join(Defect, Defect.id == DefectData.defect_id)
            .where(*self._filters(start, end, model))
            .group_by(InspectionRecord.fy, InspectionRecord.ww, Defect.name)
            .order_by(InspectionRecord.fy, InspectionRecord.ww, ng_total.desc(), Defect.name)
        )
        try:
            rows = (await self.db.execute(stmt)).all()
        except SQLAlchemyError as e:
            logger.error("LAR defect query failed", error=str(e))
            raise StoreError("Could not compute the LAR defect breakdown") from e

        return [
            {"fy": fy, "ww": ww, "defect_name": name, "ng_qty": int(total or 0)}
            for fy, ww, name, total in rows
        ]

    # ------------------------------------------------------------------
    # Filter options
    # ------------------------------------------------------------------

    async def _distinct(self, stmt) -> List[str]:
        try:
            return [value for value in (await self.db.execute(stmt)).scalars().all() if value]
        except SQLAlchemyError as e:
            raise StoreError("Could not read report filter options") from e

    async def available_models(self) -> List[str]:
        label = model_label().label("model_label")
        stmt = (
            select(label)
            .distinct()
            .where(InspectionRecord.station == self.station, InspectionRecord.model.is_not(None))
            .order_by(label)
        )
        return [value.strip() for value in await self._distinct(stmt)]

    async def fiscal_years(self) -> List[str]:
        stmt = (
            select(InspectionRecord.fy)
            .distinct()
            .where(InspectionRecord.station == self.station)
            .order_by(InspectionRecord.fy.desc())
        )
        return await self._distinct(stmt)

    async def work_weeks(self, fiscal_year: Optional[str] = None) -> List[str]:
        stmt = select(InspectionRecord.ww).distinct().where(InspectionRecord.station == self.station)
        if fiscal_year:
            stmt = stmt.where(InspectionRecord.fy == fiscal_year)
        return await self._distinct(stmt.order_by(InspectionRecord.ww))
