"""Fiscal calendar lookups (``/api/fiscal-calendar``)."""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, status

from qc_inspection.core.config import get_settings
from qc_inspection.utils.fiscal_calendar import (
    calculate_fiscal_week_number,
    fiscal_week_to_year_month,
    format_fiscal_week,
    format_work_week,
    get_fiscal_week_range,
    get_fiscal_year,
    weeks_in_fiscal_year,
)

router = APIRouter()


def _calendar_kwargs() -> Dict[str, int]:
    settings = get_settings()
    return {
        "week_start_day": settings.fiscal_week_start_day,
        "start_month": settings.fiscal_year_start_month,
    }


@router.get("/current")
async def get_current_fiscal_week(
    date_: Optional[date] = Query(None, alias="date", description="Defaults to today"),
) -> Dict[str, Any]:
    day = date_ or date.today()
    kwargs = _calendar_kwargs()
    fiscal_year = get_fiscal_year(day, **kwargs)
    week = calculate_fiscal_week_number(day, **kwargs)
    start, end = get_fiscal_week_range(fiscal_year, week, **kwargs)
    return {
        "date": day.isoformat(),
        "fy": str(fiscal_year),
        "ww": format_work_week(week),
        "label": format_fiscal_week(day, "YYYY Week WW", **kwargs),
        "week_start": start.isoformat(),
        "week_end": end.isoformat(),
        "weeks_in_year": weeks_in_fiscal_year(fiscal_year, **kwargs),
    }


@router.get("/week-range")
async def get_week_range(
    fy: int = Query(..., ge=2000, le=2100),
    ww: int = Query(..., ge=1, le=52),
) -> Dict[str, str]:
    start, end = get_fiscal_week_range(fy, ww, **_calendar_kwargs())
    return {"fy": str(fy), "ww": format_work_week(ww), "start": start.isoformat(), "end": end.isoformat()}


@router.get("/year-month")
async def get_year_month(
    fiscal_year_week: str = Query(..., alias="fyww", description="YYYYWW, e.g. 202601"),
) -> Dict[str, str]:
    """Calendar ``YYMM`` of the first day of a fiscal week."""
    try:
        year_month = fiscal_week_to_year_month(fiscal_year_week, **_calendar_kwargs())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"fyww": fiscal_year_week, "year_month": year_month}
