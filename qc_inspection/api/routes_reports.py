"""
LAR report endpoints (``/api/reports``).

Weekly Line Acceptance Rate and DPPM over first-round inspections
at the report station, plus the values available for the filters.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.core.database import get_db
from qc_inspection.schemas.report import LarChartResponse, LarDefectResponse
from qc_inspection.services.report_service import ReportService

router = APIRouter()


@router.get("/lar/chart", response_model=LarChartResponse)
async def get_lar_chart(
    year_from: Optional[str] = Query(None, description="Fiscal year, e.g. 2026"),
    ww_from: Optional[str] = Query(None, description="Two-digit work week, e.g. 01"),
    year_to: Optional[str] = Query(None),
    ww_to: Optional[str] = Query(None),
    model: Optional[str] = Query(None, description='"model version" label'),
    db: AsyncSession = Depends(get_db)
):
    """
    Weekly LAR and DPPM.

    Every week of the range is returned; weeks without inspections have
    zero counts and null ``lar`` / ``dppm``.
    """
    service = ReportService(db)
    rows = await service.lar_chart(year_from, ww_from, year_to, ww_to, model)
    return {"station": service.station, "model": model, "rows": rows}


@router.get("/lar/defects", response_model=LarDefectResponse)
async def get_lar_defects(
    year_from: Optional[str] = Query(None),
    ww_from: Optional[str] = Query(None),
    year_to: Optional[str] = Query(None),
    ww_to: Optional[str] = Query(None),
    model: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """NG quantity per week and defect type."""
    service = ReportService(db)
    rows = await service.lar_defects(year_from, ww_from, year_to, ww_to, model)
    return {"station": service.station, "model": model, "rows": rows}


@router.get("/options/models", response_model=List[str])
async def get_model_options(db: AsyncSession = Depends(get_db)):
    return await ReportService(db).available_models()


@router.get("/options/fiscal-years", response_model=List[str])
async def get_fiscal_year_options(db: AsyncSession = Depends(get_db)):
    return await ReportService(db).fiscal_years()


@router.get("/options/work-weeks", response_model=List[str])
async def get_work_week_options(
    fy: Optional[str] = Query(None, description="Restrict to one fiscal year"),
    db: AsyncSession = Depends(get_db)
):
    return await ReportService(db).work_weeks(fy)
