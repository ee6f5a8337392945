"""
Inspection record endpoints (``/api/inspectiondata``).

Fixed paths (sampling round, number generation, dashboard) are declared
before ``/{record_id}`` so they are not captured by it.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.api.deps import get_current_user_id
from qc_inspection.core.database import get_db
from qc_inspection.schemas.defect import DefectDataRead
from qc_inspection.schemas.inspection import (
    InspectionNumberResponse,
    InspectionRecordCreate,
    InspectionRecordList,
    InspectionRecordRead,
    InspectionRecordUpdate,
    SamplingRoundResponse,
    StationStatistics,
    WeeklyTrendPoint,
)
from qc_inspection.services.inspection_number import (
    InspectionNumberGenerator,
    normalize_station,
    parse_work_week,
)
from qc_inspection.services.inspection_service import InspectionService
from qc_inspection.services.sampling_round import SamplingRoundCounter
from qc_inspection.utils.fiscal_calendar import format_work_week

router = APIRouter()


@router.get("/sampling-round", response_model=SamplingRoundResponse)
async def get_sampling_round(
    station: str = Query(..., description="Station code", examples=["OQA"]),
    lotno: str = Query(..., description="Lot number"),
    db: AsyncSession = Depends(get_db)
):
    """Highest existing round for (station, lot); 0 when the lot has none."""
    round_no = await SamplingRoundCounter(db).current_round(station, lotno)
    return {"station": normalize_station(station), "lot_no": lotno.strip(), "round": round_no}


@router.get("/next-round", response_model=SamplingRoundResponse)
async def get_next_round(
    station: str = Query(..., description="Station code", examples=["OQA"]),
    lotno: str = Query(..., description="Lot number"),
    db: AsyncSession = Depends(get_db)
):
    """
    Round the next inspection of (station, lot) will get.

    ``round`` is 0 when the store could not be read.
    """
    round_no = await SamplingRoundCounter(db).next_round(station, lotno)
    return {"station": normalize_station(station), "lot_no": lotno.strip(), "round": round_no}


@router.get("/generate-inspection-number", response_model=InspectionNumberResponse)
async def generate_inspection_number(
    station: str = Query(..., description="Station code", examples=["OQA"]),
    date_: Optional[date] = Query(None, alias="date", description="Reference date, defaults to today"),
    ww: Optional[str] = Query(None, description="Fiscal work week, defaults to the current one"),
    db: AsyncSession = Depends(get_db)
):
    """
    Preview the next inspection number.

    Nothing is reserved: the number is checked again when the record is saved.
    """
    service = InspectionService(db)
    reference_date = date_ or service.now().date()
    work_week = ww or service.fiscal_week(reference_date)

    inspection_no = await InspectionNumberGenerator(db, service.settings).generate(
        station, reference_date, work_week
    )
    return {
        "station": station,
        "date": reference_date.isoformat(),
        "ww": format_work_week(parse_work_week(work_week)),
        "inspection_no": inspection_no,
    }


@router.get("/stats/{station}", response_model=StationStatistics)
async def get_station_statistics(
    station: str = Path(..., max_length=3),
    db: AsyncSession = Depends(get_db)
):
    return await InspectionService(db).station_statistics(station)


@router.get("/weekly-trend/{station}", response_model=List[WeeklyTrendPoint])
async def get_weekly_trend(
    station: str = Path(..., max_length=3),
    weeks: Optional[int] = Query(None, ge=1, le=104, description="Number of fiscal weeks"),
    db: AsyncSession = Depends(get_db)
):
    """Inspections per fiscal week for the last N weeks, oldest first."""
    return await InspectionService(db).weekly_trend(station, weeks)


@router.get("", response_model=InspectionRecordList)
@router.get("/", response_model=InspectionRecordList)
async def list_inspections(
    search: Optional[str] = Query(None, description="Case-insensitive text search"),
    station: Optional[str] = Query(None, max_length=3),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    return await InspectionService(db).list_records(search=search, station=station, page=page, limit=limit)


@router.post("", response_model=InspectionRecordRead, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=InspectionRecordRead, status_code=status.HTTP_201_CREATED)
async def create_inspection(
    payload: InspectionRecordCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Create an inspection record.

    ``inspection_no`` and ``round`` are generated when omitted.
    """
    return await InspectionService(db).create(payload, user_id)


@router.get("/{record_id}", response_model=InspectionRecordRead)
async def get_inspection(
    record_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db)
):
    return await InspectionService(db).get(record_id)


@router.put("/{record_id}", response_model=InspectionRecordRead)
async def update_inspection(
    payload: InspectionRecordUpdate,
    record_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await InspectionService(db).update(record_id, payload, user_id)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inspection(
    record_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db)
):
    await InspectionService(db).delete(record_id)


@router.post(
    "/{record_id}/create-siv",
    response_model=InspectionRecordRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_siv_from_record(
    record_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Open an SIV inspection for the lot of record ``record_id``.

    Product fields are copied, shift / line / sampling / judgment are left
    empty and ``inspection_no_ref`` points back at the source record.
    """
    return await InspectionService(db).create_derived_record(record_id, user_id)


@router.get("/{record_id}/defects", response_model=List[DefectDataRead])
async def get_inspection_defects(
    record_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db)
):
    service = InspectionService(db)
    record = await service.get(record_id)
    return await service.defects_for(record.inspection_no)
