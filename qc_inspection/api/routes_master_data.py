"""
Master data endpoints: parts, defect types, sampling reasons and
defect observations.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.api.deps import get_current_user_id
from qc_inspection.core.database import get_db
from qc_inspection.schemas.defect import (
    DefectCreate,
    DefectDataCreate,
    DefectDataRead,
    DefectRead,
    DefectUpdate,
)
from qc_inspection.schemas.part import PartCreate, PartRead, PartUpdate
from qc_inspection.schemas.sampling_reason import (
    SamplingReasonCreate,
    SamplingReasonRead,
    SamplingReasonUpdate,
)
from qc_inspection.services.master_data import (
    DefectDataService,
    DefectService,
    PartService,
    SamplingReasonService,
)

parts_router = APIRouter()
defects_router = APIRouter()
sampling_reasons_router = APIRouter()
defect_data_router = APIRouter()


# ============ Parts ============

@parts_router.get("", response_model=List[PartRead])
async def list_parts(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db)
):
    return await PartService(db).list(active_only=active_only)


@parts_router.post("", response_model=PartRead, status_code=status.HTTP_201_CREATED)
async def create_part(
    payload: PartCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await PartService(db).create(payload, user_id)


@parts_router.get("/{part_no}", response_model=PartRead)
async def get_part(part_no: str = Path(..., max_length=30), db: AsyncSession = Depends(get_db)):
    return await PartService(db).get(part_no)


@parts_router.put("/{part_no}", response_model=PartRead)
async def update_part(
    payload: PartUpdate,
    part_no: str = Path(..., max_length=30),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await PartService(db).update(part_no, payload, user_id)


@parts_router.delete("/{part_no}", response_model=PartRead)
async def deactivate_part(
    part_no: str = Path(..., max_length=30),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Parts are deactivated, not removed."""
    return await PartService(db).deactivate(part_no, user_id)


# ============ Defect types ============

@defects_router.get("", response_model=List[DefectRead])
async def list_defects(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db)
):
    return await DefectService(db).list(active_only=active_only)


@defects_router.post("", response_model=DefectRead, status_code=status.HTTP_201_CREATED)
async def create_defect(
    payload: DefectCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await DefectService(db).create(payload, user_id)


@defects_router.get("/{defect_id}", response_model=DefectRead)
async def get_defect(defect_id: int = Path(..., ge=1), db: AsyncSession = Depends(get_db)):
    return await DefectService(db).get(defect_id)


@defects_router.put("/{defect_id}", response_model=DefectRead)
async def update_defect(
    payload: DefectUpdate,
    defect_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await DefectService(db).update(defect_id, payload, user_id)


@defects_router.delete("/{defect_id}", response_model=DefectRead)
async def deactivate_defect(
    defect_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await DefectService(db).deactivate(defect_id, user_id)


# ============ Sampling reasons ============

@sampling_reasons_router.get("", response_model=List[SamplingReasonRead])
async def list_sampling_reasons(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db)
):
    return await SamplingReasonService(db).list(active_only=active_only)


@sampling_reasons_router.post("", response_model=SamplingReasonRead, status_code=status.HTTP_201_CREATED)
async def create_sampling_reason(
    payload: SamplingReasonCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await SamplingReasonService(db).create(payload, user_id)


@sampling_reasons_router.get("/{reason_id}", response_model=SamplingReasonRead)
async def get_sampling_reason(reason_id: int = Path(..., ge=1), db: AsyncSession = Depends(get_db)):
    return await SamplingReasonService(db).get(reason_id)


@sampling_reasons_router.put("/{reason_id}", response_model=SamplingReasonRead)
async def update_sampling_reason(
    payload: SamplingReasonUpdate,
    reason_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await SamplingReasonService(db).update(reason_id, payload, user_id)


@sampling_reasons_router.delete("/{reason_id}", response_model=SamplingReasonRead)
async def deactivate_sampling_reason(
    reason_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    return await SamplingReasonService(db).deactivate(reason_id, user_id)


# ============ Defect observations ============

@defect_data_router.get("", response_model=List[DefectDataRead])
async def list_defect_data(
    inspection_no: str = Query(..., max_length=20),
    db: AsyncSession = Depends(get_db)
):
    return await DefectDataService(db).list_for_inspection(inspection_no)


@defect_data_router.post("", response_model=DefectDataRead, status_code=status.HTTP_201_CREATED)
async def create_defect_data(
    payload: DefectDataCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Record a defect against an existing inspection number."""
    return await DefectDataService(db).create(payload, user_id)


@defect_data_router.delete("/{defect_data_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_defect_data(
    defect_data_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db)
):
    await DefectDataService(db).delete(defect_data_id)
