"""
Inspection record Pydantic models.

Request and response validation for the ``/api/inspectiondata`` endpoints.
Field lengths follow the ``inspectiondata`` table; cross-field rules
(shift / FVI line required per station) are checked by the service.
"""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict, field_validator


def _strip(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class InspectionRecordBase(BaseModel):
    """Fields shared by create and read models"""

    inspection_no_ref: Optional[str] = Field(None, max_length=20, description="Source inspection number")
    inspection_date: Optional[datetime] = Field(None, description="Inspection date/time, defaults to now")
    fy: Optional[str] = Field(None, max_length=4, description="Fiscal year", examples=["2026"])
    ww: Optional[str] = Field(None, max_length=2, description="Fiscal work week", examples=["06"])
    month_year: Optional[str] = Field(None, max_length=20, description="Calendar YYYY-MM", examples=["2025-08"])
    shift: Optional[str] = Field(None, max_length=1, description="Shift code", examples=["A"])
    part_site: Optional[str] = Field(None, max_length=10)
    item_no: Optional[str] = Field(None, max_length=30)
    model: Optional[str] = Field(None, max_length=100)
    version: Optional[str] = Field(None, max_length=100)
    fvi_line_no: Optional[str] = Field(None, max_length=5, description="Final visual inspection line")
    mc_line_no: Optional[str] = Field(None, max_length=5, description="Machine line")
    qc_id: Optional[int] = Field(None, ge=0)
    fvi_lot_qty: Optional[int] = Field(None, ge=0)
    general_sampling_qty: Optional[int] = Field(None, ge=0)
    crack_sampling_qty: Optional[int] = Field(None, ge=0)
    sampling_reason_id: Optional[int] = Field(None, ge=1)
    judgment: Optional[bool] = Field(None, description="True = pass, False = fail")


class InspectionRecordCreate(InspectionRecordBase):
    """
    Create request.

    ``inspection_no`` and ``round`` are generated when omitted;
    ``fy`` / ``ww`` / ``month_year`` are derived from ``inspection_date``.
    """

    station: Optional[str] = Field(None, max_length=3, description="Station code", examples=["OQA"])
    inspection_no: Optional[str] = Field(None, max_length=20)
    lot_no: Optional[str] = Field(None, max_length=30, description="Production lot number")
    round: Optional[int] = Field(None, ge=1)

    @field_validator(
        "station", "inspection_no", "lot_no", "shift", "fvi_line_no", "ww", "fy", "month_year",
        mode="before",
    )
    @classmethod
    def strip_strings(cls, v):
        return _strip(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "station": "OQA",
                "lot_no": "L2508-001",
                "shift": "A",
                "part_site": "TW",
                "item_no": "ITM-100",
                "model": "X1",
                "version": "V2",
                "fvi_line_no": "F1",
                "mc_line_no": "M1",
                "fvi_lot_qty": 1200,
                "general_sampling_qty": 80,
                "sampling_reason_id": 1
            }
        }
    )


class InspectionRecordUpdate(InspectionRecordBase):
    """
    Update request. Only the fields sent are changed.

    ``inspection_no``, ``station`` and ``round`` are accepted here so that
    an attempt to change them is reported instead of silently ignored.
    """

    station: Optional[str] = Field(None, max_length=3)
    inspection_no: Optional[str] = Field(None, max_length=20)
    lot_no: Optional[str] = Field(None, max_length=30)
    round: Optional[int] = Field(None, ge=1)


class InspectionRecordRead(InspectionRecordBase):
    """Inspection record response"""

    id: int
    station: str
    inspection_no: str
    inspection_date: datetime
    fy: str
    ww: str
    month_year: str
    lot_no: str
    round: int
    created_by: int
    updated_by: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InspectionRecordList(BaseModel):
    """Paginated list response"""

    items: List[InspectionRecordRead]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)


class SamplingRoundResponse(BaseModel):
    station: str
    lot_no: str
    round: int = Field(..., ge=0)


class InspectionNumberResponse(BaseModel):
    station: str
    date: str
    ww: str
    inspection_no: str


class StationStatistics(BaseModel):
    """Dashboard counters for one station"""

    station: str
    fy: str
    ww: str
    total: int
    this_fiscal_year: int
    this_month: int
    this_week: int
    today: int


class WeeklyTrendPoint(BaseModel):
    fy: str
    ww: str
    total: int
    passed: int
    failed: int
