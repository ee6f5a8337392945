"""Defect master and defect observation models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class DefectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Crack"])
    description: Optional[str] = None
    is_active: bool = True


class DefectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class DefectRead(DefectCreate):
    id: int
    created_by: int
    updated_by: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DefectDataCreate(BaseModel):
    """Defect found during an inspection"""

    inspection_no: str = Field(..., min_length=1, max_length=20, examples=["OQA260806-100001"])
    defect_id: int = Field(..., ge=1)
    ng_qty: int = Field(0, ge=0, description="Rejected pieces")
    defect_date: Optional[datetime] = None
    inspector: Optional[str] = Field(None, max_length=50)
    qc_name: Optional[str] = Field(None, max_length=50)
    tray_no: Optional[str] = Field(None, max_length=20)
    tray_position: Optional[str] = Field(None, max_length=20)
    color: Optional[str] = Field(None, max_length=30)
    defect_detail: Optional[str] = None


class DefectDataRead(DefectDataCreate):
    id: int
    station: Optional[str] = None
    defect_name: Optional[str] = None
    defect_date: datetime
    created_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
