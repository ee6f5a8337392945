"""
LAR report models.

LAR (Line Acceptance Rate) = passed lots / inspected lots * 100
DPPM = NG pieces / inspected pieces * 1,000,000
"""

from typing import Optional, List

from pydantic import BaseModel, Field


class LarChartRow(BaseModel):
    fy: str
    ww: str
    total_lot: int = 0
    total_pass_lot: int = 0
    total_fail_lot: int = 0
    total_inspection: int = 0
    total_ng: int = 0
    lar: Optional[float] = Field(None, description="Percent, null when no lots")
    dppm: Optional[float] = Field(None, description="Null when nothing was inspected")


class LarDefectRow(BaseModel):
    fy: str
    ww: str
    defect_name: str
    ng_qty: int


class LarChartResponse(BaseModel):
    station: str
    model: Optional[str] = None
    rows: List[LarChartRow]


class LarDefectResponse(BaseModel):
    station: str
    model: Optional[str] = None
    rows: List[LarDefectRow]
