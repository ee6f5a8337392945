"""Pydantic request/response models"""

from .inspection import (
    InspectionRecordCreate,
    InspectionRecordUpdate,
    InspectionRecordRead,
    InspectionRecordList,
)
from .defect import (
    DefectCreate,
    DefectUpdate,
    DefectRead,
    DefectDataCreate,
    DefectDataRead,
)
from .part import PartCreate, PartUpdate, PartRead
from .sampling_reason import SamplingReasonCreate, SamplingReasonUpdate, SamplingReasonRead
from .report import LarChartRow, LarDefectRow

__all__ = [
    "InspectionRecordCreate",
    "InspectionRecordUpdate",
    "InspectionRecordRead",
    "InspectionRecordList",
    "DefectCreate",
    "DefectUpdate",
    "DefectRead",
    "DefectDataCreate",
    "DefectDataRead",
    "PartCreate",
    "PartUpdate",
    "PartRead",
    "SamplingReasonCreate",
    "SamplingReasonUpdate",
    "SamplingReasonRead",
    "LarChartRow",
    "LarDefectRow",
]
