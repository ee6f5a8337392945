"""Database models."""

from .sampling_reason import SamplingReason
from .inspection import InspectionRecord
from .defect import Defect, DefectData
from .part import Part

__all__ = ["SamplingReason", "InspectionRecord", "Defect", "DefectData", "Part"]
