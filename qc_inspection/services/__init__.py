"""
Service layer.

Inspection numbers, sampling rounds, inspection records, reports
and master data.
"""

from .inspection_number import (
    InspectionNumberGenerator,
    generate_inspection_number,
)
from .sampling_round import SamplingRoundCounter, get_next_sampling_round, UNKNOWN_ROUND
from .inspection_service import InspectionService
from .report_service import ReportService
from .master_data import (
    PartService,
    DefectService,
    SamplingReasonService,
    DefectDataService,
)

__all__ = [
    'InspectionNumberGenerator',
    'generate_inspection_number',
    'SamplingRoundCounter',
    'get_next_sampling_round',
    'UNKNOWN_ROUND',
    'InspectionService',
    'ReportService',
    'PartService',
    'DefectService',
    'SamplingReasonService',
    'DefectDataService',
]
