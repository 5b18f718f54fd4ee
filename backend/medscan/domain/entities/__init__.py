"""
Domain Entities

Core records of the medicine identification and aggregation domain.
"""

from .vision_result import (
    VisionAnalysisResult,
    AnalysisMode,
    CandidateNames,
    PhysicalCharacteristics,
    ExtractedText,
    ManufacturingDetails,
    SafetyInfo,
    PrescribingNotes,
    ImageSetQuality,
)
from .source_result import SourceResult, SourceKind, SourceStatus
from .medicine_profile import ComprehensiveMedicineProfile
from .data_quality import DataQualityMetrics, CrossReferenceReport, FieldConflict
from .analysis_response import AnalysisResponse, MedicineInfo, DEFAULT_DISCLAIMER

__all__ = [
    "VisionAnalysisResult",
    "AnalysisMode",
    "CandidateNames",
    "PhysicalCharacteristics",
    "ExtractedText",
    "ManufacturingDetails",
    "SafetyInfo",
    "PrescribingNotes",
    "ImageSetQuality",
    "SourceResult",
    "SourceKind",
    "SourceStatus",
    "ComprehensiveMedicineProfile",
    "DataQualityMetrics",
    "CrossReferenceReport",
    "FieldConflict",
    "AnalysisResponse",
    "MedicineInfo",
    "DEFAULT_DISCLAIMER",
]
