"""Application services."""

from .medicine_analysis_service import MedicineAnalysisService, build_basic_info, build_data_sources
from .medicine_lookup_service import MedicineLookupService, LookupMatch, calculate_relevance

__all__ = [
    "MedicineAnalysisService",
    "MedicineLookupService",
    "LookupMatch",
    "build_basic_info",
    "build_data_sources",
    "calculate_relevance",
]
