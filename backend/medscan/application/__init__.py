"""
Application Layer

Use cases of the medicine identification pipeline: search-term synthesis,
multi-source aggregation, profile compilation and quality scoring.
"""

from .synthesis import SearchTermSynthesizer
from .pipeline import AggregationEngine, AggregationEngineBuilder, AggregationOutcome
from .compiler import ProfileCompiler, CrossReferenceValidator
from .scoring import DataQualityScorer
from .services import MedicineAnalysisService, MedicineLookupService

__all__ = [
    "SearchTermSynthesizer",
    "AggregationEngine",
    "AggregationEngineBuilder",
    "AggregationOutcome",
    "ProfileCompiler",
    "CrossReferenceValidator",
    "DataQualityScorer",
    "MedicineAnalysisService",
    "MedicineLookupService",
]
