"""
Analysis Response Entity

Final, always structurally valid output of one analysis request.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone

from .vision_result import VisionAnalysisResult
from .medicine_profile import ComprehensiveMedicineProfile
from .data_quality import DataQualityMetrics, CrossReferenceReport


# Fixed medical disclaimer, present verbatim in every response
DEFAULT_DISCLAIMER = (
    "This information is provided for informational purposes only and is not a "
    "substitute for professional medical advice, diagnosis, or treatment. Always "
    "consult a qualified healthcare provider or pharmacist before taking, changing, "
    "or stopping any medication."
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MedicineInfo:
    """
    Aggregated medicine information section of the response.

    Attributes:
        basic_info: Flat summary of the vision result
        profile: Compiled canonical profile
        data_sources: Source id -> payloads of found results
        sources: Ledger of providers that contributed a found result
        data_quality: Quality metrics of the profile
        cross_reference: Cross-reference details from the last phase
        warnings: Non-fatal notes collected during aggregation
        last_updated: When the section was compiled
    """

    basic_info: Dict[str, Any]
    profile: ComprehensiveMedicineProfile
    data_quality: DataQualityMetrics
    data_sources: Dict[str, List[Any]] = field(default_factory=dict)
    sources: List[str] = field(default_factory=list)
    cross_reference: CrossReferenceReport = field(default_factory=CrossReferenceReport.empty)
    warnings: List[str] = field(default_factory=list)
    last_updated: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "basicInfo": self.basic_info,
            "comprehensiveInfo": self.profile.to_dict(),
            "dataSources": self.data_sources,
            "sources": list(self.sources),
            "dataQuality": self.data_quality.to_dict(),
            "crossReference": self.cross_reference.to_dict(),
            "warnings": list(self.warnings),
            "lastUpdated": self.last_updated.isoformat(),
        }


@dataclass
class AnalysisResponse:
    """
    Envelope returned to the request-handling layer.

    Attributes:
        analysis: Vision analyzer output
        medicine_info: Aggregated information
        request_id: Identifier of the run
        processing_time_ms: Wall-clock time of the run
        disclaimer: Mandatory medical disclaimer
        localized_disclaimer: Translation of the disclaimer, when a language is configured
        timestamp: When the response was built
    """

    analysis: VisionAnalysisResult
    medicine_info: MedicineInfo
    request_id: str = ""
    processing_time_ms: float = 0.0
    disclaimer: str = DEFAULT_DISCLAIMER
    localized_disclaimer: Optional[str] = None
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def is_identified(self) -> bool:
        return self.analysis.identified

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON envelope returned to callers."""
        data = {
            "analysis": self.analysis.to_dict(),
            "medicineInfo": self.medicine_info.to_dict(),
            "requestId": self.request_id,
            "processingTimeMs": round(self.processing_time_ms, 2),
            "timestamp": self.timestamp.isoformat(),
            "disclaimer": self.disclaimer or DEFAULT_DISCLAIMER,
        }
        if self.localized_disclaimer:
            data["localizedDisclaimer"] = self.localized_disclaimer
        if self.error:
            data["error"] = self.error
        return data
