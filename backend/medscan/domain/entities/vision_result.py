"""
Vision Analysis Result Entity

Structured candidate identification produced by the vision analyzer.
One immutable instance exists per image-set submission.
"""

from dataclasses import dataclass, field
from typing import Tuple, Optional, Dict, Any
from enum import Enum

from ..value_objects.confidence_score import ConfidenceScore


class AnalysisMode(Enum):
    """Vision analysis depth."""

    QUICK = "quick"                    # name only, for user confirmation
    COMPREHENSIVE = "comprehensive"    # full extraction after confirmation

    @classmethod
    def from_string(cls, value: Optional[str]) -> "AnalysisMode":
        """Parse a mode flag; anything unknown is quick."""
        if value and value.strip().lower() == cls.COMPREHENSIVE.value:
            return cls.COMPREHENSIVE
        return cls.QUICK


@dataclass(frozen=True)
class CandidateNames:
    """Names the model read or inferred from the images."""

    brand: Optional[str] = None
    generic: Optional[str] = None
    primary: Optional[str] = None

    @property
    def best(self) -> Optional[str]:
        """Most prominent name available."""
        return self.primary or self.brand or self.generic

    def to_dict(self) -> Dict[str, Any]:
        return {"brand": self.brand, "generic": self.generic, "primary": self.primary}


@dataclass(frozen=True)
class PhysicalCharacteristics:
    """Visual description of the medicine and its packaging."""

    shape: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    markings: Optional[str] = None
    coating: Optional[str] = None
    packaging: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shape": self.shape,
            "color": self.color,
            "size": self.size,
            "markings": self.markings,
            "coating": self.coating,
            "packaging": self.packaging,
        }


@dataclass(frozen=True)
class ExtractedText:
    """Text read from the images, grouped by kind."""

    all_text: Tuple[str, ...] = ()
    drug_names: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    directions: Tuple[str, ...] = ()
    codes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allText": list(self.all_text),
            "drugNames": list(self.drug_names),
            "warnings": list(self.warnings),
            "directions": list(self.directions),
            "codes": list(self.codes),
        }


@dataclass(frozen=True)
class ManufacturingDetails:
    """Batch and product codes printed on the packaging."""

    lot_number: Optional[str] = None
    expiration_date: Optional[str] = None
    ndc: Optional[str] = None
    manufacturing_date: Optional[str] = None
    upc: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lotNumber": self.lot_number,
            "expirationDate": self.expiration_date,
            "ndc": self.ndc,
            "manufacturingDate": self.manufacturing_date,
            "upc": self.upc,
        }


@dataclass(frozen=True)
class SafetyInfo:
    """Safety statements the model read or recalled."""

    warnings: Tuple[str, ...] = ()
    contraindications: Tuple[str, ...] = ()
    side_effects: Tuple[str, ...] = ()
    drug_interactions: Tuple[str, ...] = ()
    pregnancy_category: Optional[str] = None
    storage_instructions: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warnings": list(self.warnings),
            "contraindications": list(self.contraindications),
            "sideEffects": list(self.side_effects),
            "drugInteractions": list(self.drug_interactions),
            "pregnancyCategory": self.pregnancy_category,
            "storageInstructions": self.storage_instructions,
        }


@dataclass(frozen=True)
class PrescribingNotes:
    """Clinical free text from comprehensive mode."""

    indication: Optional[str] = None
    dosage_instructions: Optional[str] = None
    mechanism: Optional[str] = None
    pharmacokinetics: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "indication": self.indication,
            "dosageInstructions": self.dosage_instructions,
            "mechanism": self.mechanism,
            "pharmacokinetics": self.pharmacokinetics,
        }


@dataclass(frozen=True)
class ImageSetQuality:
    """
    Model self-assessment for multi-image submissions.

    Attributes:
        completeness: 1-10 score, None when not reported
        consistency: 1-10 score, None when not reported
        conflicting_info: Disagreements found between images
    """

    completeness: Optional[int] = None
    consistency: Optional[int] = None
    conflicting_info: Tuple[str, ...] = ()

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicting_info) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completeness": self.completeness,
            "consistency": self.consistency,
            "conflictingInfo": list(self.conflicting_info),
        }


@dataclass(frozen=True)
class VisionAnalysisResult:
    """
    Best-effort structured candidate for the photographed medicine.

    Always well-formed: a failed model call or an unparseable answer is
    represented by ``failure()`` rather than an exception.

    Attributes:
        identified: Whether the model claims an identification
        confidence: 1-10 ordinal confidence
        mode: Analysis mode that produced this result
        medicine_type: Presentation category (pill, package, liquid, ...)
        candidate_names: Brand/generic/primary names
        active_ingredients: Active ingredients, possibly with amounts
        physical_characteristics: Shape, color, markings, packaging
        extracted_text: Text read from the images
        manufacturing_info: Lot, expiry and product codes
        safety_info: Warnings and contraindications
        reasoning: Model explanation, or the failure explanation
        verification_needed: Whether the user must confirm the name
        error: Failure description when the analyzer degraded
    """

    identified: bool = False
    confidence: ConfidenceScore = field(default_factory=ConfidenceScore.minimum)
    mode: AnalysisMode = AnalysisMode.QUICK
    medicine_type: Optional[str] = None
    candidate_names: CandidateNames = field(default_factory=CandidateNames)
    active_ingredients: Tuple[str, ...] = ()
    inactive_ingredients: Tuple[str, ...] = ()
    strength: Optional[str] = None
    dosage_form: Optional[str] = None
    route: Optional[str] = None
    manufacturer: Optional[str] = None
    distributed_by: Optional[str] = None
    therapeutic_class: Optional[str] = None
    physical_characteristics: PhysicalCharacteristics = field(default_factory=PhysicalCharacteristics)
    extracted_text: ExtractedText = field(default_factory=ExtractedText)
    manufacturing_info: ManufacturingDetails = field(default_factory=ManufacturingDetails)
    safety_info: SafetyInfo = field(default_factory=SafetyInfo)
    prescribing_notes: PrescribingNotes = field(default_factory=PrescribingNotes)
    image_contributions: Dict[str, Any] = field(default_factory=dict)
    image_quality: ImageSetQuality = field(default_factory=ImageSetQuality)
    image_count: int = 1
    verified_name: Optional[str] = None
    reasoning: str = ""
    verification_needed: bool = True
    error: Optional[str] = None
    raw_response: Optional[str] = field(default=None, repr=False, compare=False)

    @property
    def succeeded(self) -> bool:
        """True when the model answered with parseable output."""
        return self.error is None

    @property
    def brand_name(self) -> Optional[str]:
        return self.candidate_names.brand

    @property
    def generic_name(self) -> Optional[str]:
        return self.candidate_names.generic

    def __str__(self) -> str:
        name = self.candidate_names.best or "unidentified"
        return f"VisionAnalysisResult({name}, confidence={self.confidence}, mode={self.mode.value})"

    @classmethod
    def failure(
        cls,
        reason: str,
        mode: AnalysisMode = AnalysisMode.QUICK,
        image_count: int = 1,
        verified_name: Optional[str] = None,
        raw_response: Optional[str] = None
    ) -> "VisionAnalysisResult":
        """
        Low-confidence placeholder used whenever analysis cannot complete.

        Args:
            reason: Explanation surfaced to the caller
            mode: Requested analysis mode
            image_count: Number of submitted images
            verified_name: User-verified name, if any
            raw_response: Model text that could not be parsed

        Returns:
            Result with identified=False, confidence=1, verification_needed=True
        """
        return cls(
            identified=False,
            confidence=ConfidenceScore.minimum(),
            mode=mode,
            image_count=image_count,
            verified_name=verified_name,
            reasoning=f"Medicine could not be analyzed: {reason}",
            verification_needed=True,
            error=reason,
            raw_response=raw_response,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape returned to callers."""
        data = {
            "identified": self.identified,
            "confidence": self.confidence.value,
            "mode": self.mode.value,
            "medicineType": self.medicine_type,
            "candidateNames": self.candidate_names.to_dict(),
            "activeIngredients": list(self.active_ingredients),
            "inactiveIngredients": list(self.inactive_ingredients),
            "strength": self.strength,
            "dosageForm": self.dosage_form,
            "route": self.route,
            "manufacturer": self.manufacturer,
            "distributedBy": self.distributed_by,
            "therapeuticClass": self.therapeutic_class,
            "physicalCharacteristics": self.physical_characteristics.to_dict(),
            "extractedText": self.extracted_text.to_dict(),
            "manufacturingInfo": self.manufacturing_info.to_dict(),
            "safetyInfo": self.safety_info.to_dict(),
            "prescribingNotes": self.prescribing_notes.to_dict(),
            "imageCount": self.image_count,
            "verifiedName": self.verified_name,
            "reasoning": self.reasoning,
            "verificationNeeded": self.verification_needed,
        }
        if self.image_count > 1:
            data["imageContributions"] = self.image_contributions
            data["dataQuality"] = self.image_quality.to_dict()
        if self.error:
            data["error"] = self.error
        return data
