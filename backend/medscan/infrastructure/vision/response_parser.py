"""
Vision Response Parser

Turns free model text into a VisionAnalysisResult.

The model is asked for one JSON object but gives no schema guarantee, so
parsing is "parse-or-fallback": the first balanced {...} region is parsed
(repaired with json_repair if needed), deep-merged onto a fixed default
shape, and normalized field by field.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
import copy
import json
import logging

from json_repair import repair_json

from ...domain.entities.vision_result import (
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
from ...domain.value_objects.confidence_score import ConfidenceScore
from ...domain.exceptions import ModelResponseMalformedError


logger = logging.getLogger(__name__)


# Literal strings models use for "nothing here"
_EMPTY_MARKERS = {"null", "none", "n/a", "na", "unknown", "not visible", "not available", "-"}


DEFAULT_SHAPE: Dict[str, Any] = {
    "identified": False,
    "confidence": 1,
    "verifiedName": None,
    "medicineType": None,
    "medicineName": {
        "brandName": None,
        "genericName": None,
        "primaryName": None,
    },
    "quickIdentification": {
        "shape": None,
        "color": None,
        "visibleText": [],
        "markings": None,
    },
    "medicine": {
        "brandName": None,
        "genericName": None,
        "activeIngredients": [],
        "inactiveIngredients": [],
        "strength": None,
        "dosageForm": None,
        "route": None,
        "ndc": None,
        "manufacturer": None,
        "distributedBy": None,
        "therapeuticClass": None,
    },
    "comprehensiveInfo": {
        "indication": None,
        "mechanism": None,
        "pharmacokinetics": None,
        "dosageInstructions": None,
        "contraindications": [],
        "warnings": [],
        "sideEffects": [],
        "drugInteractions": [],
        "pregnancyCategory": None,
        "storageInstructions": None,
    },
    "manufacturingInfo": {
        "lotNumber": None,
        "expirationDate": None,
        "manufacturingDate": None,
        "ndc": None,
        "upc": None,
    },
    "physicalCharacteristics": {
        "shape": None,
        "color": None,
        "size": None,
        "markings": None,
        "coating": None,
        "packaging": None,
    },
    "extractedText": {
        "allText": [],
        "drugNames": [],
        "warnings": [],
        "directions": [],
        "codes": [],
    },
    "imageContributions": {},
    "dataQuality": {
        "completeness": None,
        "consistency": None,
        "conflictingInfo": [],
    },
    "verificationNeeded": True,
    "reasoning": "",
}


# =============================================================================
# JSON extraction
# =============================================================================

def extract_json_region(text: str) -> Optional[str]:
    """
    Find the first balanced {...} region in text.

    Braces inside JSON strings are ignored. If the object never closes
    (a truncated answer), everything from the first "{" is returned so the
    repair step can try to close it.

    Returns:
        The candidate JSON text, or None when the text has no "{"
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False

    for position in range(start, len(text)):
        char = text[position]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:position + 1]

    return text[start:]


def parse_json_object(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse the first JSON object embedded in model text.

    Raises:
        ModelResponseMalformedError: If no object can be recovered
    """
    if not text or not text.strip():
        raise ModelResponseMalformedError("Model returned an empty response")

    candidate = extract_json_region(text)
    if candidate is None:
        raise ModelResponseMalformedError(raw_text=text)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.debug(f"Strict JSON parse failed ({e}), trying repair")
        parsed = repair_json(candidate, return_objects=True)

    if not isinstance(parsed, dict) or not parsed:
        raise ModelResponseMalformedError(raw_text=text)

    return parsed


# =============================================================================
# Shape normalization
# =============================================================================

def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, dict):
        return [v for v in value.values() if v is not None]
    return [value]


def deep_merge(defaults: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Overlay parsed data onto the default shape.

    Nested defaults are merged recursively; list defaults coerce the
    incoming value to a list; keys unknown to the default shape are kept.
    """
    merged = copy.deepcopy(defaults)

    for key, value in data.items():
        default = defaults.get(key)

        if isinstance(default, dict) and default:
            merged[key] = deep_merge(default, value if isinstance(value, dict) else {})
        elif isinstance(default, dict):
            merged[key] = value if isinstance(value, dict) else {}
        elif isinstance(default, list):
            merged[key] = _as_list(value)
        elif value is not None:
            merged[key] = value

    return merged


def clean_text(value: Any) -> Optional[str]:
    """Normalize a scalar to a non-empty string or None."""
    if value is None or isinstance(value, (dict, bool)):
        return None
    if isinstance(value, (list, tuple)):
        parts = [clean_text(v) for v in value]
        value = ", ".join(p for p in parts if p)
    text = " ".join(str(value).split())
    if not text or text.lower() in _EMPTY_MARKERS:
        return None
    return text


def clean_list(values: Any) -> Tuple[str, ...]:
    """Normalize to a tuple of non-empty strings, exact duplicates removed."""
    seen = []
    for value in _as_list(values):
        text = clean_text(value)
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes"):
            return True
        if lowered in ("false", "no"):
            return False
    return default


def _as_score(value: Any) -> Optional[int]:
    """Optional 1-10 self-assessment score."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:
        return None
    return ConfidenceScore.clamped(number).value


# =============================================================================
# Multi-image conflicts
# =============================================================================

_CONTRIBUTION_FIELDS = (
    ("lotNumber", "Lot number"),
    ("expirationDate", "Expiration date"),
)


def detect_image_conflicts(
    contributions: Dict[str, Any],
    labels: Sequence[str] = ()
) -> List[str]:
    """
    Compare per-image lot numbers and expiration dates.

    Args:
        contributions: The model's imageContributions object
        labels: Labels of the submitted images, in order

    Returns:
        One description per field whose values disagree between images
    """
    conflicts = []
    entries = [
        (key, value) for key, value in contributions.items()
        if isinstance(value, dict)
    ]

    for field_name, title in _CONTRIBUTION_FIELDS:
        reported = []
        for key, entry in entries:
            value = clean_text(entry.get(field_name))
            if value is None:
                continue
            label = clean_text(entry.get("label")) or _label_for(key, labels)
            reported.append((key, label, value))

        distinct = {" ".join(value.upper().split()) for _, _, value in reported}
        if len(distinct) > 1:
            details = ", ".join(
                f"{key} ({label})={value}" if label else f"{key}={value}"
                for key, label, value in reported
            )
            conflicts.append(f"{title} differs between images: {details}")

    return conflicts


def _label_for(key: str, labels: Sequence[str]) -> Optional[str]:
    digits = "".join(ch for ch in key if ch.isdigit())
    if digits and 0 < int(digits) <= len(labels):
        return labels[int(digits) - 1]
    return None


# =============================================================================
# Result construction
# =============================================================================

def build_result(
    data: Dict[str, Any],
    mode: AnalysisMode,
    labels: Sequence[str],
    verified_name: Optional[str] = None,
    raw_response: Optional[str] = None
) -> VisionAnalysisResult:
    """
    Build a VisionAnalysisResult from a parsed model object.

    Args:
        data: Parsed JSON object
        mode: Requested analysis mode
        labels: Image labels in submission order
        verified_name: User-verified name for comprehensive mode
        raw_response: Original model text

    Returns:
        Normalized VisionAnalysisResult
    """
    shaped = deep_merge(DEFAULT_SHAPE, data)

    names = shaped["medicineName"]
    medicine = shaped["medicine"]
    quick = shaped["quickIdentification"]
    physical = shaped["physicalCharacteristics"]
    info = shaped["comprehensiveInfo"]
    manufacturing = shaped["manufacturingInfo"]
    text = shaped["extractedText"]
    quality = shaped["dataQuality"]

    identified = _as_bool(shaped["identified"], False)
    confidence = ConfidenceScore.clamped(shaped["confidence"])
    reasoning = clean_text(shaped["reasoning"]) or ""
    verification_needed = _as_bool(shaped["verificationNeeded"], True)
    if not identified or confidence.requires_verification:
        verification_needed = True

    conflicting_info = list(clean_list(quality["conflictingInfo"]))
    contributions = shaped["imageContributions"]

    if len(labels) > 1:
        detected = detect_image_conflicts(contributions, labels)
        new_conflicts = [c for c in detected if c not in conflicting_info]
        conflicting_info.extend(new_conflicts)
        if new_conflicts:
            reasoning = " ".join(filter(None, [reasoning, *new_conflicts]))
        if conflicting_info:
            verification_needed = True

    return VisionAnalysisResult(
        identified=identified,
        confidence=confidence,
        mode=mode,
        medicine_type=clean_text(shaped["medicineType"]),
        candidate_names=CandidateNames(
            brand=clean_text(names["brandName"]) or clean_text(medicine["brandName"]),
            generic=clean_text(names["genericName"]) or clean_text(medicine["genericName"]),
            primary=clean_text(names["primaryName"]),
        ),
        active_ingredients=clean_list(medicine["activeIngredients"]),
        inactive_ingredients=clean_list(medicine["inactiveIngredients"]),
        strength=clean_text(medicine["strength"]),
        dosage_form=clean_text(medicine["dosageForm"]),
        route=clean_text(medicine["route"]),
        manufacturer=clean_text(medicine["manufacturer"]),
        distributed_by=clean_text(medicine["distributedBy"]),
        therapeutic_class=clean_text(medicine["therapeuticClass"]),
        physical_characteristics=PhysicalCharacteristics(
            shape=clean_text(physical["shape"]) or clean_text(quick["shape"]),
            color=clean_text(physical["color"]) or clean_text(quick["color"]),
            size=clean_text(physical["size"]),
            markings=clean_text(physical["markings"]) or clean_text(quick["markings"]),
            coating=clean_text(physical["coating"]),
            packaging=clean_text(physical["packaging"]),
        ),
        extracted_text=ExtractedText(
            all_text=clean_list(text["allText"] + quick["visibleText"]),
            drug_names=clean_list(text["drugNames"]),
            warnings=clean_list(text["warnings"]),
            directions=clean_list(text["directions"]),
            codes=clean_list(text["codes"]),
        ),
        manufacturing_info=ManufacturingDetails(
            lot_number=clean_text(manufacturing["lotNumber"]),
            expiration_date=clean_text(manufacturing["expirationDate"]),
            ndc=clean_text(medicine["ndc"]) or clean_text(manufacturing["ndc"]),
            manufacturing_date=clean_text(manufacturing["manufacturingDate"]),
            upc=clean_text(manufacturing["upc"]),
        ),
        safety_info=SafetyInfo(
            warnings=clean_list(info["warnings"]),
            contraindications=clean_list(info["contraindications"]),
            side_effects=clean_list(info["sideEffects"]),
            drug_interactions=clean_list(info["drugInteractions"]),
            pregnancy_category=clean_text(info["pregnancyCategory"]),
            storage_instructions=clean_text(info["storageInstructions"]),
        ),
        prescribing_notes=PrescribingNotes(
            indication=clean_text(info["indication"]),
            dosage_instructions=clean_text(info["dosageInstructions"]),
            mechanism=clean_text(info["mechanism"]),
            pharmacokinetics=clean_text(info["pharmacokinetics"]),
        ),
        image_contributions=contributions,
        image_quality=ImageSetQuality(
            completeness=_as_score(quality["completeness"]),
            consistency=_as_score(quality["consistency"]),
            conflicting_info=tuple(conflicting_info),
        ),
        image_count=max(1, len(labels)),
        verified_name=verified_name,
        reasoning=reasoning,
        verification_needed=verification_needed,
        raw_response=raw_response,
    )
