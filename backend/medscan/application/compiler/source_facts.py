"""
Source Fact Extraction

Flattens the vision result and each provider payload into one common
``SourceFacts`` shape, so the profile compiler and the cross-reference
validator never branch on provider-specific response layouts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any, List, Callable
import logging
import re

from ...domain.entities.vision_result import VisionAnalysisResult, PhysicalCharacteristics
from ...domain.entities.source_result import SourceResult, SourceKind
from ...domain.entities.medicine_profile import RelatedConcept


logger = logging.getLogger(__name__)

VISION_REPORTER = "Vision Analysis"

APPLICATION_TYPE_PATTERN = re.compile(r"^([A-Z]+)")
BRAND_IN_BRACKETS = re.compile(r"\[([^\]]+)\]")
INGREDIENT_TERM_TYPES = frozenset({"IN", "PIN", "MIN"})


@dataclass
class SourceFacts:
    """
    Everything one reporter said about the medicine, in profile vocabulary.

    Lists keep the reporter's order; scalars are None when not reported.
    ``ndcs`` holds only codes eligible for cross-referencing.
    """

    reporter: str
    source_kind: Optional[SourceKind] = None
    weight: float = 0.0

    # Identification
    brand_names: List[str] = field(default_factory=list)
    generic_names: List[str] = field(default_factory=list)
    active_ingredients: List[str] = field(default_factory=list)
    inactive_ingredients: List[str] = field(default_factory=list)
    strength: Optional[str] = None
    dosage_form: Optional[str] = None
    route: Optional[str] = None
    ndc: Optional[str] = None
    ndcs: List[str] = field(default_factory=list)
    manufacturer: Optional[str] = None
    therapeutic_class: Optional[str] = None
    physical_characteristics: Optional[PhysicalCharacteristics] = None

    # Prescribing
    indications: List[str] = field(default_factory=list)
    dosage_general: List[str] = field(default_factory=list)
    dosage_detailed: List[str] = field(default_factory=list)
    dosage_simplified: List[str] = field(default_factory=list)
    contraindications: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    side_effects: List[str] = field(default_factory=list)
    drug_interactions: List[str] = field(default_factory=list)
    specific_populations: List[str] = field(default_factory=list)
    overdosage: List[str] = field(default_factory=list)
    clinical_pharmacology: List[str] = field(default_factory=list)

    # Pharmacology
    mechanism_of_action: List[str] = field(default_factory=list)
    pharmacokinetics: List[str] = field(default_factory=list)
    pharmacodynamics: List[str] = field(default_factory=list)
    pharmacologic_classes: List[str] = field(default_factory=list)
    clinical_studies: List[str] = field(default_factory=list)

    # Safety
    boxed_warnings: List[str] = field(default_factory=list)
    reaction_counts: Dict[str, int] = field(default_factory=dict)
    pregnancy_category: Optional[str] = None
    pregnancy_risk: List[str] = field(default_factory=list)
    lactation_risk: List[str] = field(default_factory=list)
    pediatric_use: List[str] = field(default_factory=list)
    geriatric_use: List[str] = field(default_factory=list)

    # Manufacturing
    distributed_by: Optional[str] = None
    lot_number: Optional[str] = None
    expiration_date: Optional[str] = None
    upc: Optional[str] = None
    storage: List[str] = field(default_factory=list)

    # Regulatory
    application_number: Optional[str] = None
    application_type: Optional[str] = None
    sponsor_name: Optional[str] = None
    approval_date: Optional[str] = None
    rx_status: Optional[str] = None

    # Alternatives
    rxcui: Optional[str] = None
    generic_equivalents: List[RelatedConcept] = field(default_factory=list)
    brand_alternatives: List[RelatedConcept] = field(default_factory=list)


# =============================================================================
# Value helpers
# =============================================================================

def text(value: Any) -> Optional[str]:
    """Non-empty stripped string, or None."""
    if value is None or isinstance(value, (dict, list, tuple)):
        return None
    value = str(value).strip()
    return value or None


def texts(value: Any) -> List[str]:
    """Coerce a scalar or list into a list of non-empty strings."""
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    return [t for t in (text(item) for item in items) if t]


def first(value: Any) -> Optional[str]:
    items = texts(value)
    return items[0] if items else None


def format_fda_date(value: Any) -> Optional[str]:
    """openFDA dates are YYYYMMDD; anything else is passed through."""
    raw = text(value)
    if raw is None:
        return None
    try:
        return datetime.strptime(raw, "%Y%m%d").strftime("%Y-%m-%d")
    except ValueError:
        return raw


# =============================================================================
# Vision
# =============================================================================

def facts_from_vision(result: VisionAnalysisResult, weight: float) -> SourceFacts:
    """
    Facts from the vision analysis.

    Names are only reported when the model claims an identification.
    """
    facts = SourceFacts(reporter=VISION_REPORTER, weight=weight)

    if result.identified:
        facts.brand_names = texts(result.candidate_names.brand or result.candidate_names.primary)
        facts.generic_names = texts(result.candidate_names.generic)
        facts.active_ingredients = texts(list(result.active_ingredients))
        facts.manufacturer = text(result.manufacturer)

    facts.inactive_ingredients = texts(list(result.inactive_ingredients))
    facts.strength = text(result.strength)
    facts.dosage_form = text(result.dosage_form)
    facts.route = text(result.route)
    facts.therapeutic_class = text(result.therapeutic_class)
    facts.physical_characteristics = result.physical_characteristics

    ndc = text(result.manufacturing_info.ndc)
    facts.ndc = ndc
    facts.ndcs = texts(ndc)

    notes = result.prescribing_notes
    safety = result.safety_info
    facts.indications = texts(notes.indication)
    facts.dosage_general = texts(notes.dosage_instructions)
    facts.dosage_simplified = texts(list(result.extracted_text.directions))
    facts.contraindications = texts(list(safety.contraindications))
    facts.warnings = texts(list(safety.warnings))
    facts.side_effects = texts(list(safety.side_effects))
    facts.drug_interactions = texts(list(safety.drug_interactions))
    facts.mechanism_of_action = texts(notes.mechanism)
    facts.pharmacokinetics = texts(notes.pharmacokinetics)
    facts.pregnancy_category = text(safety.pregnancy_category)
    facts.storage = texts(safety.storage_instructions)

    facts.distributed_by = text(result.distributed_by)
    facts.lot_number = text(result.manufacturing_info.lot_number)
    facts.expiration_date = text(result.manufacturing_info.expiration_date)
    facts.upc = text(result.manufacturing_info.upc)
    return facts


# =============================================================================
# Providers
# =============================================================================

def _new(result: SourceResult) -> SourceFacts:
    return SourceFacts(
        reporter=result.display_name,
        source_kind=result.source_id,
        weight=result.reliability_weight,
    )


def _records(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    return []


def _approval_date(submissions: Any) -> Optional[str]:
    for submission in submissions if isinstance(submissions, list) else []:
        if not isinstance(submission, dict):
            continue
        if submission.get("submission_type") == "ORIG" and submission.get("submission_status") == "AP":
            return format_fda_date(submission.get("submission_status_date"))
    return None


def facts_from_regulatory(result: SourceResult) -> SourceFacts:
    """Drugs@FDA: the first application record of the response."""
    facts = _new(result)
    records = _records(result.payload)
    if not records:
        return facts
    record = records[0]
    openfda = record.get("openfda") or {}

    facts.brand_names = texts(openfda.get("brand_name"))
    facts.generic_names = texts(openfda.get("generic_name"))
    facts.active_ingredients = texts(openfda.get("substance_name"))
    facts.manufacturer = first(openfda.get("manufacturer_name"))
    facts.ndc = first(openfda.get("product_ndc"))
    facts.ndcs = texts(openfda.get("product_ndc"))
    facts.route = first(openfda.get("route"))
    facts.pharmacologic_classes = (
        texts(openfda.get("pharm_class_epc"))
        + texts(openfda.get("pharm_class_moa"))
        + texts(openfda.get("pharm_class_pe"))
        + texts(openfda.get("pharm_class_cs"))
    )
    facts.therapeutic_class = first(openfda.get("pharm_class_epc"))

    products = [p for p in record.get("products") or [] if isinstance(p, dict)]
    if products:
        product = products[0]
        facts.dosage_form = text(product.get("dosage_form"))
        facts.route = facts.route or text(product.get("route"))
        facts.rx_status = text(product.get("marketing_status"))
        ingredients = [i for i in product.get("active_ingredients") or [] if isinstance(i, dict)]
        if ingredients:
            facts.strength = text(ingredients[0].get("strength"))

    application_number = text(record.get("application_number"))
    facts.application_number = application_number
    if application_number:
        match = APPLICATION_TYPE_PATTERN.match(application_number)
        facts.application_type = match.group(1) if match else None
    facts.sponsor_name = text(record.get("sponsor_name"))
    facts.approval_date = _approval_date(record.get("submissions"))
    return facts


def _ingredient_from_drug_name(name: str) -> Optional[str]:
    """'ibuprofen 200 MG Oral Tablet [Advil]' -> 'ibuprofen'."""
    stripped = BRAND_IN_BRACKETS.sub("", name)
    match = re.match(r"^\D+", stripped)
    return text(match.group(0)) if match else None


def _concepts(related_group: Any, term_type: str) -> List[RelatedConcept]:
    concepts = []
    groups = (related_group or {}).get("conceptGroup") if isinstance(related_group, dict) else None
    for group in groups if isinstance(groups, list) else []:
        if not isinstance(group, dict) or group.get("tty") != term_type:
            continue
        for prop in group.get("conceptProperties") or []:
            if not isinstance(prop, dict) or not prop.get("rxcui") or not prop.get("name"):
                continue
            concepts.append(RelatedConcept(
                rxcui=str(prop["rxcui"]),
                name=str(prop["name"]),
                term_type=text(prop.get("tty")) or term_type,
                synonym=text(prop.get("synonym")),
            ))
    return concepts


def facts_from_nomenclature(result: SourceResult) -> SourceFacts:
    """
    RxNorm: generic name from the concept properties, brands from
    bracketed names, alternatives from related SCD/SBD concepts.

    RxNorm package NDCs are 11-digit codes in a different layout and are
    not cross-referenced.
    """
    facts = _new(result)
    payload = result.payload if isinstance(result.payload, dict) else {}
    facts.rxcui = text(payload.get("rxcui"))

    properties = payload.get("properties") or {}
    name = text(properties.get("name"))
    if name:
        if properties.get("tty") in INGREDIENT_TERM_TYPES:
            facts.generic_names = [name]
        else:
            facts.generic_names = texts(_ingredient_from_drug_name(name))
            facts.brand_names = texts(BRAND_IN_BRACKETS.findall(name))
        if properties.get("tty") == "BN":
            facts.brand_names = [name]
            facts.generic_names = []

    for group in payload.get("conceptGroup") or []:
        if not isinstance(group, dict) or group.get("tty") != "BN":
            continue
        for prop in group.get("conceptProperties") or []:
            brand = text(prop.get("name")) if isinstance(prop, dict) else None
            if brand and brand not in facts.brand_names:
                facts.brand_names.append(brand)

    related = payload.get("relatedGroup")
    seen = {facts.rxcui}
    for concept in _concepts(related, "SCD"):
        if concept.rxcui not in seen:
            seen.add(concept.rxcui)
            facts.generic_equivalents.append(concept)
    for concept in _concepts(related, "SBD"):
        if concept.rxcui not in seen:
            seen.add(concept.rxcui)
            facts.brand_alternatives.append(concept)
    return facts


def facts_from_label(result: SourceResult) -> SourceFacts:
    """openFDA SPL sections (also the shape a label repository would return)."""
    facts = _new(result)
    records = _records(result.payload)
    if not records:
        return facts
    label = records[0]
    openfda = label.get("openfda") or {}

    def section(*names: str) -> List[str]:
        collected = []
        for name in names:
            collected.extend(texts(label.get(name)))
        return collected

    facts.brand_names = texts(openfda.get("brand_name"))
    facts.generic_names = texts(openfda.get("generic_name"))
    facts.manufacturer = first(openfda.get("manufacturer_name"))
    facts.route = first(openfda.get("route"))
    facts.ndcs = texts(openfda.get("product_ndc"))
    facts.ndc = facts.ndcs[0] if facts.ndcs else None

    facts.indications = section("indications_and_usage")
    facts.dosage_detailed = section("dosage_and_administration")
    facts.contraindications = section("contraindications", "do_not_use")
    facts.warnings = section("warnings_and_cautions", "warnings", "precautions")
    facts.boxed_warnings = section("boxed_warning")
    facts.side_effects = section("adverse_reactions")
    facts.drug_interactions = section("drug_interactions")
    facts.specific_populations = section("use_in_specific_populations")
    facts.overdosage = section("overdosage")
    facts.clinical_pharmacology = section("clinical_pharmacology")
    facts.mechanism_of_action = section("mechanism_of_action")
    facts.pharmacokinetics = section("pharmacokinetics")
    facts.pharmacodynamics = section("pharmacodynamics")
    facts.clinical_studies = section("clinical_studies")
    facts.pregnancy_risk = section("pregnancy", "pregnancy_or_breast_feeding")
    facts.lactation_risk = section("lactation", "nursing_mothers")
    facts.pediatric_use = section("pediatric_use")
    facts.geriatric_use = section("geriatric_use")
    facts.storage = section("storage_and_handling")
    facts.inactive_ingredients = section("inactive_ingredient")
    return facts


def facts_from_adverse_events(result: SourceResult) -> SourceFacts:
    """FAERS count table: reaction term -> number of reports."""
    facts = _new(result)
    for row in _records(result.payload):
        term = text(row.get("term"))
        try:
            count = int(row.get("count") or 0)
        except (TypeError, ValueError):
            continue
        if term:
            facts.reaction_counts[term] = max(count, facts.reaction_counts.get(term, 0))
    return facts


def facts_from_local(result: SourceResult) -> SourceFacts:
    """Local catalog: every matching entry, in catalog order."""
    facts = _new(result)
    for entry in _records(result.payload):
        for value, target in (
            (entry.get("brandName"), facts.brand_names),
            (entry.get("genericName"), facts.generic_names),
            (entry.get("activeIngredient"), facts.active_ingredients),
        ):
            for item in texts(value):
                if item not in target:
                    target.append(item)
        facts.manufacturer = facts.manufacturer or text(entry.get("manufacturer"))
        facts.strength = facts.strength or text(entry.get("strength"))
        facts.dosage_form = facts.dosage_form or text(entry.get("dosageForm"))
        facts.indications += texts(entry.get("uses"))
        facts.dosage_general += texts(entry.get("dosageInstructions"))
        facts.contraindications += texts(entry.get("contraindications"))
        facts.warnings += texts(entry.get("warnings"))
        facts.side_effects += texts(entry.get("sideEffects"))
        facts.drug_interactions += texts(entry.get("drugInteractions"))
        facts.storage += texts(entry.get("storage"))
    return facts


EXTRACTORS: Dict[SourceKind, Callable[[SourceResult], SourceFacts]] = {
    SourceKind.REGULATORY_FILINGS: facts_from_regulatory,
    SourceKind.DRUG_NOMENCLATURE: facts_from_nomenclature,
    SourceKind.LABEL_REPOSITORY: facts_from_label,
    SourceKind.ADVERSE_EVENTS: facts_from_adverse_events,
    SourceKind.STRUCTURED_LABEL: facts_from_label,
    SourceKind.LOCAL_CATALOG: facts_from_local,
}


def extract_facts(result: SourceResult) -> SourceFacts:
    """
    Facts from one found source result.

    Malformed payloads yield empty facts instead of raising.
    """
    extractor = EXTRACTORS.get(result.source_id)
    if extractor is None or not result.is_found:
        return _new(result)
    try:
        return extractor(result)
    except (AttributeError, TypeError, ValueError, KeyError) as e:
        logger.warning(f"Unreadable payload from {result.source_id.value} for '{result.term}': {e}")
        return _new(result)
