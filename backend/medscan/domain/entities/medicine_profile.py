"""
Comprehensive Medicine Profile Entity

Canonical merged record built by the profile compiler. Every sub-record
always exists with an empty-but-typed default shape; set-like fields are
ordered tuples de-duplicated case-sensitively; scalars are either None or
a non-empty string.
"""

from dataclasses import dataclass, field
from typing import Tuple, Optional, Dict, Any

from .vision_result import PhysicalCharacteristics


def _list(values: Tuple[Any, ...]) -> list:
    return [v.to_dict() if hasattr(v, "to_dict") else v for v in values]


@dataclass(frozen=True)
class Identification:
    """Names, ingredients and form of the medicine."""

    primary_brand_name: Optional[str] = None
    primary_generic_name: Optional[str] = None
    brand_names: Tuple[str, ...] = ()
    generic_names: Tuple[str, ...] = ()
    active_ingredients: Tuple[str, ...] = ()
    inactive_ingredients: Tuple[str, ...] = ()
    strength: Optional[str] = None
    dosage_form: Optional[str] = None
    route: Optional[str] = None
    ndc: Optional[str] = None
    manufacturer: Optional[str] = None
    therapeutic_class: Optional[str] = None
    physical_characteristics: PhysicalCharacteristics = field(default_factory=PhysicalCharacteristics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primaryBrandName": self.primary_brand_name,
            "primaryGenericName": self.primary_generic_name,
            "brandNames": list(self.brand_names),
            "genericNames": list(self.generic_names),
            "activeIngredients": list(self.active_ingredients),
            "inactiveIngredients": list(self.inactive_ingredients),
            "strength": self.strength,
            "dosageForm": self.dosage_form,
            "route": self.route,
            "ndc": self.ndc,
            "manufacturer": self.manufacturer,
            "therapeuticClass": self.therapeutic_class,
            "physicalCharacteristics": self.physical_characteristics.to_dict(),
        }


@dataclass(frozen=True)
class DosageAndAdministration:
    """Dosing text by level of detail; each level is an ordered list."""

    general: Tuple[str, ...] = ()
    detailed: Tuple[str, ...] = ()
    simplified: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "general": list(self.general),
            "detailed": list(self.detailed),
            "simplified": list(self.simplified),
        }


@dataclass(frozen=True)
class PrescribingInfo:
    """Label-style prescribing sections, appended from every source."""

    indications: Tuple[str, ...] = ()
    dosage_and_administration: DosageAndAdministration = field(default_factory=DosageAndAdministration)
    contraindications: Tuple[str, ...] = ()
    warnings_and_precautions: Tuple[str, ...] = ()
    adverse_reactions: Tuple[str, ...] = ()
    drug_interactions: Tuple[str, ...] = ()
    use_in_specific_populations: Tuple[str, ...] = ()
    overdosage: Tuple[str, ...] = ()
    clinical_pharmacology: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "indications": list(self.indications),
            "dosageAndAdministration": self.dosage_and_administration.to_dict(),
            "contraindications": list(self.contraindications),
            "warningsAndPrecautions": list(self.warnings_and_precautions),
            "adverseReactions": list(self.adverse_reactions),
            "drugInteractions": list(self.drug_interactions),
            "useInSpecificPopulations": list(self.use_in_specific_populations),
            "overdosage": list(self.overdosage),
            "clinicalPharmacology": list(self.clinical_pharmacology),
        }


@dataclass(frozen=True)
class Pharmacokinetics:
    summary: Tuple[str, ...] = ()
    absorption: Optional[str] = None
    distribution: Optional[str] = None
    metabolism: Optional[str] = None
    elimination: Optional[str] = None
    half_life: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": list(self.summary),
            "absorption": self.absorption,
            "distribution": self.distribution,
            "metabolism": self.metabolism,
            "elimination": self.elimination,
            "halfLife": self.half_life,
        }


@dataclass(frozen=True)
class Pharmacology:
    """Mechanism and class information derived from identification sources."""

    mechanism_of_action: Tuple[str, ...] = ()
    pharmacokinetics: Pharmacokinetics = field(default_factory=Pharmacokinetics)
    pharmacodynamics: Tuple[str, ...] = ()
    pharmacologic_classes: Tuple[str, ...] = ()
    clinical_studies: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mechanismOfAction": list(self.mechanism_of_action),
            "pharmacokinetics": self.pharmacokinetics.to_dict(),
            "pharmacodynamics": list(self.pharmacodynamics),
            "pharmacologicClasses": list(self.pharmacologic_classes),
            "clinicalStudies": list(self.clinical_studies),
        }


@dataclass(frozen=True)
class AdverseReactionBuckets:
    """
    Reported reactions bucketed by report count.

    The buckets reflect report volume in a spontaneous-reporting database,
    not clinical frequency or severity.
    """

    common: Tuple[str, ...] = ()
    serious: Tuple[str, ...] = ()
    rare: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "common": list(self.common),
            "serious": list(self.serious),
            "rare": list(self.rare),
        }


@dataclass(frozen=True)
class InteractionSeverity:
    major: Tuple[str, ...] = ()
    moderate: Tuple[str, ...] = ()
    minor: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "major": list(self.major),
            "moderate": list(self.moderate),
            "minor": list(self.minor),
        }


@dataclass(frozen=True)
class PregnancyAndLactation:
    pregnancy_category: Optional[str] = None
    pregnancy_risk: Tuple[str, ...] = ()
    lactation_risk: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pregnancyCategory": self.pregnancy_category,
            "pregnancyRisk": list(self.pregnancy_risk),
            "lactationRisk": list(self.lactation_risk),
        }


@dataclass(frozen=True)
class SafetyProfile:
    """Warnings, adverse reactions and population-specific cautions."""

    black_box_warnings: Tuple[str, ...] = ()
    contraindications: Tuple[str, ...] = ()
    warnings_and_precautions: Tuple[str, ...] = ()
    adverse_reactions: AdverseReactionBuckets = field(default_factory=AdverseReactionBuckets)
    drug_interactions: InteractionSeverity = field(default_factory=InteractionSeverity)
    pregnancy_and_lactation: PregnancyAndLactation = field(default_factory=PregnancyAndLactation)
    pediatric_use: Tuple[str, ...] = ()
    geriatric_use: Tuple[str, ...] = ()
    renal_impairment: Tuple[str, ...] = ()
    hepatic_impairment: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blackBoxWarnings": list(self.black_box_warnings),
            "contraindications": list(self.contraindications),
            "warningsAndPrecautions": list(self.warnings_and_precautions),
            "adverseReactions": self.adverse_reactions.to_dict(),
            "drugInteractions": self.drug_interactions.to_dict(),
            "pregnancyAndLactation": self.pregnancy_and_lactation.to_dict(),
            "pediatricUse": list(self.pediatric_use),
            "geriatricUse": list(self.geriatric_use),
            "renalImpairment": list(self.renal_impairment),
            "hepaticImpairment": list(self.hepatic_impairment),
        }


@dataclass(frozen=True)
class ManufacturingInfo:
    manufacturer: Optional[str] = None
    distributed_by: Optional[str] = None
    lot_number: Optional[str] = None
    expiration_date: Optional[str] = None
    ndc: Optional[str] = None
    upc: Optional[str] = None
    storage_conditions: Tuple[str, ...] = ()
    shelf_life: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "manufacturer": self.manufacturer,
            "distributedBy": self.distributed_by,
            "lotNumber": self.lot_number,
            "expirationDate": self.expiration_date,
            "ndc": self.ndc,
            "upc": self.upc,
            "storageConditions": list(self.storage_conditions),
            "shelfLife": self.shelf_life,
        }


@dataclass(frozen=True)
class RegulatoryInfo:
    """Approval data; booleans are None when no source states them."""

    fda_approval_date: Optional[str] = None
    application_number: Optional[str] = None
    application_type: Optional[str] = None
    sponsor_name: Optional[str] = None
    rx_status: Optional[str] = None
    controlled_substance: Optional[str] = None
    dea: Optional[str] = None
    orphan_drug: Optional[bool] = None
    fast_track: Optional[bool] = None
    breakthrough_therapy: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fdaApprovalDate": self.fda_approval_date,
            "applicationNumber": self.application_number,
            "applicationType": self.application_type,
            "sponsorName": self.sponsor_name,
            "rxStatus": self.rx_status,
            "controlledSubstance": self.controlled_substance,
            "dea": self.dea,
            "orphanDrug": self.orphan_drug,
            "fastTrack": self.fast_track,
            "breakthroughTherapy": self.breakthrough_therapy,
        }


@dataclass(frozen=True)
class ClinicalInfo:
    clinical_trials: Tuple[str, ...] = ()
    efficacy_data: Optional[str] = None
    safety_data: Optional[str] = None
    post_marketing_surveillance: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clinicalTrials": list(self.clinical_trials),
            "efficacyData": self.efficacy_data,
            "safetyData": self.safety_data,
            "postMarketingSurveillance": self.post_marketing_surveillance,
        }


@dataclass(frozen=True)
class PricingInfo:
    """No pricing provider is queried; only generic availability is derived."""

    average_wholesale_price: Optional[str] = None
    average_retail_price: Optional[str] = None
    medicare_price: Optional[str] = None
    medicaid_price: Optional[str] = None
    cash_price: Optional[str] = None
    insurance_coverage: Optional[str] = None
    generic_available: Optional[bool] = None
    patent_expiration: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "averageWholesalePrice": self.average_wholesale_price,
            "averageRetailPrice": self.average_retail_price,
            "medicarePrice": self.medicare_price,
            "medicaidPrice": self.medicaid_price,
            "cashPrice": self.cash_price,
            "insuranceCoverage": self.insurance_coverage,
            "genericAvailable": self.generic_available,
            "patentExpiration": self.patent_expiration,
        }


@dataclass(frozen=True)
class RelatedConcept:
    """A related drug concept from the nomenclature service."""

    rxcui: str
    name: str
    term_type: Optional[str] = None
    synonym: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rxcui": self.rxcui,
            "name": self.name,
            "tty": self.term_type,
            "synonym": self.synonym,
        }


@dataclass(frozen=True)
class Alternatives:
    generic_equivalents: Tuple[RelatedConcept, ...] = ()
    therapeutic_alternatives: Tuple[RelatedConcept, ...] = ()
    brand_alternatives: Tuple[RelatedConcept, ...] = ()
    biosimilars: Tuple[RelatedConcept, ...] = ()
    over_the_counter_alternatives: Tuple[RelatedConcept, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "genericEquivalents": _list(self.generic_equivalents),
            "therapeuticAlternatives": _list(self.therapeutic_alternatives),
            "brandAlternatives": _list(self.brand_alternatives),
            "biosimilars": _list(self.biosimilars),
            "overTheCounterAlternatives": _list(self.over_the_counter_alternatives),
        }


@dataclass(frozen=True)
class ComprehensiveMedicineProfile:
    """
    Canonical output of one pipeline run.

    Attributes:
        identification: Names, ingredients, form
        prescribing_info: Indications, dosing, label warnings
        pharmacology: Mechanism and classes
        safety_profile: Bucketed reactions and cautions
        manufacturing_info: Manufacturer and package codes
        regulatory_info: Approval data
        clinical_info: Studies and surveillance summary
        pricing_info: Pricing placeholders and generic availability
        alternatives: Generic and brand alternatives
    """

    identification: Identification = field(default_factory=Identification)
    prescribing_info: PrescribingInfo = field(default_factory=PrescribingInfo)
    pharmacology: Pharmacology = field(default_factory=Pharmacology)
    safety_profile: SafetyProfile = field(default_factory=SafetyProfile)
    manufacturing_info: ManufacturingInfo = field(default_factory=ManufacturingInfo)
    regulatory_info: RegulatoryInfo = field(default_factory=RegulatoryInfo)
    clinical_info: ClinicalInfo = field(default_factory=ClinicalInfo)
    pricing_info: PricingInfo = field(default_factory=PricingInfo)
    alternatives: Alternatives = field(default_factory=Alternatives)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase JSON shape returned to callers."""
        return {
            "identification": self.identification.to_dict(),
            "prescribingInfo": self.prescribing_info.to_dict(),
            "pharmacology": self.pharmacology.to_dict(),
            "safetyProfile": self.safety_profile.to_dict(),
            "manufacturingInfo": self.manufacturing_info.to_dict(),
            "regulatoryInfo": self.regulatory_info.to_dict(),
            "clinicalInfo": self.clinical_info.to_dict(),
            "pricingInfo": self.pricing_info.to_dict(),
            "alternatives": self.alternatives.to_dict(),
        }
