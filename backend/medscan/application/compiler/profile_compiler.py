"""
Profile Compiler

Merges the vision result and every found source result into one
``ComprehensiveMedicineProfile``.

Merge strategy per field kind:
    - name/ingredient sets: ordered union, exact (case-sensitive) dedup
    - primary scalars: first non-null value in source-priority order
    - free text: ordered list append, exact duplicates dropped
    - adverse events: bucketed by report count (volume, not clinical severity)

Source priority: vision, regulatory filings, drug nomenclature, label
repository, structured label, local catalog.
"""

from typing import Optional, Dict, Iterable, List, Sequence, Tuple
import logging

from .source_facts import SourceFacts, extract_facts, facts_from_vision
from ...domain.entities.vision_result import VisionAnalysisResult
from ...domain.entities.source_result import SourceResult, SourceKind
from ...domain.entities.medicine_profile import (
    ComprehensiveMedicineProfile,
    Identification,
    DosageAndAdministration,
    PrescribingInfo,
    Pharmacokinetics,
    Pharmacology,
    AdverseReactionBuckets,
    InteractionSeverity,
    PregnancyAndLactation,
    SafetyProfile,
    ManufacturingInfo,
    RegulatoryInfo,
    ClinicalInfo,
    PricingInfo,
    RelatedConcept,
    Alternatives,
)


logger = logging.getLogger(__name__)

SOURCE_PRIORITY = (
    SourceKind.REGULATORY_FILINGS,
    SourceKind.DRUG_NOMENCLATURE,
    SourceKind.LABEL_REPOSITORY,
    SourceKind.STRUCTURED_LABEL,
    SourceKind.LOCAL_CATALOG,
    SourceKind.ADVERSE_EVENTS,
)

SURVEILLANCE_TOP_TERMS = 5


def union(lists: Iterable[Sequence[str]]) -> Tuple[str, ...]:
    """Ordered union with exact-match de-duplication."""
    merged = []
    seen = set()
    for values in lists:
        for value in values:
            if value and value not in seen:
                seen.add(value)
                merged.append(value)
    return tuple(merged)


def first_value(values: Iterable[Optional[str]]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


def order_results(results: Sequence[SourceResult]) -> List[SourceResult]:
    """Found results in source-priority order, stable within a source."""
    rank = {kind: index for index, kind in enumerate(SOURCE_PRIORITY)}
    found = [r for r in results if r.is_found]
    return sorted(found, key=lambda r: rank.get(r.source_id, len(rank)))


class ProfileCompiler:
    """
    Compiles the canonical medicine profile.

    Args:
        common_threshold: Reports above which a reaction is "common"
        serious_threshold: Reports above which a reaction is "serious"
        vision_weight: Reliability weight attached to vision facts
    """

    def __init__(
        self,
        common_threshold: int = 1000,
        serious_threshold: int = 100,
        vision_weight: float = 0.3
    ):
        self.common_threshold = common_threshold
        self.serious_threshold = serious_threshold
        self.vision_weight = vision_weight
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def compile(
        self,
        vision_result: VisionAnalysisResult,
        source_results: Sequence[SourceResult] = ()
    ) -> ComprehensiveMedicineProfile:
        """
        Build the profile.

        Args:
            vision_result: Vision analysis of the images
            source_results: Results from the aggregation run (any status)

        Returns:
            Profile whose sub-records are always present
        """
        ordered = order_results(source_results)
        vision = facts_from_vision(vision_result, self.vision_weight)
        providers = [extract_facts(r) for r in ordered]
        facts = [vision] + providers

        profile = ComprehensiveMedicineProfile(
            identification=self._identification(vision_result, facts),
            prescribing_info=self._prescribing(facts),
            pharmacology=self._pharmacology(facts),
            safety_profile=self._safety(facts),
            manufacturing_info=self._manufacturing(facts),
            regulatory_info=self._regulatory(providers),
            clinical_info=self._clinical(facts),
            pricing_info=self._pricing(facts),
            alternatives=self._alternatives(facts),
        )
        self.logger.debug(
            f"Compiled profile from vision + {len(ordered)} found results "
            f"({len(providers)} providers)"
        )
        return profile

    # -------------------------------------------------------------------------
    # Sub-records
    # -------------------------------------------------------------------------

    def _identification(self, vision_result: VisionAnalysisResult, facts: List[SourceFacts]) -> Identification:
        brand_names = union(f.brand_names for f in facts)
        generic_names = union(f.generic_names for f in facts)
        identified = vision_result.identified

        return Identification(
            primary_brand_name=brand_names[0] if identified and brand_names else None,
            primary_generic_name=generic_names[0] if identified and generic_names else None,
            brand_names=brand_names,
            generic_names=generic_names,
            active_ingredients=union(f.active_ingredients for f in facts),
            inactive_ingredients=union(f.inactive_ingredients for f in facts),
            strength=first_value(f.strength for f in facts),
            dosage_form=first_value(f.dosage_form for f in facts),
            route=first_value(f.route for f in facts),
            ndc=first_value(f.ndc for f in facts),
            manufacturer=first_value(f.manufacturer for f in facts),
            therapeutic_class=first_value(f.therapeutic_class for f in facts),
            physical_characteristics=vision_result.physical_characteristics,
        )

    def _prescribing(self, facts: List[SourceFacts]) -> PrescribingInfo:
        return PrescribingInfo(
            indications=union(f.indications for f in facts),
            dosage_and_administration=DosageAndAdministration(
                general=union(f.dosage_general for f in facts),
                detailed=union(f.dosage_detailed for f in facts),
                simplified=union(f.dosage_simplified for f in facts),
            ),
            contraindications=union(f.contraindications for f in facts),
            warnings_and_precautions=union(f.warnings for f in facts),
            adverse_reactions=union(f.side_effects for f in facts),
            drug_interactions=union(f.drug_interactions for f in facts),
            use_in_specific_populations=union(f.specific_populations for f in facts),
            overdosage=union(f.overdosage for f in facts),
            clinical_pharmacology=union(f.clinical_pharmacology for f in facts),
        )

    def _pharmacology(self, facts: List[SourceFacts]) -> Pharmacology:
        return Pharmacology(
            mechanism_of_action=union(f.mechanism_of_action for f in facts),
            pharmacokinetics=Pharmacokinetics(summary=union(f.pharmacokinetics for f in facts)),
            pharmacodynamics=union(f.pharmacodynamics for f in facts),
            pharmacologic_classes=union(f.pharmacologic_classes for f in facts),
            clinical_studies=union(f.clinical_studies for f in facts),
        )

    def _safety(self, facts: List[SourceFacts]) -> SafetyProfile:
        return SafetyProfile(
            black_box_warnings=union(f.boxed_warnings for f in facts),
            contraindications=union(f.contraindications for f in facts),
            warnings_and_precautions=union(f.warnings for f in facts),
            adverse_reactions=self.bucket_reactions(merge_reaction_counts(facts)),
            # No provider classifies interaction severity
            drug_interactions=InteractionSeverity(),
            pregnancy_and_lactation=PregnancyAndLactation(
                pregnancy_category=first_value(f.pregnancy_category for f in facts),
                pregnancy_risk=union(f.pregnancy_risk for f in facts),
                lactation_risk=union(f.lactation_risk for f in facts),
            ),
            pediatric_use=union(f.pediatric_use for f in facts),
            geriatric_use=union(f.geriatric_use for f in facts),
        )

    def bucket_reactions(self, counts: List[Tuple[str, int]]) -> AdverseReactionBuckets:
        """
        Split reactions by report count.

        Above ``common_threshold`` reports is common, above
        ``serious_threshold`` is serious, anything else is rare.
        """
        common, serious, rare = [], [], []
        for term, count in counts:
            if count > self.common_threshold:
                common.append(term)
            elif count > self.serious_threshold:
                serious.append(term)
            else:
                rare.append(term)
        return AdverseReactionBuckets(common=tuple(common), serious=tuple(serious), rare=tuple(rare))

    def _manufacturing(self, facts: List[SourceFacts]) -> ManufacturingInfo:
        return ManufacturingInfo(
            manufacturer=first_value(f.manufacturer for f in facts),
            distributed_by=first_value(f.distributed_by for f in facts),
            lot_number=first_value(f.lot_number for f in facts),
            expiration_date=first_value(f.expiration_date for f in facts),
            ndc=first_value(f.ndc for f in facts),
            upc=first_value(f.upc for f in facts),
            storage_conditions=union(f.storage for f in facts),
        )

    @staticmethod
    def _regulatory(providers: List[SourceFacts]) -> RegulatoryInfo:
        filings = [f for f in providers if f.source_kind == SourceKind.REGULATORY_FILINGS]
        if not filings:
            return RegulatoryInfo()
        filing = filings[0]
        return RegulatoryInfo(
            fda_approval_date=filing.approval_date,
            application_number=filing.application_number,
            application_type=filing.application_type,
            sponsor_name=filing.sponsor_name,
            rx_status=filing.rx_status,
        )

    @staticmethod
    def _clinical(facts: List[SourceFacts]) -> ClinicalInfo:
        counts = merge_reaction_counts(facts)
        surveillance = None
        if counts:
            total = sum(count for _, count in counts)
            top = ", ".join(f"{term} ({count})" for term, count in counts[:SURVEILLANCE_TOP_TERMS])
            surveillance = (
                f"{len(counts)} reaction terms in {total} adverse event reports; "
                f"most reported: {top}"
            )
        return ClinicalInfo(post_marketing_surveillance=surveillance)

    @staticmethod
    def _pricing(facts: List[SourceFacts]) -> PricingInfo:
        has_generic = any(f.generic_equivalents for f in facts)
        return PricingInfo(generic_available=True if has_generic else None)

    @staticmethod
    def _alternatives(facts: List[SourceFacts]) -> Alternatives:
        return Alternatives(
            generic_equivalents=union_concepts(f.generic_equivalents for f in facts),
            brand_alternatives=union_concepts(f.brand_alternatives for f in facts),
        )


def merge_reaction_counts(facts: Iterable[SourceFacts]) -> List[Tuple[str, int]]:
    """Highest count per reaction, most reported first, ties by name."""
    merged: Dict[str, int] = {}
    for item in facts:
        for term, count in item.reaction_counts.items():
            merged[term] = max(count, merged.get(term, 0))
    return sorted(merged.items(), key=lambda pair: (-pair[1], pair[0]))


def union_concepts(lists: Iterable[Sequence[RelatedConcept]]) -> Tuple[RelatedConcept, ...]:
    merged = []
    seen = set()
    for concepts in lists:
        for concept in concepts:
            if concept.rxcui not in seen:
                seen.add(concept.rxcui)
                merged.append(concept)
    return tuple(merged)
