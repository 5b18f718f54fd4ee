"""
Cross-Reference Validator

Compares the fields several reporters can independently state (brand
name, generic name, manufacturer, NDC) and records where they agree and
where they conflict. Conflicts are informational; they never block
profile compilation.
"""

from collections import OrderedDict
from typing import Optional, Dict, List, Sequence, Tuple
import logging
import re

from .source_facts import SourceFacts, extract_facts, facts_from_vision
from ...domain.entities.vision_result import VisionAnalysisResult
from ...domain.entities.source_result import SourceResult, SourceKind
from ...domain.entities.data_quality import CrossReferenceReport, FieldConflict


logger = logging.getLogger(__name__)

NDC_PATTERN = re.compile(r"^\d{4,5}-\d{3,4}(-\d{1,2})?$")
NDC_PREFIX = re.compile(r"^\s*ndc[\s:#]*", re.IGNORECASE)

COMPARED_FIELDS = ("brandName", "genericName", "manufacturer", "ndc")


def normalize(value: str) -> str:
    """Lower-case, trimmed, whitespace-collapsed."""
    return " ".join(value.lower().split())


def clean_ndc(value: str) -> str:
    return NDC_PREFIX.sub("", value).strip()


def is_valid_ndc(value: str) -> bool:
    return bool(NDC_PATTERN.match(clean_ndc(value)))


def ndc_product_key(value: str) -> str:
    """Labeler and product segments; package codes differ between sizes."""
    return "-".join(clean_ndc(value).split("-")[:2])


def merge_by_reporter(facts: Sequence[SourceFacts]) -> List[SourceFacts]:
    """
    Collapse the facts of one provider's results into a single reporter.

    Several terms can hit the same provider; it still counts once.
    """
    merged: "OrderedDict[str, SourceFacts]" = OrderedDict()
    for item in facts:
        target = merged.get(item.reporter)
        if target is None:
            merged[item.reporter] = SourceFacts(
                reporter=item.reporter,
                source_kind=item.source_kind,
                weight=item.weight,
                brand_names=list(item.brand_names),
                generic_names=list(item.generic_names),
                manufacturer=item.manufacturer,
                ndcs=list(item.ndcs),
            )
            continue
        for source, dest in (
            (item.brand_names, target.brand_names),
            (item.generic_names, target.generic_names),
            (item.ndcs, target.ndcs),
        ):
            dest.extend(v for v in source if v not in dest)
        target.manufacturer = target.manufacturer or item.manufacturer
    return list(merged.values())


class CrossReferenceValidator:
    """
    Builds a ``CrossReferenceReport`` from the vision result and found results.

    For every compared field, reporters are grouped by normalized value.
    The largest group gives the agreement count; the reliability-weighted
    heaviest group gives the consensus value. Reporters outside the
    largest group are recorded as a conflict.

    Args:
        agreement_threshold: Reporters that must agree for corroboration
        vision_weight: Reliability weight of the vision analysis
    """

    def __init__(self, agreement_threshold: int = 3, vision_weight: float = 0.3):
        self.agreement_threshold = agreement_threshold
        self.vision_weight = vision_weight
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def validate(
        self,
        vision_result: VisionAnalysisResult,
        results: Sequence[SourceResult]
    ) -> CrossReferenceReport:
        reporters = []
        if vision_result.identified:
            reporters.append(facts_from_vision(vision_result, self.vision_weight))
        reporters.extend(merge_by_reporter([extract_facts(r) for r in results if r.is_found]))

        invalid_ndcs = []
        agreements: Dict[str, List[str]] = {}
        consensus: Dict[str, Optional[str]] = {}
        conflicts = []

        for field_name in COMPARED_FIELDS:
            reported = []
            for facts in reporters:
                values = self._values(facts, field_name, invalid_ndcs)
                if values:
                    reported.append((facts, values))
            if not reported:
                continue

            agreed, winner = self._compare(reported)
            agreements[field_name] = agreed
            consensus[field_name] = winner

            outsiders = [facts.reporter for facts, _ in reported if facts.reporter not in agreed]
            if outsiders:
                conflicts.append(FieldConflict(
                    field_name=field_name,
                    consensus=winner,
                    values={facts.reporter: [original for original, _ in values] for facts, values in reported},
                ))

        max_agreement = max((len(names) for names in agreements.values()), default=0)
        report = CrossReferenceReport(
            agreements=agreements,
            conflicts=tuple(conflicts),
            consensus=consensus,
            max_agreement=max_agreement,
            corroborated=max_agreement >= self.agreement_threshold,
            invalid_ndcs=tuple(dict.fromkeys(invalid_ndcs)),
        )
        self.logger.debug(
            f"Cross-reference: {len(reporters)} reporters, max agreement {max_agreement}, "
            f"{len(conflicts)} conflicts"
        )
        return report

    @staticmethod
    def _values(facts: SourceFacts, field_name: str, invalid_ndcs: List[str]) -> List[Tuple[str, str]]:
        """(original, normalized) pairs one reporter gives for a field."""
        if field_name == "brandName":
            raw = facts.brand_names
        elif field_name == "genericName":
            raw = facts.generic_names
        elif field_name == "manufacturer":
            raw = [facts.manufacturer] if facts.manufacturer else []
        else:
            if facts.source_kind == SourceKind.DRUG_NOMENCLATURE:
                return []
            raw = []
            for ndc in facts.ndcs:
                if is_valid_ndc(ndc):
                    raw.append(ndc)
                else:
                    invalid_ndcs.append(ndc)

        pairs = []
        seen = set()
        for value in raw:
            key = ndc_product_key(value) if field_name == "ndc" else normalize(value)
            if key and key not in seen:
                seen.add(key)
                pairs.append((value, key))
        return pairs

    @staticmethod
    def _compare(reported: List[Tuple[SourceFacts, List[Tuple[str, str]]]]) -> Tuple[List[str], Optional[str]]:
        """Largest agreeing reporter group and the weighted consensus value."""
        groups: "OrderedDict[str, List[SourceFacts]]" = OrderedDict()
        spelling: Dict[str, str] = {}
        for facts, values in reported:
            for original, key in values:
                groups.setdefault(key, []).append(facts)
                spelling.setdefault(key, original)

        keys = list(groups)
        largest = max(keys, key=lambda k: (len(groups[k]), -keys.index(k)))
        heaviest = max(
            keys,
            key=lambda k: (sum(f.weight for f in groups[k]), len(groups[k]), -keys.index(k)),
        )
        return [f.reporter for f in groups[largest]], spelling[heaviest]
