"""
Medicine Lookup Service

Name search ranked by relevance over Drugs@FDA and the local catalog, and
product lookup by National Drug Code. Neither needs a photo.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Sequence
import logging

from ..compiler.source_facts import (
    SourceFacts,
    extract_facts,
    text,
    texts,
    first,
)
from ...config.settings import SourcesConfig
from ...domain.entities.source_result import SourceResult, SourceKind
from ...domain.ports.source_adapter import SourceAdapterPort


MAX_SEARCH_RESULTS = 10

# Relevance points per field
EXACT_NAME_POINTS = 100
PARTIAL_NAME_POINTS = 50
PARTIAL_INGREDIENT_POINTS = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LookupMatch:
    """One product found by a name search or a code lookup."""

    source: str
    brand_name: Optional[str] = None
    generic_name: Optional[str] = None
    active_ingredient: Optional[str] = None
    manufacturer: Optional[str] = None
    strength: Optional[str] = None
    dosage_form: Optional[str] = None
    route: Optional[str] = None
    ndc: Optional[str] = None
    application_number: Optional[str] = None
    relevance: int = 0

    @classmethod
    def from_facts(cls, facts: SourceFacts) -> "LookupMatch":
        return cls(
            source=facts.reporter,
            brand_name=first(facts.brand_names),
            generic_name=first(facts.generic_names),
            active_ingredient=first(facts.active_ingredients),
            manufacturer=facts.manufacturer,
            strength=facts.strength,
            dosage_form=facts.dosage_form,
            route=facts.route,
            ndc=facts.ndc,
            application_number=facts.application_number,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "brandName": self.brand_name,
            "genericName": self.generic_name,
            "activeIngredient": self.active_ingredient,
            "manufacturer": self.manufacturer,
            "strength": self.strength,
            "dosageForm": self.dosage_form,
            "route": self.route,
            "ndc": self.ndc,
            "applicationNumber": self.application_number,
            "relevance": self.relevance,
        }


@dataclass
class NameSearchResult:
    """Ranked matches for a name; ``total_found`` counts before truncation."""

    query: str
    matches: List[LookupMatch] = field(default_factory=list)
    total_found: int = 0
    warnings: List[str] = field(default_factory=list)
    searched_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "results": [m.to_dict() for m in self.matches],
            "totalFound": self.total_found,
            "warnings": list(self.warnings),
            "searchedAt": self.searched_at.isoformat(),
        }


@dataclass
class NdcLookupResult:
    ndc: str
    match: Optional[LookupMatch] = None
    source: str = ""
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.match is not None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "ndc": self.ndc,
            "found": self.found,
            "source": self.source,
            "data": self.match.to_dict() if self.match else None,
        }
        if self.error:
            data["error"] = self.error
        elif not self.found:
            data["message"] = "No medicine found with the provided NDC"
        return data


def calculate_relevance(term: str, match: LookupMatch) -> int:
    """
    Score a match against the searched name.

    Exact brand or generic matches earn 100 points each; substring matches
    earn 50 on those names and 30 on the active ingredient. An exact match
    also counts as a substring match.
    """
    term = (term or "").strip().lower()
    if not term:
        return 0
    brand = (match.brand_name or "").lower()
    generic = (match.generic_name or "").lower()
    ingredient = (match.active_ingredient or "").lower()

    score = 0
    if brand == term:
        score += EXACT_NAME_POINTS
    if generic == term:
        score += EXACT_NAME_POINTS
    if term in brand:
        score += PARTIAL_NAME_POINTS
    if term in generic:
        score += PARTIAL_NAME_POINTS
    if term in ingredient:
        score += PARTIAL_INGREDIENT_POINTS
    return score


def split_matches(result: SourceResult) -> List[LookupMatch]:
    """One match per record of a found Drugs@FDA or local catalog answer."""
    if not result.is_found:
        return []
    records = result.payload if isinstance(result.payload, list) else [result.payload]
    matches = []
    for record in records:
        if not isinstance(record, dict):
            continue
        facts = extract_facts(replace(result, payload=[record]))
        matches.append(LookupMatch.from_facts(facts))
    return matches


def match_from_ndc_record(record: Dict[str, Any], source: str) -> LookupMatch:
    """NDC Directory product record to a match."""
    ingredients = [i for i in record.get("active_ingredients") or [] if isinstance(i, dict)]
    openfda = record.get("openfda") or {}
    ingredient = ingredients[0] if ingredients else {}
    return LookupMatch(
        source=source,
        brand_name=text(record.get("brand_name")),
        generic_name=text(record.get("generic_name")),
        active_ingredient=text(ingredient.get("name")),
        manufacturer=text(record.get("labeler_name")) or first(openfda.get("manufacturer_name")),
        strength=text(ingredient.get("strength")),
        dosage_form=text(record.get("dosage_form")),
        route=first(texts(record.get("route"))),
        ndc=text(record.get("product_ndc")),
        application_number=text(record.get("application_number")),
    )


class MedicineLookupService:
    """
    Photo-free lookups.

    ``search`` queries every search adapter with the name, scores each
    record with ``calculate_relevance`` and returns the best ones first.
    ``by_ndc`` asks the NDC Directory adapter for one product. Neither
    raises; provider failures become warnings or an error field.

    Usage:
        lookup = MedicineLookupService.from_config(config.sources)
        lookup.search("ibuprofen")
        lookup.by_ndc("0573-0164")
    """

    def __init__(
        self,
        search_adapters: Sequence[SourceAdapterPort],
        ndc_adapter: Optional[SourceAdapterPort] = None,
        max_results: int = MAX_SEARCH_RESULTS
    ):
        self.search_adapters = list(search_adapters)
        self.ndc_adapter = ndc_adapter
        self.max_results = max_results
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, config: Optional[SourcesConfig] = None, session=None) -> "MedicineLookupService":
        from ...infrastructure.sources.factory import SourceAdapterFactory

        config = config or SourcesConfig()
        return cls(
            search_adapters=[
                SourceAdapterFactory.create(SourceKind.REGULATORY_FILINGS, config, session),
                SourceAdapterFactory.create(SourceKind.LOCAL_CATALOG, config, session),
            ],
            ndc_adapter=SourceAdapterFactory.create_ndc(config, session),
        )

    def search(self, name: str) -> NameSearchResult:
        """
        Search providers by medicine name.

        Args:
            name: Brand, generic or ingredient name

        Returns:
            NameSearchResult with at most ``max_results`` matches by relevance
        """
        query = (name or "").strip()
        matches: List[LookupMatch] = []
        warnings: List[str] = []

        for adapter in self.search_adapters:
            try:
                result = adapter.query(query)
            except Exception as e:
                self.logger.warning(f"{adapter.display_name} search raised for '{query}': {e}")
                warnings.append(f"{adapter.display_name} search failed: {e}")
                continue
            if result.error:
                warnings.append(f"{result.display_name} search failed: {result.error}")
                continue
            for match in split_matches(result):
                match.relevance = calculate_relevance(query, match)
                matches.append(match)

        # sorted() is stable, so equal scores keep provider order
        ranked = sorted(matches, key=lambda m: m.relevance, reverse=True)
        self.logger.info(f"Name search '{query}': {len(ranked)} matches, {len(warnings)} warnings")
        return NameSearchResult(
            query=query,
            matches=ranked[:self.max_results],
            total_found=len(ranked),
            warnings=warnings,
        )

    def by_ndc(self, ndc: str) -> NdcLookupResult:
        """Look up one product by National Drug Code."""
        ndc = (ndc or "").strip()
        if self.ndc_adapter is None:
            return NdcLookupResult(ndc=ndc, error="No NDC source configured")

        try:
            result = self.ndc_adapter.query(ndc)
        except Exception as e:
            self.logger.warning(f"NDC lookup raised for '{ndc}': {e}")
            return NdcLookupResult(ndc=ndc, source=self.ndc_adapter.display_name, error=str(e))

        if result.error:
            return NdcLookupResult(ndc=ndc, source=result.display_name, error=result.error)
        if not result.is_found:
            return NdcLookupResult(ndc=ndc, source=result.display_name)

        records = result.payload if isinstance(result.payload, list) else [result.payload]
        records = [r for r in records if isinstance(r, dict)]
        if not records:
            return NdcLookupResult(ndc=ndc, source=result.display_name)
        return NdcLookupResult(
            ndc=ndc,
            match=match_from_ndc_record(records[0], result.display_name),
            source=result.display_name,
        )

    def close(self) -> None:
        adapters = self.search_adapters + ([self.ndc_adapter] if self.ndc_adapter else [])
        for adapter in adapters:
            try:
                adapter.close()
            except Exception as e:
                self.logger.warning(f"Failed to close {adapter.display_name}: {e}")
