"""
Search Term Synthesizer

Derives the ordered, de-duplicated list of query strings sent to the
external sources from a vision analysis result.
"""

from typing import List, Optional, Sequence
import logging
import re

from ...domain.entities.vision_result import VisionAnalysisResult
from ...domain.value_objects.search_term import SearchTerm, TermOrigin


logger = logging.getLogger(__name__)


DOSAGE_PATTERN = re.compile(r"\d+(?:\.\d+)?\s*(mg|mcg|g|ml|%)", re.IGNORECASE)

FREE_TEXT_PATTERN = re.compile(r"^[A-Za-z\s\-]+$")

# Packaging and dosing words that never identify a medicine on their own
STOPWORDS = frozenset({
    "tablet", "tablets", "capsule", "capsules", "mg", "ml",
    "take", "with", "food", "water", "daily", "twice",
})

MIN_INGREDIENT_LENGTH = 3
MIN_TOKEN_LENGTH = 3
MAX_TOKEN_LENGTH = 50


class SearchTermSynthesizer:
    """
    Builds prioritized search terms.

    Priority order: brand name, generic name, active ingredients (as given
    and with the dosage stripped), codes, extracted drug names, filtered
    free text, then compound terms. Case-normalized duplicates collapse
    onto the first spelling seen.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def synthesize(self, result: VisionAnalysisResult) -> List[SearchTerm]:
        """
        Derive search terms from a vision result.

        Args:
            result: Vision analysis result

        Returns:
            Ordered, de-duplicated search terms ranked from 0
        """
        candidates = []

        def add(text: Optional[str], origin: TermOrigin) -> None:
            if text is None:
                return
            text = " ".join(str(text).split())
            if len(text) > 1:
                candidates.append((text, origin))

        brand = (
            result.candidate_names.brand
            or result.candidate_names.primary
            or result.verified_name
        )
        generic = result.candidate_names.generic

        for name, origin in ((brand, TermOrigin.BRAND_NAME), (generic, TermOrigin.GENERIC_NAME)):
            if name:
                add(name, origin)
                add(name.lower(), origin)

        for ingredient in result.active_ingredients:
            if len(ingredient.strip()) < MIN_INGREDIENT_LENGTH:
                continue
            add(ingredient, TermOrigin.ACTIVE_INGREDIENT)
            add(strip_dosage(ingredient), TermOrigin.ACTIVE_INGREDIENT)

        add(result.manufacturing_info.ndc, TermOrigin.CODE)
        for code in result.extracted_text.codes:
            add(code, TermOrigin.CODE)

        for token in result.extracted_text.drug_names:
            if MIN_TOKEN_LENGTH <= len(token.strip()) < MAX_TOKEN_LENGTH:
                add(token, TermOrigin.DRUG_NAME_TOKEN)

        for text in result.extracted_text.all_text:
            if is_searchable_text(text):
                add(text, TermOrigin.FREE_TEXT)

        for name in (brand, generic):
            if not name:
                continue
            if result.manufacturer:
                add(f"{name} {result.manufacturer}", TermOrigin.COMPOUND)
            if result.strength:
                add(f"{name} {result.strength}", TermOrigin.COMPOUND)

        terms = self._deduplicate(candidates)
        self.logger.debug(f"Synthesized {len(terms)} search terms: {[t.text for t in terms]}")
        return terms

    @staticmethod
    def _deduplicate(candidates: Sequence[tuple]) -> List[SearchTerm]:
        seen = set()
        terms = []
        for text, origin in candidates:
            term = SearchTerm(text=text, origin=origin, rank=len(terms))
            if term.key in seen:
                continue
            seen.add(term.key)
            terms.append(term)
        return terms


def strip_dosage(text: str) -> str:
    """Remove dosage amounts ("200 mg", "5%") from an ingredient string."""
    return " ".join(DOSAGE_PATTERN.sub("", text).split())


def is_searchable_text(text: str) -> bool:
    """Free text qualifies when alphabetic, 3-49 characters, and free of stopwords."""
    text = text.strip()
    if not MIN_TOKEN_LENGTH <= len(text) < MAX_TOKEN_LENGTH:
        return False
    if not FREE_TEXT_PATTERN.match(text):
        return False
    words = {word.lower() for word in re.split(r"[\s\-]+", text) if word}
    return not (words & STOPWORDS)


def top_terms(terms: Sequence[SearchTerm], limit: int) -> List[SearchTerm]:
    """First ``limit`` terms in rank order."""
    return sorted(terms, key=lambda t: t.rank)[:max(0, limit)]
