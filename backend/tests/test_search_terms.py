"""
Unit tests for search term synthesis
"""

from medscan.application.synthesis.search_terms import (
    SearchTermSynthesizer,
    strip_dosage,
    is_searchable_text,
    top_terms,
)
from medscan.domain.entities.vision_result import (
    VisionAnalysisResult,
    CandidateNames,
    ExtractedText,
)
from medscan.domain.value_objects.search_term import TermOrigin
from medscan.application.pipeline.context import AggregationContext


def test_priority_order(identified_vision):
    """Brand, generic, ingredients, codes, free text, then compounds"""
    terms = SearchTermSynthesizer().synthesize(identified_vision)

    assert [t.text for t in terms] == [
        "Advil",
        "ibuprofen",
        "Ibuprofen 200 mg",
        "0573-0164-30",
        "Pain Reliever",
        "Advil Pfizer",
        "Advil 200 mg",
        "ibuprofen Pfizer",
    ]
    assert "ibuprofen 200 mg" not in [t.text for t in terms]
    assert [t.rank for t in terms] == list(range(len(terms)))
    assert terms[0].origin == TermOrigin.BRAND_NAME
    assert terms[-1].origin == TermOrigin.COMPOUND


def test_case_insensitive_duplicates_keep_first_spelling():
    result = VisionAnalysisResult(
        identified=True,
        candidate_names=CandidateNames(brand="TYLENOL", generic="Acetaminophen"),
        active_ingredients=("acetaminophen",),
        extracted_text=ExtractedText(drug_names=("Tylenol", "tylenol")),
    )

    terms = SearchTermSynthesizer().synthesize(result)
    texts = [t.text for t in terms]

    assert texts == ["TYLENOL", "Acetaminophen"]
    assert len({t.key for t in terms}) == len(terms)


def test_verified_name_used_when_no_candidate_names():
    """A failed analysis still searches for the name the user confirmed"""
    result = VisionAnalysisResult.failure("model unavailable", verified_name="Advil")

    terms = SearchTermSynthesizer().synthesize(result)

    assert [t.text for t in terms] == ["Advil"]
    assert terms[0].origin == TermOrigin.BRAND_NAME


def test_empty_result_gives_no_terms():
    assert SearchTermSynthesizer().synthesize(VisionAnalysisResult()) == []


def test_short_ingredients_and_tokens_skipped():
    result = VisionAnalysisResult(
        active_ingredients=("Zn",),
        extracted_text=ExtractedText(drug_names=("AB", "x" * 60, "Aspirin")),
    )

    terms = SearchTermSynthesizer().synthesize(result)

    assert [t.text for t in terms] == ["Aspirin"]
    assert terms[0].origin == TermOrigin.DRUG_NAME_TOKEN


def test_free_text_filters():
    assert is_searchable_text("Pain Reliever")
    assert is_searchable_text("Fever-Reducer")
    assert not is_searchable_text("Take with food")
    assert not is_searchable_text("Ibuprofen Tablets")
    assert not is_searchable_text("200 count")
    assert not is_searchable_text("ab")


def test_strip_dosage():
    assert strip_dosage("Ibuprofen 200 mg") == "Ibuprofen"
    assert strip_dosage("Hydrocortisone 1%") == "Hydrocortisone"
    assert strip_dosage("Amoxicillin 250mg / Clavulanate 62.5 mg") == "Amoxicillin / Clavulanate"


def test_top_terms(identified_vision):
    terms = SearchTermSynthesizer().synthesize(identified_vision)

    assert [t.text for t in top_terms(terms, 2)] == ["Advil", "ibuprofen"]
    assert top_terms(terms, 0) == []


def test_context_terms_follow_rank(identified_vision):
    terms = SearchTermSynthesizer().synthesize(identified_vision)
    context = AggregationContext(vision_result=identified_vision, search_terms=list(reversed(terms)))

    assert context.terms(3) == top_terms(terms, 3)
    assert [t.text for t in context.terms(3)] == ["Advil", "ibuprofen", "Ibuprofen 200 mg"]
