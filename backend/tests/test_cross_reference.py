"""
Unit tests for cross-referencing overlapping fields across reporters
"""

import pytest

from medscan.application.compiler.cross_reference import (
    CrossReferenceValidator,
    is_valid_ndc,
    ndc_product_key,
    normalize,
)
from medscan.domain.entities.source_result import SourceKind
from medscan.domain.entities.vision_result import VisionAnalysisResult

from conftest import make_result, DRUGSFDA_IBUPROFEN, RXNORM_IBUPROFEN, LABEL_IBUPROFEN


@pytest.mark.parametrize("value, valid", [
    ("0573-0164", True),
    ("0573-0164-30", True),
    ("NDC 50580-488-02", True),
    ("12345-678-9", True),
    ("00573016440", False),
    ("573-164", False),
    ("abcd-efg", False),
])
def test_ndc_format(value, valid):
    assert is_valid_ndc(value) is valid


def test_ndc_product_key_ignores_package_code():
    assert ndc_product_key("0573-0164-30") == ndc_product_key("NDC: 0573-0164") == "0573-0164"


def test_normalize():
    assert normalize("  Pfizer   Inc ") == "pfizer inc"


def test_vision_only_report(identified_vision):
    report = CrossReferenceValidator().validate(identified_vision, [])

    assert report.max_agreement == 1
    assert report.corroborated is False
    assert report.conflicts == ()
    assert report.agreements["brandName"] == ["Vision Analysis"]


def test_unidentified_vision_is_not_a_reporter():
    report = CrossReferenceValidator().validate(VisionAnalysisResult.failure("down"), [])

    assert report.agreements == {}
    assert report.max_agreement == 0


def test_agreement_and_conflicts(identified_vision):
    results = [
        make_result(SourceKind.REGULATORY_FILINGS, DRUGSFDA_IBUPROFEN, term="Advil"),
        make_result(SourceKind.DRUG_NOMENCLATURE, RXNORM_IBUPROFEN, term="Advil"),
        make_result(SourceKind.DRUG_NOMENCLATURE, RXNORM_IBUPROFEN, term="ibuprofen"),
        make_result(SourceKind.STRUCTURED_LABEL, LABEL_IBUPROFEN, term="Advil"),
    ]

    report = CrossReferenceValidator().validate(identified_vision, results)

    assert report.agreements["genericName"] == ["Vision Analysis", "FDA Drugs@FDA", "RxNorm", "OpenFDA Labeling"]
    assert report.agreements["ndc"] == ["Vision Analysis", "FDA Drugs@FDA", "OpenFDA Labeling"]
    assert report.consensus["brandName"] == "Advil"
    assert report.max_agreement == 4
    assert report.corroborated is True

    fields = [c.field_name for c in report.conflicts]
    assert fields == ["manufacturer"]
    conflict = report.conflicts[0]
    assert conflict.values["OpenFDA Labeling"] == ["Haleon US Holdings LLC"]
    assert "FDA Drugs@FDA=Pfizer Laboratories Div Pfizer Inc" in conflict.describe()


def test_consensus_follows_reliability_weight():
    vision = VisionAnalysisResult()
    results = [
        make_result(SourceKind.LOCAL_CATALOG, [{"brandName": "Advil", "manufacturer": "Haleon"}]),
        make_result(SourceKind.REGULATORY_FILINGS, [{"openfda": {"manufacturer_name": ["Pfizer"]}}]),
    ]

    report = CrossReferenceValidator().validate(vision, results)
    conflict = report.conflicts[0]

    assert conflict.field_name == "manufacturer"
    assert conflict.consensus == "Pfizer"
    assert report.consensus["manufacturer"] == "Pfizer"


def test_invalid_ndcs_are_reported(identified_vision):
    label = make_result(SourceKind.STRUCTURED_LABEL, [{"openfda": {"product_ndc": ["BAD-NDC", "0573-0164"]}}])

    report = CrossReferenceValidator().validate(identified_vision, [label])

    assert report.invalid_ndcs == ("BAD-NDC",)
    assert report.agreements["ndc"] == ["Vision Analysis", "OpenFDA Labeling"]


def test_threshold_is_configurable(identified_vision):
    results = [make_result(SourceKind.REGULATORY_FILINGS, DRUGSFDA_IBUPROFEN)]

    assert CrossReferenceValidator(agreement_threshold=2).validate(identified_vision, results).corroborated
    assert not CrossReferenceValidator(agreement_threshold=3).validate(identified_vision, results).corroborated
