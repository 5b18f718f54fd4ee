"""
Unit tests for the data quality scorer
"""

import pytest

from medscan.application.scoring import DataQualityScorer, is_filled
from medscan.config.settings import QualityConfig
from medscan.domain.entities.data_quality import CrossReferenceReport, FieldConflict
from medscan.domain.entities.medicine_profile import (
    ComprehensiveMedicineProfile,
    Identification,
    PricingInfo,
)


def test_empty_profile_scores_zero_completeness():
    metrics = DataQualityScorer().score(ComprehensiveMedicineProfile(), [])

    assert metrics.completeness == 0
    assert metrics.data_points == 0
    assert metrics.total_possible_data_points == 50
    assert metrics.accuracy == 85
    assert metrics.cross_referenced_sources == 0
    assert metrics.freshness.tzinfo is not None


def test_filled_leaves_are_counted():
    profile = ComprehensiveMedicineProfile(
        identification=Identification(
            primary_brand_name="Advil",
            brand_names=("Advil", "ADVIL"),
            strength="200 mg",
        ),
        pricing_info=PricingInfo(generic_available=False),
    )

    metrics = DataQualityScorer().score(profile, ["FDA Drugs@FDA"])

    assert metrics.data_points == 4
    assert metrics.completeness == 8


def test_completeness_is_capped():
    profile = ComprehensiveMedicineProfile(
        identification=Identification(primary_brand_name="Advil", strength="200 mg", route="oral")
    )

    metrics = DataQualityScorer(QualityConfig(total_possible_fields=2)).score(profile, [])

    assert metrics.completeness == 100


@pytest.mark.parametrize("ledger_size, corroborated, expected", [
    (0, False, 85),
    (2, False, 85),
    (2, True, 95),
    (3, False, 95),
    (5, False, 100),
    (6, True, 100),
])
def test_accuracy_increments(ledger_size, corroborated, expected):
    assert DataQualityScorer().accuracy(ledger_size, corroborated) == expected


def test_ledger_counts_distinct_sources():
    metrics = DataQualityScorer().score(ComprehensiveMedicineProfile(), ["RxNorm", "RxNorm", "FDA Drugs@FDA"])

    assert metrics.cross_referenced_sources == 2


def test_conflicts_are_described():
    report = CrossReferenceReport(
        conflicts=(FieldConflict("manufacturer", "Pfizer", {"FDA Drugs@FDA": ["Pfizer"], "Local Database": ["Haleon"]}),)
    )

    metrics = DataQualityScorer().score(ComprehensiveMedicineProfile(), [], report)

    assert metrics.conflicts == (
        "manufacturer differs between sources (FDA Drugs@FDA=Pfizer; Local Database=Haleon)",
    )


def test_custom_increments():
    config = QualityConfig(accuracy_baseline=50, accuracy_bonus_three_sources=20, accuracy_bonus_five_sources=40)

    assert DataQualityScorer(config).accuracy(5) == 100
    assert DataQualityScorer(config).accuracy(3) == 70


def test_is_filled():
    assert is_filled(False)
    assert is_filled(0)
    assert is_filled(["x"])
    assert not is_filled(None)
    assert not is_filled("  ")
    assert not is_filled(())
