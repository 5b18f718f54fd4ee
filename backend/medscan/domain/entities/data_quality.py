"""
Data Quality Entities

Heuristic quality metrics and the cross-reference report they draw on.
Neither ``accuracy`` nor ``completeness`` is a validated clinical or
statistical measure; both are relative indicators only.
"""

from dataclasses import dataclass, field
from typing import Tuple, Optional, Dict, Any, List
from datetime import datetime


@dataclass(frozen=True)
class FieldConflict:
    """
    Disagreement on one field between independent reporters.

    Attributes:
        field_name: Compared field (brandName, genericName, ...)
        consensus: Reliability-weighted winning value
        values: Reporter name -> value(s) it reported
    """

    field_name: str
    consensus: Optional[str]
    values: Dict[str, List[str]] = field(default_factory=dict)

    def describe(self) -> str:
        reported = "; ".join(f"{src}={', '.join(vals)}" for src, vals in self.values.items())
        return f"{self.field_name} differs between sources ({reported})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field_name,
            "consensus": self.consensus,
            "values": self.values,
        }


@dataclass(frozen=True)
class CrossReferenceReport:
    """
    Result of comparing overlapping fields across reporters.

    Attributes:
        agreements: Field -> reporters in the largest agreeing group
        conflicts: Recorded disagreements (never block compilation)
        consensus: Field -> reliability-weighted consensus value
        max_agreement: Largest number of reporters agreeing on any field
        corroborated: Whether max_agreement reached the configured threshold
        invalid_ndcs: Reported NDC strings that fail the format check
    """

    agreements: Dict[str, List[str]] = field(default_factory=dict)
    conflicts: Tuple[FieldConflict, ...] = ()
    consensus: Dict[str, Optional[str]] = field(default_factory=dict)
    max_agreement: int = 0
    corroborated: bool = False
    invalid_ndcs: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "CrossReferenceReport":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agreements": self.agreements,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "consensus": self.consensus,
            "maxAgreement": self.max_agreement,
            "corroborated": self.corroborated,
            "invalidNdcs": list(self.invalid_ndcs),
        }


@dataclass(frozen=True)
class DataQualityMetrics:
    """
    Quality summary of one compiled profile.

    Attributes:
        completeness: Filled leaf fields over the fixed total, 0..100
        accuracy: Heuristic confidence proxy, 0..100
        freshness: When scoring ran
        cross_referenced_sources: Size of the sources ledger
        data_points: Number of filled leaf fields
        total_possible_data_points: Fixed denominator for completeness
        conflicts: Human-readable cross-reference conflicts
    """

    completeness: int
    accuracy: int
    freshness: datetime
    cross_referenced_sources: int
    data_points: int
    total_possible_data_points: int
    conflicts: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completeness": self.completeness,
            "accuracy": self.accuracy,
            "freshness": self.freshness.isoformat(),
            "crossReferencedSources": self.cross_referenced_sources,
            "dataPoints": self.data_points,
            "totalPossibleDataPoints": self.total_possible_data_points,
            "conflicts": list(self.conflicts),
        }
