"""
Data Quality Scorer

Heuristic completeness and accuracy indicators for a compiled profile.
Neither number is clinically or statistically validated; they are only
meaningful relative to other profiles scored the same way.
"""

from datetime import datetime, timezone
from typing import Optional, Any, Sequence
import logging

from ...config.settings import QualityConfig
from ...domain.entities.medicine_profile import ComprehensiveMedicineProfile
from ...domain.entities.data_quality import DataQualityMetrics, CrossReferenceReport


logger = logging.getLogger(__name__)


def is_filled(value: Any) -> bool:
    """Whether a leaf carries data: booleans count when stated at all."""
    if value is None:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


class DataQualityScorer:
    """
    Scores a profile against a fixed number of possible leaf fields.

    Args:
        config: Thresholds and increments (defaults when omitted)
    """

    def __init__(self, config: Optional[QualityConfig] = None):
        self.config = config or QualityConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def count_data_points(self, profile: ComprehensiveMedicineProfile) -> int:
        """Filled leaves of the serialized profile, descending at most ``max_leaf_depth`` levels."""
        return self._count(profile.to_dict(), 0)

    def _count(self, node: Any, depth: int) -> int:
        if isinstance(node, dict):
            if depth >= self.config.max_leaf_depth:
                return 1 if any(is_filled(v) for v in node.values()) else 0
            return sum(self._count(value, depth + 1) for value in node.values())
        return 1 if is_filled(node) else 0

    def accuracy(self, ledger_size: int, corroborated: bool = False) -> int:
        """
        Baseline, plus a bonus at three contributing sources (or three
        agreeing reporters) and another at five; capped at 100.
        """
        score = self.config.accuracy_baseline
        if ledger_size >= 3 or corroborated:
            score += self.config.accuracy_bonus_three_sources
        if ledger_size >= 5:
            score += self.config.accuracy_bonus_five_sources
        return min(100, score)

    def score(
        self,
        profile: ComprehensiveMedicineProfile,
        sources_ledger: Sequence[str],
        cross_reference: Optional[CrossReferenceReport] = None
    ) -> DataQualityMetrics:
        """
        Compute quality metrics.

        Args:
            profile: Compiled profile
            sources_ledger: Providers that contributed a found result
            cross_reference: Report from the cross-reference phase, if run

        Returns:
            DataQualityMetrics stamped with the current UTC time
        """
        report = cross_reference or CrossReferenceReport.empty()
        total = self.config.total_possible_fields
        filled = self.count_data_points(profile)
        completeness = round(min(100.0, filled / total * 100)) if total > 0 else 0
        ledger_size = len(set(sources_ledger))

        metrics = DataQualityMetrics(
            completeness=int(completeness),
            accuracy=self.accuracy(ledger_size, report.corroborated),
            freshness=datetime.now(timezone.utc),
            cross_referenced_sources=ledger_size,
            data_points=filled,
            total_possible_data_points=total,
            conflicts=tuple(c.describe() for c in report.conflicts),
        )
        self.logger.debug(
            f"Quality: completeness={metrics.completeness} accuracy={metrics.accuracy} "
            f"sources={ledger_size} points={filled}/{total}"
        )
        return metrics
