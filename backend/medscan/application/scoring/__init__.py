"""Profile quality scoring."""

from .quality_scorer import DataQualityScorer, is_filled

__all__ = ["DataQualityScorer", "is_filled"]
