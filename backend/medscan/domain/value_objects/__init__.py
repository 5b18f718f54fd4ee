"""
Value Objects

Immutable values passed between pipeline components.
"""

from .image_data import ImageData
from .confidence_score import ConfidenceScore, ConfidenceLevel
from .search_term import SearchTerm, TermOrigin

__all__ = [
    "ImageData",
    "ConfidenceScore",
    "ConfidenceLevel",
    "SearchTerm",
    "TermOrigin",
]
