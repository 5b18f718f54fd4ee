"""
Vision Infrastructure

Generative vision analyzers and their prompt/parse helpers.
"""

from .base import PromptedVisionAnalyzer
from .dummy_analyzer import DummyVisionAnalyzer
from .factory import VisionAnalyzerFactory, VisionModelType

__all__ = [
    "PromptedVisionAnalyzer",
    "DummyVisionAnalyzer",
    "VisionAnalyzerFactory",
    "VisionModelType",
]
