"""
Infrastructure Layer

Concrete implementations of domain ports (adapters).
Contains integrations with generative vision models and medicine data providers.
"""

from .vision import DummyVisionAnalyzer, VisionAnalyzerFactory, VisionModelType
from .sources import SourceAdapterFactory, LocalCatalogAdapter

__all__ = [
    # Vision
    "DummyVisionAnalyzer",
    "VisionAnalyzerFactory",
    "VisionModelType",
    # Sources
    "SourceAdapterFactory",
    "LocalCatalogAdapter",
]
