"""
Domain Ports

Abstract interfaces that infrastructure adapters implement.
"""

from .vision_analyzer import VisionAnalyzerPort
from .source_adapter import SourceAdapterPort

__all__ = [
    "VisionAnalyzerPort",
    "SourceAdapterPort",
]
