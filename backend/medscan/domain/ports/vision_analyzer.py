"""
Vision Analyzer Port

Abstract interface for generative vision analysis implementations.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..value_objects.image_data import ImageData
from ..entities.vision_result import VisionAnalysisResult, AnalysisMode


class VisionAnalyzerPort(ABC):
    """
    Port (interface) for vision analysis implementations.

    Responsible for turning one or more medicine photographs into a
    structured candidate identification. Implementations must never raise:
    model errors and unparseable answers become
    ``VisionAnalysisResult.failure(...)``.
    """

    @abstractmethod
    def analyze(
        self,
        images: Sequence[ImageData],
        mode: AnalysisMode = AnalysisMode.QUICK,
        verified_name: Optional[str] = None
    ) -> VisionAnalysisResult:
        """
        Analyze medicine images.

        Args:
            images: One or more photographs of the same medicine
            mode: QUICK (name only) or COMPREHENSIVE (full extraction)
            verified_name: User-confirmed name, required for COMPREHENSIVE

        Returns:
            VisionAnalysisResult, low-confidence on any failure
        """
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the name/identifier of the underlying model."""
        pass
