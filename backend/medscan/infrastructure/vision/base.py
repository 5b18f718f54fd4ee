"""
Prompted Vision Analyzer

Shared flow for analyzers backed by a generative vision model: build the
prompt, send it with the images, parse the answer. Concrete analyzers only
implement the model call.
"""

from abc import abstractmethod
from typing import List, Optional, Sequence
import logging
import time

from ...domain.ports.vision_analyzer import VisionAnalyzerPort
from ...domain.entities.vision_result import VisionAnalysisResult, AnalysisMode
from ...domain.value_objects.image_data import ImageData
from ...domain.exceptions import (
    VisionAnalysisError,
    VerifiedNameRequiredError,
)
from .prompts import build_quick_prompt, build_comprehensive_prompt, image_label
from .response_parser import parse_json_object, build_result


class PromptedVisionAnalyzer(VisionAnalyzerPort):
    """
    Base class for prompt-driven vision analyzers.

    ``analyze`` never raises: a missing verified name, a failed model call
    or an unparseable answer all become ``VisionAnalysisResult.failure``.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def _generate(self, prompt: str, images: Sequence[ImageData]) -> str:
        """
        Send the prompt and images to the model.

        Returns:
            Raw model text

        Raises:
            VisionModelConnectionError: If the model cannot be reached
        """
        pass

    def analyze(
        self,
        images: Sequence[ImageData],
        mode: AnalysisMode = AnalysisMode.QUICK,
        verified_name: Optional[str] = None
    ) -> VisionAnalysisResult:
        image_count = max(1, len(images or []))
        verified_name = verified_name.strip() if verified_name and verified_name.strip() else None

        if not images:
            return VisionAnalysisResult.failure(
                "no images were provided", mode=mode, verified_name=verified_name
            )

        if mode == AnalysisMode.COMPREHENSIVE and not verified_name:
            error = VerifiedNameRequiredError()
            self.logger.warning(str(error))
            return VisionAnalysisResult.failure(
                error.message, mode=mode, image_count=image_count
            )

        labeled = self._label_images(images)
        labels = [image.label for image in labeled]

        if mode == AnalysisMode.COMPREHENSIVE:
            prompt = build_comprehensive_prompt(labels, verified_name)
        else:
            prompt = build_quick_prompt(labels)

        start_time = time.time()
        raw_text = None
        try:
            raw_text = self._generate(prompt, labeled)
            parsed = parse_json_object(raw_text)
            result = build_result(
                parsed,
                mode=mode,
                labels=labels,
                verified_name=verified_name,
                raw_response=raw_text,
            )
        except VisionAnalysisError as e:
            self.logger.warning(f"Vision analysis failed ({self.model_name}): {e}")
            return VisionAnalysisResult.failure(
                e.message,
                mode=mode,
                image_count=image_count,
                verified_name=verified_name,
                raw_response=raw_text,
            )
        except Exception as e:
            self.logger.error(f"Unexpected vision analysis error ({self.model_name}): {e}")
            return VisionAnalysisResult.failure(
                f"unexpected analyzer error: {e}",
                mode=mode,
                image_count=image_count,
                verified_name=verified_name,
                raw_response=raw_text,
            )

        processing_time = (time.time() - start_time) * 1000
        self.logger.info(
            f"{mode.value} analysis of {image_count} image(s) in {processing_time:.0f}ms: "
            f"{result.candidate_names.best or 'unidentified'} (confidence {result.confidence})"
        )
        return result

    @staticmethod
    def _label_images(images: Sequence[ImageData]) -> List[ImageData]:
        return [
            image if image.label else image.with_label(image_label(index))
            for index, image in enumerate(images)
        ]
