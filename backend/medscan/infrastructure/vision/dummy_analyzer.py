"""
Dummy Vision Analyzer

Canned-answer analyzer for development without a model.
"""

import json
from typing import Any, Dict, Optional, Sequence

from ...domain.value_objects.image_data import ImageData
from .base import PromptedVisionAnalyzer


DEFAULT_RESPONSE: Dict[str, Any] = {
    "identified": True,
    "confidence": 7,
    "medicineName": {
        "brandName": "Advil",
        "genericName": "ibuprofen",
        "primaryName": "Advil",
    },
    "medicineType": "package",
    "medicine": {
        "activeIngredients": ["Ibuprofen 200 mg"],
        "strength": "200 mg",
        "dosageForm": "tablet",
        "route": "oral",
        "manufacturer": "Pfizer",
    },
    "quickIdentification": {
        "shape": "round",
        "color": "brown",
        "visibleText": ["Advil", "Ibuprofen Tablets 200 mg"],
        "markings": "Advil",
    },
    "verificationNeeded": True,
    "reasoning": "Development analyzer: fixed answer, not derived from the image.",
}


class DummyVisionAnalyzer(PromptedVisionAnalyzer):
    """
    Returns a fixed model answer regardless of the images.

    The answer still goes through the regular parser, so the analyzer
    exercises the same normalization as real models.
    """

    def __init__(self, response: Optional[Any] = None):
        super().__init__()
        if response is None:
            response = DEFAULT_RESPONSE
        self._response = response if isinstance(response, str) else json.dumps(response)

    def _generate(self, prompt: str, images: Sequence[ImageData]) -> str:
        return self._response

    @property
    def model_name(self) -> str:
        return "dummy"
