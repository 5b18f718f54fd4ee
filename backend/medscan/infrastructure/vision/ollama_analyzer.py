"""
Ollama Vision Analyzer

Local vision analysis using a multimodal Ollama model (llava, llama3.2-vision, ...).
"""

from typing import Sequence

import requests

from ...domain.value_objects.image_data import ImageData
from ...domain.exceptions import VisionModelConnectionError
from .base import PromptedVisionAnalyzer


class OllamaVisionAnalyzer(PromptedVisionAnalyzer):
    """
    Analyzer calling Ollama's /api/generate with base64 images.

    Attributes:
        base_url: Ollama API base URL (default: http://localhost:11434)
        model: Multimodal model name
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llava:7b",
        temperature: float = 0.2,
        max_tokens: int = 4096,
        timeout: float = 120
    ):
        super().__init__()
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._session = None

    def _init_session(self) -> None:
        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    def _generate(self, prompt: str, images: Sequence[ImageData]) -> str:
        if not self._session:
            self._init_session()

        payload = {
            "model": self._model,
            "prompt": prompt,
            "images": [image.base64_string for image in images],
            "stream": False,
            "format": "json",
            "options": {
                "temperature": self._temperature,
                "num_predict": self._max_tokens,
            },
        }

        try:
            self.logger.info(f"Calling Ollama with model {self._model}...")
            response = self._session.post(
                f"{self._base_url}/api/generate",
                json=payload,
                timeout=self._timeout
            )
            response.raise_for_status()
            return response.json().get("response", "")
        except (requests.RequestException, ValueError) as e:
            raise VisionModelConnectionError(f"Ollama API error: {e}", provider="ollama")

    @property
    def model_name(self) -> str:
        return f"ollama/{self._model}"
