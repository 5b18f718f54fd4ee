"""
Groq Vision Analyzer

Vision analysis through a Groq-hosted multimodal chat model.
"""

from typing import Optional, Sequence
import os

from groq import Groq

from ...domain.value_objects.image_data import ImageData
from ...domain.exceptions import VisionModelConnectionError
from .base import PromptedVisionAnalyzer


DEFAULT_GROQ_VISION_MODEL = "meta-llama/llama-4-scout-17b-16e-instruct"


class GroqVisionAnalyzer(PromptedVisionAnalyzer):
    """
    Analyzer that sends images as data URLs in one chat completion.

    Attributes:
        model: Groq model identifier
        temperature: Sampling temperature
        max_tokens: Maximum answer length
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        timeout: float = 120,
        client: Optional[Groq] = None
    ):
        super().__init__()
        self._model = model or os.getenv("GROQ_MODEL", DEFAULT_GROQ_VISION_MODEL)
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._api_key = api_key or os.getenv("GROQ_API_KEY")
        self._client = client

    def _get_client(self) -> Groq:
        if self._client is None:
            if not self._api_key:
                raise VisionModelConnectionError("GROQ_API_KEY is not set", provider="groq")
            self._client = Groq(api_key=self._api_key, timeout=self._timeout)
        return self._client

    def _generate(self, prompt: str, images: Sequence[ImageData]) -> str:
        content = [{"type": "text", "text": prompt}]
        for image in images:
            content.append({"type": "image_url", "image_url": {"url": image.data_url}})

        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": content}],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as e:
            raise VisionModelConnectionError(f"Groq request failed: {e}", provider="groq")

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    @property
    def model_name(self) -> str:
        return f"groq/{self._model}"
