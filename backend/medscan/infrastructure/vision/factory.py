"""
Vision Analyzer Factory

Factory for creating vision analyzer instances.
"""

from typing import Dict, Any
from enum import Enum

from ...domain.ports.vision_analyzer import VisionAnalyzerPort
from .dummy_analyzer import DummyVisionAnalyzer


class VisionModelType(Enum):
    """Available vision analyzer implementations."""

    GROQ = "groq"
    OLLAMA = "ollama"
    DUMMY = "dummy"


class VisionAnalyzerFactory:
    """
    Factory for creating vision analyzer instances.

    Usage:
        # Cloud model (Groq)
        analyzer = VisionAnalyzerFactory.create(VisionModelType.GROQ, api_key="...")

        # Local model (Ollama)
        analyzer = VisionAnalyzerFactory.create(VisionModelType.OLLAMA, model="llava:7b")
    """

    @staticmethod
    def create(model_type: VisionModelType, **kwargs) -> VisionAnalyzerPort:
        """
        Create a vision analyzer instance.

        Args:
            model_type: Type of analyzer to create
            **kwargs: Configuration options
                For Groq:
                - api_key: Groq API key
                - model: Model identifier
                For Ollama:
                - base_url: Ollama API URL (default: http://localhost:11434)
                - model: Multimodal model name
                Common:
                - temperature, max_tokens, timeout

        Returns:
            VisionAnalyzerPort implementation
        """
        if model_type == VisionModelType.GROQ:
            from .groq_analyzer import GroqVisionAnalyzer

            return GroqVisionAnalyzer(
                api_key=kwargs.get("api_key"),
                model=kwargs.get("model"),
                temperature=kwargs.get("temperature", 0.2),
                max_tokens=kwargs.get("max_tokens", 4096),
                timeout=kwargs.get("timeout", 120),
            )

        elif model_type == VisionModelType.OLLAMA:
            from .ollama_analyzer import OllamaVisionAnalyzer

            return OllamaVisionAnalyzer(
                base_url=kwargs.get("base_url", "http://localhost:11434"),
                model=kwargs.get("model", "llava:7b"),
                temperature=kwargs.get("temperature", 0.2),
                max_tokens=kwargs.get("max_tokens", 4096),
                timeout=kwargs.get("timeout", 120),
            )

        elif model_type == VisionModelType.DUMMY:
            return DummyVisionAnalyzer(response=kwargs.get("response"))

        else:
            raise ValueError(f"Unknown vision model type: {model_type}")

    @staticmethod
    def create_from_config(config: Dict[str, Any]) -> VisionAnalyzerPort:
        """
        Create analyzer from a configuration dictionary.

        Unknown types fall back to the dummy analyzer.
        """
        options = dict(config)
        type_str = str(options.pop("type", "groq")).lower()

        try:
            model_type = VisionModelType(type_str)
        except ValueError:
            model_type = VisionModelType.DUMMY

        return VisionAnalyzerFactory.create(model_type, **options)
